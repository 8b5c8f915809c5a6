"""Shared fixtures: an in-memory geometry host and a few closed loops built in it."""

import json

import numpy as np
import pytest

from halfoh.controller.memory_adapter import MemoryGeometryAdapter


def semicircle(n_points=33, radius=1.0):
    """Polyline of the upper half circle from (r, 0) to (-r, 0)."""
    angles = np.linspace(0.0, np.pi, n_points)
    points = np.column_stack((radius * np.cos(angles), radius * np.sin(angles), np.zeros(n_points)))
    points[0] = [radius, 0.0, 0.0]
    points[-1] = [-radius, 0.0, 0.0]
    return points


CHORD = [[-1.0, 0.0, 0.0], [1.0, 0.0, 0.0]]


def fail_split_on_call(monkeypatch, adapter, failing_call):
    """Make the host refuse the n-th curve split."""
    original = adapter.split
    calls = []

    def split(curve, parameter):
        calls.append(curve)
        if len(calls) == failing_call:
            raise ValueError("parameter outside the curve")
        return original(curve, parameter)

    monkeypatch.setattr(adapter, "split", split)


@pytest.fixture
def adapter():
    return MemoryGeometryAdapter()


@pytest.fixture
def d_shape(adapter):
    """Semicircle (dimension 17) closed by its chord (dimension 13)."""
    arc = adapter.create_curve(semicircle(), 17, name="arc")
    chord = adapter.create_curve(CHORD, 13, name="chord")
    return arc, chord


@pytest.fixture
def triangle(adapter):
    """Right triangle with 4 segments on every side, walked head to tail."""
    c1 = adapter.create_curve([[0.0, 0.0], [4.0, 0.0]], 5, name="c1")
    c2 = adapter.create_curve([[4.0, 0.0], [0.0, 4.0]], 5, name="c2")
    c3 = adapter.create_curve([[0.0, 4.0], [0.0, 0.0]], 5, name="c3")
    return c1, c2, c3


@pytest.fixture
def unit_square(adapter):
    """Four straight curves around the unit square, 5 grid points each."""
    corners = [[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]]
    return [
        adapter.create_curve([corners[k], corners[(k + 1) % 4]], 5, name=f"side-{k}")
        for k in range(4)
    ]


@pytest.fixture
def d_shape_file(tmp_path):
    data = {
        "curves": [
            {"name": "arc", "dimension": 17, "points": semicircle().tolist()},
            {"name": "chord", "dimension": 13, "points": CHORD},
        ],
        "loop": ["arc", "chord"],
        "options": {"autoDim": True, "solve": False},
    }
    path = tmp_path / "d_shape.json"
    path.write_text(json.dumps(data))
    return path
