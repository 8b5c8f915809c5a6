import numpy as np
import pytest

from halfoh.controller.adapter import EdgeConstraint
from halfoh.controller.pipeline import run_half_oh, run_half_oh_for_region
from halfoh.model.errors import (
    DimensionTooSmallError,
    EvenDimensionError,
    FailureKind,
    InfeasibleError,
    LoopTopologyError,
    SpokeDimensionError,
)
from halfoh.model.options import TopologyOptions

from conftest import CHORD, fail_split_on_call, semicircle


def cell_areas(grid):
    """Signed XY areas of the grid cells (shoelace over each quad)."""
    quads = np.stack((grid[:-1, :-1], grid[1:, :-1], grid[1:, 1:], grid[:-1, 1:]), axis=2)[..., :2]
    x, y = quads[..., 0], quads[..., 1]
    return 0.5 * np.sum(x * np.roll(y, -1, axis=-1) - np.roll(x, -1, axis=-1) * y, axis=-1)


def test_d_shape_builds_six_patches(adapter, d_shape):
    report = run_half_oh(adapter, *d_shape)

    assert report.ok
    assert report.dimensions == (17, 13)
    assert (report.bounds.lower, report.bounds.upper) == (4, 13)
    assert report.spoke_dimension == 9
    assert len(report.patches) == 6
    assert report.globally_relaxed
    assert report.errors == []

    first, second = report.halves
    assert (first.plan.offsets.a, first.plan.offsets.b, first.plan.offsets.c) == (4, 6, 4)
    assert (second.plan.offsets.a, second.plan.offsets.b, second.plan.offsets.c) == (6, 4, 4)

    for patch in report.patches:
        grid = adapter.get_patch_grid(patch)
        assert np.all(np.isfinite(grid))
        for edge_index in range(4):
            assert adapter.get_edge_constraint(patch, edge_index) == EdgeConstraint.FLOATING


def test_d_shape_without_solving_gives_valid_cells(adapter, d_shape):
    report = run_half_oh(adapter, *d_shape, TopologyOptions(solve=False))

    assert report.ok
    for patch in report.patches:
        assert np.all(cell_areas(adapter.get_patch_grid(patch)) > 0.0)


def test_patches_cover_the_loop(adapter, d_shape):
    report = run_half_oh(adapter, *d_shape, TopologyOptions(solve=False))
    total = sum(cell_areas(adapter.get_patch_grid(p)).sum() for p in report.patches)
    # The arc grid points sit on every other polyline vertex: a 16-segment half polygon
    expected = 0.5 * 16 * np.sin(np.pi / 16)
    assert total == pytest.approx(expected, rel=1e-9)


def test_waist_spoke_is_shared_by_both_halves(adapter, d_shape):
    report = run_half_oh(adapter, *d_shape, TopologyOptions(solve=False))
    first, second = report.halves
    shared = set(first.plan.side2.fragments) & set(second.plan.side3.fragments)
    assert len(shared) == 2


def test_even_dimension_is_auto_fixed(adapter):
    arc = adapter.create_curve(semicircle(), 16, name="arc")
    chord = adapter.create_curve(CHORD, 13, name="chord")
    report = run_half_oh(adapter, arc, chord, TopologyOptions(solve=False))
    assert report.dimensions == (17, 13)
    assert report.ok


def test_fatal_errors_propagate(adapter):
    arc = adapter.create_curve(semicircle(), 17, name="arc")
    chord = adapter.create_curve(CHORD, 12, name="chord")
    with pytest.raises(EvenDimensionError):
        run_half_oh(adapter, arc, chord, TopologyOptions(auto_dim=False))


def test_small_dimension_is_fatal(adapter):
    arc = adapter.create_curve(semicircle(), 17, name="arc")
    chord = adapter.create_curve(CHORD, 3, name="chord")
    with pytest.raises(DimensionTooSmallError):
        run_half_oh(adapter, arc, chord)


def test_rejected_spoke_dimension_leaves_curves_whole(adapter, d_shape):
    with pytest.raises(SpokeDimensionError) as excinfo:
        run_half_oh(adapter, *d_shape, TopologyOptions(spoke_dimension=20))
    assert excinfo.value.kind == FailureKind.SPOKE_DIMENSION_REJECTED
    assert set(d_shape) <= set(adapter.curves)


def test_curves_must_close_a_loop(adapter):
    arc = adapter.create_curve(semicircle(), 17, name="arc")
    chord = adapter.create_curve([[-1.0, 0.0], [0.5, 0.0]], 13, name="chord")
    with pytest.raises(LoopTopologyError):
        run_half_oh(adapter, arc, chord)


def test_one_failed_half_is_reported(adapter):
    # The chord is split 7 + 3 by its arc midpoint, so the two halves differ
    arc = adapter.create_curve(semicircle(), 9, name="arc")
    chord = adapter.create_curve(
        CHORD, 11, name="chord",
        distribution=[0.0, 0.05, 0.1, 0.15, 0.2, 0.25, 0.3, 0.5, 0.7, 0.85, 1.0],
    )
    report = run_half_oh(adapter, arc, chord, TopologyOptions(spoke_dimension=8, solve=False))

    first, second = report.halves
    assert isinstance(first.error, InfeasibleError)
    assert first.patches == []
    assert second.ok
    assert len(report.patches) == 3
    assert not report.ok
    assert not report.globally_relaxed
    assert [e.kind for e in report.errors] == [FailureKind.INFEASIBLE]


def test_region_entry_point(adapter, d_shape):
    region = adapter.create_region(d_shape)
    report = run_half_oh_for_region(adapter, region, TopologyOptions(solve=False))
    assert len(report.patches) == 6


def test_region_needs_two_curves(adapter, unit_square):
    region = adapter.create_region(unit_square)
    with pytest.raises(LoopTopologyError, match="exactly two"):
        run_half_oh_for_region(adapter, region)


def test_spoke_cut_by_a_failed_half_is_shared_as_fragments(adapter, d_shape, monkeypatch):
    # Two midpoint splits, then half 1 cuts the arc and the spoke before its third side fails
    fail_split_on_call(monkeypatch, adapter, 5)
    report = run_half_oh(adapter, *d_shape, TopologyOptions(solve=False))

    first, second = report.halves
    assert first.error.kind == FailureKind.PATCH_CONSTRUCTION
    assert first.plan is None
    assert len(first.cut_sides) == 2
    assert report.spoke not in adapter.curves

    assert second.ok
    assert set(second.plan.side3.fragments) == set(first.cut_sides[1].fragments)
    assert not report.ok and not report.globally_relaxed
    assert len(report.patches) == 3
