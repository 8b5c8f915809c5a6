import json

import numpy as np
import pytest

meshio = pytest.importorskip("meshio")
pytest.importorskip("gmsh")

from halfoh.controller.pipeline import run_half_oh
from halfoh.model.io import IOManager
from halfoh.model.options import TopologyOptions

from conftest import CHORD, semicircle


def test_load_input(d_shape_file):
    loop_input = IOManager.load_input(str(d_shape_file))
    assert [c.name for c in loop_input.curves] == ["arc", "chord"]
    assert loop_input.loop == ["arc", "chord"]
    assert not loop_input.region
    assert loop_input.options == TopologyOptions(solve=False)


def test_loop_defaults_to_the_two_curves():
    loop_input = IOManager.parse_input({
        "curves": [
            {"name": "chord", "points": CHORD, "dimension": 13},
            {"name": "arc", "points": semicircle().tolist(), "dimension": 17},
        ]
    })
    assert loop_input.loop == ["chord", "arc"]
    assert loop_input.options == TopologyOptions()


@pytest.mark.parametrize("data, message", [
    ({}, "curves"),
    ({"curves": [{"name": "a", "points": CHORD}]}, "incomplete"),
    ({"curves": [{"name": "a", "points": CHORD, "dimension": 5}] * 2}, "unique"),
    ({"curves": [{"name": "a", "points": CHORD, "dimension": 5}], "loop": ["a", "b"]}, "unknown curve"),
    ({"curves": [{"name": "a", "points": CHORD, "dimension": 5}]}, "'loop' is required"),
])
def test_invalid_input(data, message):
    with pytest.raises(ValueError, match=message):
        IOManager.parse_input(data)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        IOManager.load_input(str(tmp_path / "missing.json"))


def test_malformed_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ValueError):
        IOManager.load_input(str(path))


def test_create_curves_in_adapter(adapter, d_shape_file):
    loop_input = IOManager.load_input(str(d_shape_file))
    arc, chord = loop_input.loop_curves(adapter)
    assert (adapter.get_dimension(arc), adapter.get_dimension(chord)) == (17, 13)
    assert adapter.get_nodes(arc)[0] is adapter.get_nodes(chord)[1]


def test_region_input(adapter, tmp_path):
    path = tmp_path / "region.json"
    path.write_text(json.dumps({
        "curves": [
            {"name": "arc", "points": semicircle().tolist(), "dimension": 17},
            {"name": "chord", "points": CHORD, "dimension": 13},
        ],
        "region": True,
    }))
    loop_input = IOManager.load_input(str(path))
    region = loop_input.create_region(adapter)
    assert [c.name for c in adapter.get_boundary_curves(region)] == ["arc", "chord"]


def test_export_vtu(adapter, d_shape, tmp_path):
    report = run_half_oh(adapter, *d_shape, TopologyOptions(solve=False))
    grids = [adapter.get_patch_grid(p) for p in report.patches]

    path = IOManager.export_vtu(grids, str(tmp_path / "patches.vtu"))
    mesh = meshio.read(path)

    expected_quads = sum((g.shape[0] - 1) * (g.shape[1] - 1) for g in grids)
    assert len(mesh.cells_dict["quad"]) == expected_quads
    assert sorted(np.unique(mesh.cell_data["patch"][0])) == [1, 2, 3, 4, 5, 6]


def test_export_vtu_needs_grids(tmp_path):
    with pytest.raises(ValueError):
        IOManager.export_vtu([], str(tmp_path / "empty.vtu"))
