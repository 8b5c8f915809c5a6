import json
import logging

import pytest

pytest.importorskip("meshio")
pytest.importorskip("gmsh")

from halfoh.main import EXIT_FATAL, EXIT_HALF_FAILED, EXIT_OK, build_parser, main

from conftest import CHORD, semicircle


@pytest.fixture(autouse=True)
def reset_logging():
    """main() installs handlers on the package logger; drop them after each run."""
    yield
    logger = logging.getLogger("halfoh")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def write_input(path, arc_dimension=17, chord_dimension=13, **extra):
    data = {
        "curves": [
            {"name": "arc", "points": semicircle().tolist(), "dimension": arc_dimension},
            {"name": "chord", "points": CHORD, "dimension": chord_dimension},
        ],
        **extra,
    }
    path.write_text(json.dumps(data))
    return str(path)


def test_parser_defaults():
    args = build_parser().parse_args(["loop.json"])
    assert args.auto_dim is None and args.solve is None and args.spoke_dimension is None
    args = build_parser().parse_args(["loop.json", "--no-auto-dim", "--no-solve", "--spoke-dimension", "11"])
    assert (args.auto_dim, args.solve, args.spoke_dimension) == (False, False, 11)


def test_run_and_export(d_shape_file, tmp_path):
    vtu = tmp_path / "out.vtu"
    msh = tmp_path / "out.msh"
    assert main([str(d_shape_file), "--vtu", str(vtu), "-o", str(msh)]) == EXIT_OK
    assert vtu.exists() and msh.exists()


def test_even_dimension_without_auto_dim_is_fatal(tmp_path):
    path = write_input(tmp_path / "even.json", chord_dimension=12)
    assert main([path, "--no-auto-dim", "--no-solve"]) == EXIT_FATAL
    assert main([path, "--no-solve"]) == EXIT_OK


def test_bad_spoke_dimension_is_fatal(d_shape_file):
    assert main([str(d_shape_file), "--spoke-dimension", "2"]) == EXIT_FATAL


def test_missing_input_is_fatal(tmp_path):
    assert main([str(tmp_path / "missing.json")]) == EXIT_FATAL


def test_failed_half_gives_exit_one(tmp_path):
    path = tmp_path / "lopsided.json"
    path.write_text(json.dumps({
        "curves": [
            {"name": "arc", "points": semicircle().tolist(), "dimension": 9},
            {
                "name": "chord", "points": CHORD, "dimension": 11,
                "distribution": [0.0, 0.05, 0.1, 0.15, 0.2, 0.25, 0.3, 0.5, 0.7, 0.85, 1.0],
            },
        ],
        "options": {"spokeDimension": 8, "solve": False},
    }))
    assert main([str(path)]) == EXIT_HALF_FAILED


def test_log_file(d_shape_file, tmp_path):
    log_file = tmp_path / "run.log"
    assert main([str(d_shape_file), "-v", "--log-file", str(log_file)]) == EXIT_OK
    assert "Half O-H topology complete" in log_file.read_text()
