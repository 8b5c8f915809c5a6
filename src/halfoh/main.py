"""
Command-Line Entry Point
========================
Loads a loop description, builds the half O-H topology with the in-memory
geometry host and exports the six patches.

Why is this file needed?
------------------------
It is the composition root of a run:
1. Sets up logging (console + optional file).
2. Reads the input file and merges the command-line overrides into its options.
3. Runs the pipeline and turns its report into an exit status.

Exit status: 0 when both halves were built, 1 when a half loop failed, 2 on a
fatal error.
"""
import argparse
import dataclasses
import logging
import sys
from typing import Optional, Sequence

from halfoh.config import EXAMPLE_INPUT_PATH
from halfoh.controller.memory_adapter import MemoryGeometryAdapter
from halfoh.controller.mesher import GmshExporter
from halfoh.controller.pipeline import run_half_oh, run_half_oh_for_region
from halfoh.logging_config import setup_logging
from halfoh.model.errors import TopologyError
from halfoh.model.io import IOManager

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_HALF_FAILED = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="halfoh",
        description="Build a six-patch half O-H structured topology inside a loop of two curves.",
    )
    parser.add_argument(
        "input", nargs="?", default=EXAMPLE_INPUT_PATH,
        help="JSON loop description (default: the bundled D-shaped example)",
    )
    parser.add_argument("-o", "--output", help="write the patches to a gmsh .msh file")
    parser.add_argument("--vtu", help="write the patches to a .vtu file")
    parser.add_argument("--plot", action="store_true", help="show the patches with matplotlib")
    parser.add_argument(
        "--auto-dim", action=argparse.BooleanOptionalAction, default=None,
        help="increment even curve dimensions instead of failing",
    )
    parser.add_argument(
        "--no-solve", dest="solve", action="store_const", const=False, default=None,
        help="classify the patch edges without running the elliptic solver",
    )
    parser.add_argument(
        "--no-interpolate-angles", dest="interpolate_angles", action="store_const", const=False, default=None,
        help="skip the interpolated boundary angle pass",
    )
    parser.add_argument("--spoke-dimension", type=int, help="dimension of the spoke between the two waists")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    parser.add_argument("--log-file", help="also write the log to this file")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)

    try:
        loop_input = IOManager.load_input(args.input)
        overrides = {
            name: value
            for name in ("auto_dim", "solve", "interpolate_angles", "spoke_dimension")
            if (value := getattr(args, name)) is not None
        }
        options = dataclasses.replace(loop_input.options, **overrides)

        adapter = MemoryGeometryAdapter()
        if loop_input.region:
            report = run_half_oh_for_region(adapter, loop_input.create_region(adapter), options)
        else:
            curve_a, curve_b = loop_input.loop_curves(adapter)
            report = run_half_oh(adapter, curve_a, curve_b, options)
    except TopologyError as e:
        logger.error(f"Fatal {e.kind}: {e.message}")
        return EXIT_FATAL
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"Cannot run on '{args.input}': {e}")
        return EXIT_FATAL

    for half in report.halves:
        status = "ok" if half.ok else f"failed ({half.error.kind})"
        logger.info(f"Half loop {half.index}: {status}, {len(half.patches)} patch(es).")

    grids = [adapter.get_patch_grid(patch) for patch in report.patches]
    if grids:
        try:
            if args.output:
                GmshExporter().write(grids, args.output)
            if args.vtu:
                IOManager.export_vtu(grids, args.vtu)
        except Exception:
            logger.exception("Export failed")
            return EXIT_FATAL

        if args.plot:
            from halfoh.view.plot import plot_patches
            plot_patches(grids, show=True)

    return EXIT_OK if report.ok else EXIT_HALF_FAILED


if __name__ == "__main__":
    sys.exit(main())
