"""
Half O-H Pipeline
=================
Runs the whole topology build over a loop of two curves.

Why is this file needed?
------------------------
1. Ordering: Dimensions are resolved before the spoke bounds are read, the spoke
   dimension is chosen before any curve is split, and both halves exist before
   the final relaxation.
2. Failure policy: Fatal errors propagate to the caller. A half-loop failure is
   recorded in the run report and the other half is still attempted.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence, TYPE_CHECKING

from halfoh.config import GLOBAL_ITERATIONS
from halfoh.controller.bounds import (
    SpokeDimensionChooser,
    choose_spoke_dimension,
    compute_bounds,
    default_spoke_chooser,
    split_at_midpoints,
)
from halfoh.controller.builder import build_patches
from halfoh.controller.dimensions import resolve_dimensions
from halfoh.controller.relaxer import relax_all
from halfoh.controller.triquad import solve_tri_quad
from halfoh.model.errors import HalfLoopError, LoopTopologyError, PatchConstructionError
from halfoh.model.options import TopologyOptions
from halfoh.model.plan import HalfOutcome, RunReport

if TYPE_CHECKING:
    from halfoh.controller.adapter import Curve, GeometryAdapter, Region

logger = logging.getLogger(__name__)


def _validate_loop(adapter: GeometryAdapter, curve_a: Curve, curve_b: Curve) -> None:
    if curve_a is curve_b:
        raise LoopTopologyError("The loop needs two different curves.")

    a_start, a_end = adapter.get_nodes(curve_a)
    b_start, b_end = adapter.get_nodes(curve_b)
    for curve, start, end in ((curve_a, a_start, a_end), (curve_b, b_start, b_end)):
        if start == end:
            raise LoopTopologyError(f"Curve '{adapter.get_name(curve)}' is closed on itself; split it first.")

    shared = (a_start == b_start and a_end == b_end) or (a_start == b_end and a_end == b_start)
    if not shared:
        raise LoopTopologyError(
            f"Curves '{adapter.get_name(curve_a)}' and '{adapter.get_name(curve_b)}' "
            f"do not share both end nodes."
        )


def _run_half(
    adapter: GeometryAdapter,
    index: int,
    sides: Sequence[Any],
    options: TopologyOptions,
) -> HalfOutcome:
    outcome = HalfOutcome(index=index)
    try:
        outcome.plan = solve_tri_quad(adapter, *sides)
        outcome.pinwheel = build_patches(
            adapter,
            outcome.plan.split_points,
            outcome.plan.spoke_dimensions,
            outcome.plan.outer_fragments,
            options,
        )
    except HalfLoopError as e:
        logger.error(f"Half loop {index} failed ({e.kind}): {e.message}")
        outcome.error = e
        if outcome.plan is None and isinstance(e, PatchConstructionError):
            outcome.partial_sides = e.cut_sides
    else:
        logger.info(f"Half loop {index} built with offsets {outcome.plan.offsets}.")
    return outcome


def run_half_oh(
    adapter: GeometryAdapter,
    curve_a: Curve,
    curve_b: Curve,
    options: TopologyOptions = TopologyOptions(),
    chooser: SpokeDimensionChooser = default_spoke_chooser,
) -> RunReport:
    """
    Build the six-patch half O-H topology inside the loop of two curves.

    Args:
        adapter: Geometry host owning the curves.
        curve_a: First loop curve.
        curve_b: Second loop curve, sharing both end nodes with curve_a.
        options: Run options.
        chooser: Callback offered (lower, upper, default) of the spoke dimension.

    Returns:
        RunReport holding both half outcomes.

    Raises:
        TopologyError: A fatal error (loop, dimension or spoke dimension).
    """
    _validate_loop(adapter, curve_a, curve_b)
    a_start = adapter.get_nodes(curve_a)[0]

    dimensions = resolve_dimensions(adapter, curve_a, curve_b, options.auto_dim)
    bounds = compute_bounds(*dimensions)
    spoke_dimension = choose_spoke_dimension(bounds, options.spoke_dimension, chooser)
    logger.info(
        f"Dimensions {dimensions[0]}/{dimensions[1]}, spoke bounds [{bounds.lower}, {bounds.upper}], "
        f"spoke dimension {spoke_dimension}."
    )

    midpoints = split_at_midpoints(adapter, curve_a, curve_b)
    spoke = adapter.create_two_point_curve(midpoints.waist_a, midpoints.waist_b, spoke_dimension)
    adapter.align_orientation(spoke, midpoints.a_fragments)
    report = RunReport(dimensions=dimensions, bounds=bounds, spoke_dimension=spoke_dimension, spoke=spoke)

    a_head, a_tail = midpoints.a_fragments
    adjacent = adapter.get_adjacent_curves(a_start, midpoints.b_fragments)
    if len(adjacent) != 1:
        raise LoopTopologyError("Cannot tell which half of the second curve meets the first curve's start.")
    b_near = adjacent[0]
    b_far = midpoints.b_fragments[1] if b_near is midpoints.b_fragments[0] else midpoints.b_fragments[0]

    first = _run_half(adapter, 1, (a_head, spoke, b_near), options)
    report.halves.append(first)

    # Half 1 may have cut the spoke, even when it failed later; half 2 then sees it as a chain
    cut_sides = first.cut_sides
    shared_spoke = list(cut_sides[1].fragments) if len(cut_sides) > 1 else spoke
    report.halves.append(_run_half(adapter, 2, (a_tail, b_far, shared_spoke), options))

    if report.ok:
        relax_all(adapter, report.patches, GLOBAL_ITERATIONS if options.solve else 0)
        report.globally_relaxed = True
        logger.info(f"Half O-H topology complete: {len(report.patches)} patches.")
    else:
        logger.warning(f"Half O-H topology incomplete: {len(report.errors)} half loop(s) failed.")
    return report


def run_half_oh_for_region(
    adapter: GeometryAdapter,
    region: Region,
    options: TopologyOptions = TopologyOptions(),
    chooser: SpokeDimensionChooser = default_spoke_chooser,
) -> RunReport:
    """Run the pipeline over a region bounded by exactly two curves."""
    curves = adapter.get_boundary_curves(region)
    if len(curves) != 2:
        raise LoopTopologyError(f"A region must be bounded by exactly two curves, found {len(curves)}.")
    return run_half_oh(adapter, curves[0], curves[1], options, chooser)
