"""
Elliptic Relaxation
===================
Assigns boundary conditions to the patch edges and runs the elliptic solver.

Edges touching the pinwheel centroid are interior spokes: they float along
their own curve and aim for orthogonal grid lines. Every other edge keeps the
host default until the final pass over both halves floats them all.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence, TYPE_CHECKING

from halfoh.config import COINCIDENCE_TOLERANCE
from halfoh.controller.adapter import AngleMode, EdgeConstraint

if TYPE_CHECKING:
    from halfoh.controller.adapter import GeometryAdapter, Patch
    from halfoh.model.geometry_primitives import Point

logger = logging.getLogger(__name__)

PINWHEEL_SIZE = 3


def relax_half(
    adapter: GeometryAdapter,
    centroid: Point,
    patches: Sequence[Patch],
    iterations: int,
    interpolate_angles: bool = True,
) -> list[tuple[Any, int]]:
    """
    Classify the edges of one half loop and relax its patches.

    Args:
        adapter: Geometry host owning the patches.
        centroid: Common corner of the pinwheel patches.
        patches: Patches of the half; the first three are the pinwheel.
        iterations: Elliptic iterations, 0 classifies without relaxing.
        interpolate_angles: Apply interpolated angles to every edge first.

    Returns:
        The (patch, edge index) pairs classified as interior spokes.
    """
    if interpolate_angles:
        for patch in patches:
            for edge_index in range(adapter.get_edge_count(patch)):
                adapter.set_edge_angle_mode(patch, edge_index, AngleMode.INTERPOLATE)

    spoke_edges = []
    for patch in list(patches)[:PINWHEEL_SIZE]:
        for edge_index in range(adapter.get_edge_count(patch)):
            start, end = adapter.get_edge_endpoints(patch, edge_index)
            if start.is_close(centroid, COINCIDENCE_TOLERANCE) or end.is_close(centroid, COINCIDENCE_TOLERANCE):
                adapter.set_edge_constraint(patch, edge_index, EdgeConstraint.FLOATING)
                adapter.set_edge_angle_mode(patch, edge_index, AngleMode.ORTHOGONAL)
                spoke_edges.append((patch, edge_index))

    logger.info(f"Relaxing half loop: {len(spoke_edges)} spoke edge(s), {iterations} iteration(s).")
    adapter.run_elliptic(patches, iterations)
    return spoke_edges


def relax_all(adapter: GeometryAdapter, patches: Sequence[Patch], iterations: int) -> None:
    """Float every edge and relax all patches together."""
    for patch in patches:
        for edge_index in range(adapter.get_edge_count(patch)):
            adapter.set_edge_constraint(patch, edge_index, EdgeConstraint.FLOATING)

    logger.info(f"Relaxing {len(patches)} patches together, {iterations} iteration(s).")
    adapter.run_elliptic(patches, iterations)
