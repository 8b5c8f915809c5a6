"""
Pinwheel Construction
=====================
Joins the split points of a half loop to their centroid and asks the geometry
host for the three structured patches of the resulting pinwheel.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence, TYPE_CHECKING

from halfoh.config import HALF_LOOP_ITERATIONS
from halfoh.controller.relaxer import relax_half
from halfoh.model.errors import PatchConstructionError
from halfoh.model.geometry_primitives import centroid
from halfoh.model.plan import Pinwheel

if TYPE_CHECKING:
    from halfoh.controller.adapter import GeometryAdapter
    from halfoh.model.geometry_primitives import Point
    from halfoh.model.options import TopologyOptions

logger = logging.getLogger(__name__)


def build_patches(
    adapter: GeometryAdapter,
    split_points: Sequence[Point],
    spoke_dimensions: Sequence[int],
    outer_fragments: Sequence[Any],
    options: TopologyOptions,
) -> Pinwheel:
    """
    Build the three patches of one half loop and relax them.

    Args:
        adapter: Geometry host.
        split_points: Split point of each triangle side.
        spoke_dimensions: Dimension of the spoke leaving each split point, in
            the same order (see SplitPlan.spoke_dimensions).
        outer_fragments: Every fragment of the three triangle sides.
        options: Run options; `solve` and `interpolate_angles` drive the relaxation.

    Raises:
        PatchConstructionError: The host did not return exactly three patches.
    """
    center = centroid(split_points)
    outer = list(outer_fragments)

    spokes = []
    for point, dimension in zip(split_points, spoke_dimensions):
        try:
            spoke = adapter.create_two_point_curve(point, center, dimension)
        except ValueError as e:
            raise PatchConstructionError(f"Cannot create spoke from {point} to the centroid: {e}") from e
        adapter.align_orientation(spoke, outer)
        spokes.append(spoke)

    patches = adapter.build_structured_patch(spokes + outer)
    if len(patches) != 3:
        raise PatchConstructionError(
            f"Expected 3 patches from {len(spokes) + len(outer)} boundary curves, got {len(patches)}."
        )
    logger.info(f"Built pinwheel of 3 patches around ({center.x:.4g}, {center.y:.4g}, {center.z:.4g}).")

    iterations = HALF_LOOP_ITERATIONS if options.solve else 0
    relax_half(adapter, center, patches, iterations, options.interpolate_angles)
    return Pinwheel(centroid=center, spokes=spokes, patches=patches)
