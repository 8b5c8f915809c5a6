"""
Curve Dimension Resolution
==========================
Brings the two loop curves to odd dimensions so that each can be split exactly
at its middle grid point.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from halfoh.config import MIN_DIMENSION
from halfoh.model.errors import DimensionTooSmallError, EvenDimensionError

if TYPE_CHECKING:
    from halfoh.controller.adapter import Curve, GeometryAdapter

logger = logging.getLogger(__name__)


def resolve_dimensions(
    adapter: GeometryAdapter,
    curve_a: Curve,
    curve_b: Curve,
    auto_fix: bool,
) -> tuple[int, int]:
    """
    Normalize the dimensions of both curves to odd values.

    Args:
        adapter: Geometry host owning the curves.
        curve_a: First loop curve.
        curve_b: Second loop curve.
        auto_fix: Increment even dimensions by one instead of failing.

    Returns:
        The resolved (odd) dimensions of curve_a and curve_b.

    Raises:
        EvenDimensionError: An even dimension was found and auto_fix is off.
        DimensionTooSmallError: A resolved dimension is below MIN_DIMENSION.
    """
    dimensions = []
    fixed = []
    for curve in (curve_a, curve_b):
        dimension = adapter.get_dimension(curve)
        if dimension % 2 == 0:
            name = adapter.get_name(curve)
            if not auto_fix:
                raise EvenDimensionError(name, dimension)

            # A distribution computed for the old point count is meaningless now
            adapter.reset_distribution(curve)
            adapter.set_dimension(curve, dimension + 1)
            logger.info(f"Dimension of '{name}' increased from {dimension} to {dimension + 1}.")
            dimension += 1
            fixed.append(curve)
        dimensions.append(dimension)

    for curve in fixed:
        adapter.balance_distributions(curve)

    for curve, dimension in zip((curve_a, curve_b), dimensions):
        if dimension < MIN_DIMENSION:
            raise DimensionTooSmallError(adapter.get_name(curve), dimension, MIN_DIMENSION)

    return dimensions[0], dimensions[1]
