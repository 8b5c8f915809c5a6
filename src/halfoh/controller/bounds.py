"""
Spoke Dimension Bounds
======================
Computes which dimensions the spoke curve between the two waist points may
take, picks one, and cuts both loop curves at their midpoints.

Each half loop is a triangle made of one half of each loop curve plus the
spoke. With n1 and n2 grid points on the two halves, the triangle can be woven
into three quads only if the segment counts n1 - 1, n2 - 1 and s - 1 obey the
strict triangle inequality and sum to an even number.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, TYPE_CHECKING

from halfoh.config import SPLIT_POSITION
from halfoh.model.errors import SpokeDimensionError
from halfoh.model.plan import MidpointSplit, SpokeBounds

if TYPE_CHECKING:
    from halfoh.controller.adapter import Curve, GeometryAdapter

logger = logging.getLogger(__name__)

SpokeDimensionChooser = Callable[[int, int, int], int]


def default_spoke_chooser(lower: int, upper: int, default: int) -> int:
    """Non-interactive chooser: always takes the offered default."""
    return default


def half_vertex_count(dimension: int) -> int:
    """Grid points on each half of an odd-dimension curve split at its middle."""
    return (dimension - 1) // 2 + 1


def compute_bounds(dim_short: int, dim_long: int) -> SpokeBounds:
    """
    Feasible range and default of the spoke dimension.

    Args:
        dim_short: Odd dimension of one loop curve.
        dim_long: Odd dimension of the other loop curve (order does not matter).

    Returns:
        SpokeBounds with lower = |n2 - n1| + 2, upper = n1 + n2 - 3 and the
        default (lower + upper) / 2, rounded up.
    """
    for dimension in (dim_short, dim_long):
        if dimension % 2 == 0:
            raise ValueError(f"Bounds need odd dimensions, got {dimension}.")
    dim_short, dim_long = sorted((dim_short, dim_long))

    n1 = half_vertex_count(dim_short)
    n2 = half_vertex_count(dim_long)
    lower = abs(n2 - n1) + 2
    upper = n1 + n2 - 3

    total = lower + upper
    if total % 2 == 1:
        total += 1

    bounds = SpokeBounds(lower=lower, upper=upper, default=total // 2, n_short=n1, n_long=n2)
    logger.debug(f"Spoke bounds for dimensions {dim_short}/{dim_long}: {bounds}")
    return bounds


def require_feasible(bounds: SpokeBounds) -> None:
    if bounds.is_empty:
        raise SpokeDimensionError(
            f"No spoke dimension fits: the upper bound {bounds.upper} is below the lower bound {bounds.lower}."
        )


def _parity_ok(value: int, bounds: SpokeBounds) -> bool:
    return ((bounds.n_short - 1) + (bounds.n_long - 1) + (value - 1)) % 2 == 0


def is_spoke_dimension_feasible(value: int, bounds: SpokeBounds) -> bool:
    return bounds.lower <= value <= bounds.upper and _parity_ok(value, bounds)


def validate_spoke_dimension(value: int, bounds: SpokeBounds) -> None:
    """
    Raises:
        SpokeDimensionError: stating the violated bound and which way to move.
    """
    if value < bounds.lower:
        raise SpokeDimensionError(
            f"Spoke dimension {value} is below the lower bound {bounds.lower}; increase it.", value
        )
    if value > bounds.upper:
        raise SpokeDimensionError(
            f"Spoke dimension {value} is above the upper bound {bounds.upper}; decrease it.", value
        )
    if not _parity_ok(value, bounds):
        neighbours = [v for v in (value - 1, value + 1) if bounds.lower <= v <= bounds.upper]
        raise SpokeDimensionError(
            f"Spoke dimension {value} makes the segment sum "
            f"{bounds.n_short - 1} + {bounds.n_long - 1} + {value - 1} odd; "
            f"use {' or '.join(str(v) for v in neighbours)}.",
            value,
        )


def _nearest_feasible(value: int, bounds: SpokeBounds) -> Optional[int]:
    for distance in range(1, bounds.upper - bounds.lower + 1):
        for candidate in (value - distance, value + distance):
            if is_spoke_dimension_feasible(candidate, bounds):
                return candidate
    return None


def choose_spoke_dimension(
    bounds: SpokeBounds,
    override: Optional[int] = None,
    chooser: SpokeDimensionChooser = default_spoke_chooser,
) -> int:
    """
    Pick the spoke dimension.

    A configured override and any value the chooser changes are validated
    strictly. The untouched default is moved to the nearest feasible value
    when it breaks the parity rule.
    """
    require_feasible(bounds)

    if override is not None:
        validate_spoke_dimension(override, bounds)
        logger.info(f"Using configured spoke dimension {override}.")
        return override

    value = chooser(bounds.lower, bounds.upper, bounds.default)
    if value != bounds.default:
        validate_spoke_dimension(value, bounds)
        return value
    if _parity_ok(value, bounds):
        return value

    nearest = _nearest_feasible(value, bounds)
    if nearest is None:
        raise SpokeDimensionError(
            f"No spoke dimension in [{bounds.lower}, {bounds.upper}] gives an even segment sum."
        )
    logger.warning(f"Default spoke dimension {value} breaks the parity rule, using {nearest} instead.")
    return nearest


def split_at_midpoints(adapter: GeometryAdapter, curve_a: Curve, curve_b: Curve) -> MidpointSplit:
    """Split both curves at half their arc length."""
    fragments = []
    waists = []
    for curve in (curve_a, curve_b):
        point = adapter.get_point_at_arc_position(curve, SPLIT_POSITION)
        parameter = adapter.get_parameter_at_point(curve, point)
        head, tail = adapter.split(curve, parameter)
        fragments.append((head, tail))
        waists.append(adapter.get_node_point(adapter.get_nodes(head)[1]))

    return MidpointSplit(
        a_fragments=fragments[0],
        b_fragments=fragments[1],
        waist_a=waists[0],
        waist_b=waists[1],
    )
