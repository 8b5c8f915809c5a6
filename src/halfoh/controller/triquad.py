"""
Triangle-to-Triquad Matching
============================
Decides where three curves forming a triangle must be cut so that their pieces,
joined to the triangle centroid, bound three structured quads.

Walking the triangle loop, curve 1 is cut ``b - 1`` segments after its start,
curve 2 ``c - 1`` and curve 3 ``a - 1`` segments after theirs. The quad at each
triangle corner is then bounded by the two fragments meeting there and two
spokes, and its opposite edges carry equal segment counts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence, TYPE_CHECKING, Union

from halfoh.model.errors import InfeasibleError, NonIntegerMatchError, PatchConstructionError
from halfoh.model.plan import SideSplit, SplitOffsets, SplitPlan

if TYPE_CHECKING:
    from halfoh.controller.adapter import GeometryAdapter

logger = logging.getLogger(__name__)

CurveOrChain = Union[Any, Sequence[Any]]


def match_segments(l1: int, l2: int, l3: int) -> SplitOffsets:
    """
    Solve the integer matching for three segment counts.

    Raises:
        InfeasibleError: A count is not strictly less than the sum of the other two.
        NonIntegerMatchError: The offsets are fractional (odd segment sum).
    """
    counts = (l1, l2, l3)
    for side, count in enumerate(counts, start=1):
        if count >= sum(counts) - count:
            raise InfeasibleError(counts, side)

    offsets = []
    for numerator in (l1 + l3 - l2, l1 + l2 - l3, l2 + l3 - l1):
        half, remainder = divmod(numerator, 2)
        if remainder:
            raise NonIntegerMatchError(counts)
        offsets.append(half + 1)

    return SplitOffsets(a=offsets[0], b=offsets[1], c=offsets[2])


@dataclass
class _Side:
    """A triangle side: curves in loop order, each flagged when it runs backwards."""
    curves: list[Any]
    backwards: list[bool]
    start: Any
    end: Any

    def reverse(self) -> None:
        self.curves.reverse()
        self.backwards = [not flag for flag in reversed(self.backwards)]
        self.start, self.end = self.end, self.start


def _as_side(adapter: GeometryAdapter, curves: CurveOrChain) -> _Side:
    chain = list(curves) if isinstance(curves, (list, tuple)) else [curves]
    if not chain:
        raise PatchConstructionError("A triangle side needs at least one curve.")

    nodes = [adapter.get_nodes(curve) for curve in chain]
    if len(chain) == 1:
        return _Side(curves=chain, backwards=[False], start=nodes[0][0], end=nodes[0][1])

    # Orient the first curve towards the second, then follow the chain
    first_start, first_end = nodes[0]
    if first_end in nodes[1]:
        backwards, current = [False], first_end
    elif first_start in nodes[1]:
        backwards, current = [True], first_start
    else:
        raise PatchConstructionError("Chain curves are not joined end to end.")
    start = first_end if backwards[0] else first_start

    for start_node, end_node in nodes[1:]:
        if start_node == current:
            backwards.append(False)
            current = end_node
        elif end_node == current:
            backwards.append(True)
            current = start_node
        else:
            raise PatchConstructionError("Chain curves are not joined end to end.")
    return _Side(curves=chain, backwards=backwards, start=start, end=current)


def _orient_loop(sides: list[_Side]) -> None:
    first, second, third = sides
    if first.end != second.start and first.end != second.end:
        first.reverse()
    if first.end != second.start and first.end != second.end:
        raise PatchConstructionError("The three sides do not form a closed triangle.")
    if second.start != first.end:
        second.reverse()
    if third.start != second.end:
        third.reverse()
    if third.start != second.end or third.end != first.start:
        raise PatchConstructionError("The three sides do not form a closed triangle.")


def _segment_count(adapter: GeometryAdapter, side: _Side) -> int:
    return sum(adapter.get_dimension(curve) - 1 for curve in side.curves)


def _split_side(adapter: GeometryAdapter, side: _Side, offset: int) -> SideSplit:
    """Cut a side ``offset - 1`` segments after its start, reusing chain junctions."""
    remaining = offset - 1
    for position, (curve, backwards) in enumerate(zip(side.curves, side.backwards)):
        segments = adapter.get_dimension(curve) - 1
        if remaining > segments:
            remaining -= segments
            continue

        head = tuple(side.curves[:position])
        tail = tuple(side.curves[position + 1:])
        if remaining == segments:
            # Split position is the junction after this curve
            start_node, end_node = adapter.get_nodes(curve)
            junction = start_node if backwards else end_node
            return SideSplit(
                offset=offset,
                point=adapter.get_node_point(junction),
                head=head + (curve,),
                tail=tail,
            )

        index = segments - remaining if backwards else remaining
        point = adapter.get_grid_point(curve, index)
        try:
            first, second = adapter.split(curve, adapter.get_grid_parameter(curve, index))
        except ValueError as e:
            raise PatchConstructionError(f"Cannot split '{adapter.get_name(curve)}': {e}") from e
        if backwards:
            first, second = second, first
        return SideSplit(offset=offset, point=point, head=head + (first,), tail=(second,) + tail)

    raise PatchConstructionError(f"Offset {offset} lies beyond the end of the side.")


def solve_tri_quad(
    adapter: GeometryAdapter,
    curve1: CurveOrChain,
    curve2: CurveOrChain,
    curve3: CurveOrChain,
) -> SplitPlan:
    """
    Match and cut the three sides of a triangle.

    Args:
        adapter: Geometry host owning the curves.
        curve1: First side, a curve or a chain of curves joined end to end.
        curve2: Second side.
        curve3: Third side.

    Returns:
        SplitPlan with the offsets, split points and fragments of each side, in
        the order of the arguments.

    Raises:
        InfeasibleError, NonIntegerMatchError: The counts admit no triquad.
        PatchConstructionError: The sides do not close into a triangle.
    """
    sides = [_as_side(adapter, curves) for curves in (curve1, curve2, curve3)]
    _orient_loop(sides)

    counts = tuple(_segment_count(adapter, side) for side in sides)
    offsets = match_segments(*counts)
    logger.debug(f"Segment counts {counts} matched with a={offsets.a}, b={offsets.b}, c={offsets.c}.")

    side_offsets = (offsets.offset_for_curve1, offsets.offset_for_curve2, offsets.offset_for_curve3)
    splits: list[SideSplit] = []
    try:
        for side, offset in zip(sides, side_offsets):
            splits.append(_split_side(adapter, side, offset))
    except PatchConstructionError as e:
        # Earlier cuts are not undone; callers sharing those curves need the fragments
        e.cut_sides = tuple(splits)
        raise
    return SplitPlan(
        segment_counts=counts,
        offsets=offsets,
        side1=splits[0],
        side2=splits[1],
        side3=splits[2],
    )
