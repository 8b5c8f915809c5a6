"""
Topology Plans and Results
==========================
Value objects handed from one topology stage to the next.

Curve and patch handles stored here are borrowed from the geometry adapter;
these objects never own or destroy them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from halfoh.model.errors import TopologyError
    from halfoh.model.geometry_primitives import Point


@dataclass(frozen=True)
class SpokeBounds:
    """Feasible range of the interior spoke dimension."""
    lower: int
    upper: int
    default: int
    n_short: int  # Vertex count of a half of the shorter curve
    n_long: int

    @property
    def is_empty(self) -> bool:
        return self.upper < self.lower


@dataclass(frozen=True)
class MidpointSplit:
    """Both loop curves cut at their waist points."""
    a_fragments: Tuple[Any, Any]
    b_fragments: Tuple[Any, Any]
    waist_a: Point
    waist_b: Point


@dataclass(frozen=True)
class SplitOffsets:
    """
    Integer solution of the triangle-to-triquad matching.

    ``a``, ``b`` and ``c`` are 1-indexed grid positions. Curve 1 is cut at ``b``,
    curve 2 at ``c`` and curve 3 at ``a``; use the named accessors instead of
    the raw letters.
    """
    a: int
    b: int
    c: int

    @property
    def offset_for_curve1(self) -> int:
        return self.b

    @property
    def offset_for_curve2(self) -> int:
        return self.c

    @property
    def offset_for_curve3(self) -> int:
        return self.a

    # A spoke faces, across its quad, the fragment that shares no corner with it.
    @property
    def spoke_dimension_for_curve1(self) -> int:
        return self.c

    @property
    def spoke_dimension_for_curve2(self) -> int:
        return self.a

    @property
    def spoke_dimension_for_curve3(self) -> int:
        return self.b


@dataclass(frozen=True)
class SideSplit:
    """How one triangle side was divided, in triangle loop direction."""
    offset: int
    point: Point
    head: Tuple[Any, ...]  # Fragments from the side start to the split point
    tail: Tuple[Any, ...]  # Fragments from the split point to the side end

    @property
    def fragments(self) -> Tuple[Any, ...]:
        return self.head + self.tail


@dataclass(frozen=True)
class SplitPlan:
    segment_counts: Tuple[int, int, int]
    offsets: SplitOffsets
    side1: SideSplit
    side2: SideSplit
    side3: SideSplit

    @property
    def split_points(self) -> Tuple[Point, Point, Point]:
        return self.side1.point, self.side2.point, self.side3.point

    @property
    def spoke_dimensions(self) -> Tuple[int, int, int]:
        return (
            self.offsets.spoke_dimension_for_curve1,
            self.offsets.spoke_dimension_for_curve2,
            self.offsets.spoke_dimension_for_curve3,
        )

    @property
    def outer_fragments(self) -> Tuple[Any, ...]:
        return self.side1.fragments + self.side2.fragments + self.side3.fragments


@dataclass
class Pinwheel:
    """Three patches of one half loop meeting at the centroid."""
    centroid: Point
    spokes: list[Any] = field(default_factory=list)
    patches: list[Any] = field(default_factory=list)


@dataclass
class HalfOutcome:
    index: int
    plan: Optional[SplitPlan] = None
    pinwheel: Optional[Pinwheel] = None
    error: Optional[TopologyError] = None
    partial_sides: Tuple[SideSplit, ...] = ()  # Sides cut before a failed split

    @property
    def ok(self) -> bool:
        return self.error is None and self.pinwheel is not None

    @property
    def patches(self) -> list[Any]:
        return list(self.pinwheel.patches) if self.pinwheel is not None else []

    @property
    def cut_sides(self) -> Tuple[SideSplit, ...]:
        """Triangle sides this half has cut in the host, in side order."""
        if self.plan is not None:
            return self.plan.side1, self.plan.side2, self.plan.side3
        return self.partial_sides


@dataclass
class RunReport:
    dimensions: Tuple[int, int]
    bounds: SpokeBounds
    spoke_dimension: int
    spoke: Any = None
    halves: list[HalfOutcome] = field(default_factory=list)
    globally_relaxed: bool = False

    @property
    def ok(self) -> bool:
        return len(self.halves) == 2 and all(half.ok for half in self.halves)

    @property
    def patches(self) -> list[Any]:
        return [patch for half in self.halves for patch in half.patches]

    @property
    def errors(self) -> list[TopologyError]:
        return [half.error for half in self.halves if half.error is not None]
