"""
Topology Errors
===============
Typed failures of the topology stages.

Fatal kinds abort the whole run before any patch exists. Half-loop kinds
(``HalfLoopError`` subclasses) only abort the half in which they occur; the
pipeline records them and carries on with the other half.
"""
from __future__ import annotations

from enum import StrEnum
from typing import Optional


class FailureKind(StrEnum):
    DIMENSION_TOO_SMALL = "DimensionTooSmall"
    EVEN_DIMENSION_REJECTED = "EvenDimensionRejected"
    INFEASIBLE = "Infeasible"
    NON_INTEGER_MATCH = "NonIntegerMatch"
    PATCH_CONSTRUCTION = "PatchConstructionError"
    SPOKE_DIMENSION_REJECTED = "SpokeDimensionRejected"
    NOT_CLOSED_LOOP = "NotClosedLoop"


class TopologyError(Exception):
    """Base class of every failure raised by the topology stages."""
    kind: FailureKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def fatal(self) -> bool:
        return True


class DimensionTooSmallError(TopologyError):
    kind = FailureKind.DIMENSION_TOO_SMALL

    def __init__(self, curve_name: str, dimension: int, minimum: int) -> None:
        self.curve_name = curve_name
        self.dimension = dimension
        self.minimum = minimum
        super().__init__(
            f"Curve '{curve_name}' has dimension {dimension}, "
            f"it must be increased to at least {minimum}."
        )


class EvenDimensionError(TopologyError):
    kind = FailureKind.EVEN_DIMENSION_REJECTED

    def __init__(self, curve_name: str, dimension: int) -> None:
        self.curve_name = curve_name
        self.dimension = dimension
        super().__init__(
            f"Curve '{curve_name}' has even dimension {dimension}; "
            f"use an odd dimension ({dimension - 1} or {dimension + 1}) or enable autoDim."
        )


class SpokeDimensionError(TopologyError):
    kind = FailureKind.SPOKE_DIMENSION_REJECTED

    def __init__(self, message: str, value: Optional[int] = None) -> None:
        self.value = value
        super().__init__(message)


class LoopTopologyError(TopologyError):
    kind = FailureKind.NOT_CLOSED_LOOP


class HalfLoopError(TopologyError):
    """A failure confined to one half loop."""

    @property
    def fatal(self) -> bool:
        return False


class InfeasibleError(HalfLoopError):
    kind = FailureKind.INFEASIBLE

    def __init__(self, segment_counts: tuple[int, int, int], side: int) -> None:
        self.segment_counts = segment_counts
        self.side = side
        others = [count for i, count in enumerate(segment_counts, start=1) if i != side]
        excess = segment_counts[side - 1] - sum(others) + 1
        super().__init__(
            f"No edge's segment count may exceed the sum of the other two's: "
            f"side {side} has {segment_counts[side - 1]} segments, others have {others[0]} + {others[1]}; "
            f"reduce side {side} by at least {excess} or enlarge the others."
        )


class NonIntegerMatchError(HalfLoopError):
    kind = FailureKind.NON_INTEGER_MATCH

    def __init__(self, segment_counts: tuple[int, int, int]) -> None:
        self.segment_counts = segment_counts
        super().__init__(
            f"The sum of the three segment counts must be even: "
            f"{' + '.join(str(c) for c in segment_counts)} = {sum(segment_counts)}; "
            f"change one dimension by one."
        )


class PatchConstructionError(HalfLoopError):
    kind = FailureKind.PATCH_CONSTRUCTION

    # Sides a solver had already cut when the failure occurred, in side order
    cut_sides: tuple = ()
