"""
Geometric Primitives for the topology stages.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Sequence, TYPE_CHECKING
import numpy as np
import math

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class Point:
    """A point in model space."""
    x: float
    y: float
    z: float = 0.0

    @classmethod
    def from_array(cls, values: Sequence[float] | npt.NDArray[np.float64]) -> Point:
        coords = [float(v) for v in values]
        if len(coords) == 2:
            coords.append(0.0)
        if len(coords) != 3:
            raise ValueError(f"Expected 2 or 3 coordinates, got {len(coords)}.")
        return cls(*coords)

    def distance_to(self, other: Point) -> float:
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2)

    def is_close(self, other: Point, tolerance: float) -> bool:
        """Coordinate-wise coincidence test with an absolute tolerance."""
        return (
            abs(self.x - other.x) <= tolerance
            and abs(self.y - other.y) <= tolerance
            and abs(self.z - other.z) <= tolerance
        )

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y, self.z])


def centroid(points: Iterable[Point]) -> Point:
    """Arithmetic mean of the given points."""
    coords = np.array([p.to_array() for p in points], dtype=np.float64)
    if coords.size == 0:
        raise ValueError("Cannot compute the centroid of an empty point set.")
    return Point.from_array(coords.mean(axis=0))
