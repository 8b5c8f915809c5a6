"""
Geometry Adapter Interface
==========================
The boundary between the topology stages and the geometry host that owns
curves, nodes and patches.

Why is this file needed?
------------------------
1. Ownership: Curves, nodes and patches live in the host. The stages only hold
   the opaque handles returned here and never assume control of their lifetime.
2. Substitution: Any host (the in-memory numpy backend, a CAD kernel binding)
   can drive the stages by implementing this class.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from halfoh.model.geometry_primitives import Point

Curve = Any
Node = Any
Patch = Any
Region = Any


class EdgeConstraint(StrEnum):
    FIXED = "Fixed"
    FLOATING = "Floating"


class AngleMode(StrEnum):
    NONE = "None"
    INTERPOLATE = "Interpolate"
    ORTHOGONAL = "Orthogonal"


class GeometryAdapter(ABC):

    # --- Curves ---
    @abstractmethod
    def get_name(self, curve: Curve) -> str: ...

    @abstractmethod
    def get_dimension(self, curve: Curve) -> int: ...

    @abstractmethod
    def set_dimension(self, curve: Curve, dimension: int) -> None: ...

    @abstractmethod
    def reset_distribution(self, curve: Curve) -> None:
        """Drop any custom grid point distribution of the curve."""

    @abstractmethod
    def balance_distributions(self, curve: Curve) -> None:
        """Host-side fix-up of distributions depending on a changed curve dimension."""

    @abstractmethod
    def get_length(self, curve: Curve) -> float: ...

    @abstractmethod
    def get_point_at_arc_position(self, curve: Curve, position: float) -> Point: ...

    @abstractmethod
    def get_parameter_at_point(self, curve: Curve, point: Point) -> float: ...

    @abstractmethod
    def get_grid_point(self, curve: Curve, index: int) -> Point:
        """Coordinate of the 0-based grid point ``index``."""

    @abstractmethod
    def get_grid_parameter(self, curve: Curve, index: int) -> float: ...

    @abstractmethod
    def split(self, curve: Curve, parameter: float) -> list[Curve]:
        """Split the curve at the parameter; returns the fragments in curve order."""

    @abstractmethod
    def create_two_point_curve(self, start: Point, end: Point, dimension: int) -> Curve: ...

    @abstractmethod
    def align_orientation(self, curve: Curve, reference_curves: Sequence[Curve]) -> None:
        """Orient the curve so that it starts on a node of the reference curves."""

    # --- Nodes ---
    @abstractmethod
    def get_nodes(self, curve: Curve) -> tuple[Node, Node]: ...

    @abstractmethod
    def get_node_point(self, node: Node) -> Point: ...

    @abstractmethod
    def get_adjacent_curves(self, node: Node, curves: Sequence[Curve]) -> list[Curve]: ...

    # --- Patches ---
    @abstractmethod
    def build_structured_patch(self, curves: Sequence[Curve]) -> list[Patch]: ...

    @abstractmethod
    def get_edge_count(self, patch: Patch) -> int: ...

    @abstractmethod
    def get_edge_endpoints(self, patch: Patch, edge_index: int) -> tuple[Point, Point]: ...

    @abstractmethod
    def get_edge_constraint(self, patch: Patch, edge_index: int) -> EdgeConstraint: ...

    @abstractmethod
    def set_edge_constraint(self, patch: Patch, edge_index: int, kind: EdgeConstraint) -> None: ...

    @abstractmethod
    def get_edge_angle_mode(self, patch: Patch, edge_index: int) -> AngleMode: ...

    @abstractmethod
    def set_edge_angle_mode(self, patch: Patch, edge_index: int, kind: AngleMode) -> None: ...

    @abstractmethod
    def run_elliptic(self, patches: Sequence[Patch], iterations: int) -> None: ...

    # --- Regions ---
    @abstractmethod
    def get_boundary_curves(self, region: Region) -> list[Curve]: ...
