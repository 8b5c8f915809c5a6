"""
In-Memory Geometry Host
=======================
A numpy implementation of the geometry adapter.

Why is this file needed?
------------------------
1. Standalone runs: The command-line tool and the tests need a geometry host
   without a CAD kernel. Curves are polylines with a grid point distribution,
   patches are structured grids filled by transfinite interpolation.
2. Relaxation: It drives the Winslow kernels of `elliptic` and lets nodes of
   floating edges slide along their host curves.
"""
from __future__ import annotations

import itertools
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np

from halfoh.config import NODE_CACHE_DECIMALS, SLIDE_RELAXATION
from halfoh.controller import elliptic
from halfoh.controller.adapter import AngleMode, EdgeConstraint, GeometryAdapter
from halfoh.model.geometry_primitives import Point

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class MemoryNode:
    id: int
    coords: npt.NDArray[np.float64]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id}, coords={self.coords})"


@dataclass(eq=False)
class MemoryCurve:
    id: int
    name: str
    shape: npt.NDArray[np.float64]  # (k, 3) polyline
    start: MemoryNode
    end: MemoryNode
    params: npt.NDArray[np.float64]  # Arc-length fractions of the grid points
    custom_distribution: bool = False

    @property
    def dimension(self) -> int:
        return len(self.params)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, dimension={self.dimension})"


@dataclass(eq=False)
class PatchEdge:
    curve: MemoryCurve
    reversed: bool
    constraint: EdgeConstraint = EdgeConstraint.FIXED
    angle_mode: AngleMode = AngleMode.NONE


@dataclass(eq=False)
class MemoryPatch:
    id: int
    name: str
    edges: list[PatchEdge]
    grid: npt.NDArray[np.float64]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.grid.shape[0], self.grid.shape[1]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, shape={self.shape})"


@dataclass(eq=False)
class MemoryRegion:
    id: int
    name: str
    curves: list[MemoryCurve] = field(default_factory=list)


class NodeCache:
    """
    Helper to prevent duplicate nodes.
    Maps rounded (x, y, z) coordinates to nodes.
    """
    def __init__(self, decimals: int = NODE_CACHE_DECIMALS):
        self.cache: Dict[Tuple[float, float, float], MemoryNode] = {}
        self.decimals = decimals
        self._ids = itertools.count(1)

    def _key(self, coords: npt.NDArray[np.float64]) -> Tuple[float, float, float]:
        return tuple(round(float(c), self.decimals) for c in coords)

    def get_or_create(self, coords: npt.NDArray[np.float64]) -> MemoryNode:
        key = self._key(coords)
        if key in self.cache:
            return self.cache[key]

        node = MemoryNode(id=next(self._ids), coords=np.array(coords, dtype=np.float64))
        self.cache[key] = node
        return node

    def __len__(self) -> int:
        return len(self.cache)


def _as_points(points: Sequence[Sequence[float]] | npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    array = np.asarray(points, dtype=np.float64)
    if array.ndim != 2 or array.shape[1] not in (2, 3):
        raise ValueError(f"Expected an (n, 2) or (n, 3) point array, got shape {array.shape}.")
    if array.shape[1] == 2:
        array = np.column_stack((array, np.zeros(len(array))))

    # Drop consecutive duplicates, arc-length interpolation needs increasing lengths
    keep = np.ones(len(array), dtype=bool)
    keep[1:] = np.linalg.norm(np.diff(array, axis=0), axis=1) > 0.0
    return array[keep]


class MemoryGeometryAdapter(GeometryAdapter):
    def __init__(self) -> None:
        self.nodes = NodeCache()
        self._ids = itertools.count(1)
        self._curves: Dict[int, MemoryCurve] = {}
        self._patches: Dict[int, MemoryPatch] = {}
        self._patch_keys: set[frozenset[int]] = set()
        self._regions: Dict[int, MemoryRegion] = {}

    @property
    def curves(self) -> list[MemoryCurve]:
        return list(self._curves.values())

    @property
    def patches(self) -> list[MemoryPatch]:
        return list(self._patches.values())

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def create_curve(
        self,
        points: Sequence[Sequence[float]] | npt.NDArray[np.float64],
        dimension: int,
        name: Optional[str] = None,
        distribution: Optional[Sequence[float]] = None,
    ) -> MemoryCurve:
        """
        Register a polyline curve.

        Args:
            points: Polyline vertices, (n, 2) or (n, 3).
            dimension: Number of grid points (at least 2).
            name: Display name; generated when omitted.
            distribution: Optional arc-length fractions of the grid points,
                increasing from 0 to 1, one per grid point.
        """
        shape = _as_points(points)
        if len(shape) < 2:
            raise ValueError("A curve needs at least two distinct points.")
        if dimension < 2:
            raise ValueError(f"Curve dimension must be at least 2, got {dimension}.")

        if distribution is None:
            params = np.linspace(0.0, 1.0, dimension)
            custom = False
        else:
            params = np.asarray(distribution, dtype=np.float64)
            if len(params) != dimension:
                raise ValueError(f"Distribution has {len(params)} values for dimension {dimension}.")
            if not (np.isclose(params[0], 0.0) and np.isclose(params[-1], 1.0)) or np.any(np.diff(params) <= 0.0):
                raise ValueError("Distribution must increase strictly from 0 to 1.")
            params = params.copy()
            params[0], params[-1] = 0.0, 1.0
            custom = True

        curve_id = next(self._ids)
        curve = MemoryCurve(
            id=curve_id,
            name=name or f"curve-{curve_id}",
            shape=shape,
            start=self.nodes.get_or_create(shape[0]),
            end=self.nodes.get_or_create(shape[-1]),
            params=params,
            custom_distribution=custom,
        )
        self._curves[curve.id] = curve
        logger.debug(f"Created {curve} between nodes {curve.start.id} and {curve.end.id}.")
        return curve

    def create_region(self, curves: Sequence[MemoryCurve], name: Optional[str] = None) -> MemoryRegion:
        region_id = next(self._ids)
        region = MemoryRegion(id=region_id, name=name or f"region-{region_id}", curves=list(curves))
        self._regions[region.id] = region
        return region

    # ------------------------------------------------------------------
    # Curve geometry
    # ------------------------------------------------------------------
    @staticmethod
    def _arc_lengths(curve: MemoryCurve) -> npt.NDArray[np.float64]:
        segments = np.linalg.norm(np.diff(curve.shape, axis=0), axis=1)
        return np.concatenate(([0.0], np.cumsum(segments)))

    def _points_at(self, curve: MemoryCurve, params: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        cumulative = self._arc_lengths(curve)
        s = np.asarray(params, dtype=np.float64) * cumulative[-1]
        return np.column_stack([np.interp(s, cumulative, curve.shape[:, k]) for k in range(3)])

    def _project(self, curve: MemoryCurve, points: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """Arc-length fractions of the closest curve points to each of the given points."""
        points = np.atleast_2d(points)
        start = curve.shape[:-1]
        direction = np.diff(curve.shape, axis=0)
        length2 = np.sum(direction * direction, axis=1)

        relative = points[:, None, :] - start[None, :, :]
        t = np.clip(np.sum(relative * direction[None], axis=-1) / length2[None], 0.0, 1.0)
        foot = start[None] + t[..., None] * direction[None]
        distance2 = np.sum((points[:, None, :] - foot) ** 2, axis=-1)

        nearest = np.argmin(distance2, axis=1)
        cumulative = self._arc_lengths(curve)
        arc = cumulative[nearest] + t[np.arange(len(points)), nearest] * np.sqrt(length2[nearest])
        return arc / cumulative[-1]

    def _grid(self, curve: MemoryCurve) -> npt.NDArray[np.float64]:
        return self._points_at(curve, curve.params)

    def get_name(self, curve: MemoryCurve) -> str:
        return curve.name

    def get_dimension(self, curve: MemoryCurve) -> int:
        return curve.dimension

    def set_dimension(self, curve: MemoryCurve, dimension: int) -> None:
        if dimension < 2:
            raise ValueError(f"Curve dimension must be at least 2, got {dimension}.")
        if curve.custom_distribution:
            # Stretch the custom spacing over the new point count
            old = np.linspace(0.0, 1.0, curve.dimension)
            curve.params = np.interp(np.linspace(0.0, 1.0, dimension), old, curve.params)
        else:
            curve.params = np.linspace(0.0, 1.0, dimension)
        logger.debug(f"Dimension of '{curve.name}' set to {dimension}.")

    def reset_distribution(self, curve: MemoryCurve) -> None:
        curve.params = np.linspace(0.0, 1.0, curve.dimension)
        curve.custom_distribution = False

    def balance_distributions(self, curve: MemoryCurve) -> None:
        # Distributions are stored per curve here, neighbours never depend on them
        logger.debug(f"Nothing to rebalance around '{curve.name}'.")

    def get_length(self, curve: MemoryCurve) -> float:
        return float(self._arc_lengths(curve)[-1])

    def get_point_at_arc_position(self, curve: MemoryCurve, position: float) -> Point:
        if not 0.0 <= position <= 1.0:
            raise ValueError(f"Arc position must lie in [0, 1], got {position}.")
        return Point.from_array(self._points_at(curve, np.array([position]))[0])

    def get_parameter_at_point(self, curve: MemoryCurve, point: Point) -> float:
        return float(self._project(curve, point.to_array())[0])

    def get_grid_point(self, curve: MemoryCurve, index: int) -> Point:
        return Point.from_array(self._points_at(curve, np.atleast_1d(curve.params[index]))[0])

    def get_grid_parameter(self, curve: MemoryCurve, index: int) -> float:
        return float(curve.params[index])

    def split(self, curve: MemoryCurve, parameter: float) -> list[MemoryCurve]:
        """
        Split a curve at the grid point nearest to the parameter.

        The original curve is replaced by two fragments; the first runs from the
        curve start to the split point.
        """
        if curve.id not in self._curves:
            raise ValueError(f"Curve '{curve.name}' is not registered (already split?).")
        if any(edge.curve is curve for patch in self._patches.values() for edge in patch.edges):
            raise ValueError(f"Curve '{curve.name}' bounds a patch and cannot be split.")

        index = int(np.argmin(np.abs(curve.params - parameter)))
        if index == 0 or index == curve.dimension - 1:
            raise ValueError(f"Parameter {parameter} of '{curve.name}' falls on an end point.")
        t = float(curve.params[index])
        if not np.isclose(t, parameter):
            logger.debug(f"Split of '{curve.name}' snapped from {parameter:.6f} to grid point {index} ({t:.6f}).")

        point = self._points_at(curve, np.array([t]))[0]
        cumulative = self._arc_lengths(curve)
        s = t * cumulative[-1]
        gap = 1e-12 * cumulative[-1]
        head_shape = np.vstack((curve.shape[cumulative < s - gap], point))
        tail_shape = np.vstack((point, curve.shape[cumulative > s + gap]))

        node = self.nodes.get_or_create(point)
        head_params = curve.params[:index + 1] / t
        tail_params = (curve.params[index:] - t) / (1.0 - t)
        head_params[-1] = 1.0
        tail_params[0], tail_params[-1] = 0.0, 1.0

        fragments = []
        for suffix, shape, start, end, params in (
            ("1", head_shape, curve.start, node, head_params),
            ("2", tail_shape, node, curve.end, tail_params),
        ):
            fragment = MemoryCurve(
                id=next(self._ids),
                name=f"{curve.name}-{suffix}",
                shape=shape,
                start=start,
                end=end,
                params=params,
                custom_distribution=curve.custom_distribution,
            )
            self._curves[fragment.id] = fragment
            fragments.append(fragment)

        del self._curves[curve.id]
        logger.debug(
            f"Split '{curve.name}' at grid point {index + 1} into dimensions "
            f"{fragments[0].dimension} and {fragments[1].dimension}."
        )
        return fragments

    def create_two_point_curve(self, start: Point, end: Point, dimension: int) -> MemoryCurve:
        if start.distance_to(end) == 0.0:
            raise ValueError("A two-point curve needs distinct end points.")
        return self.create_curve([start.to_array(), end.to_array()], dimension)

    def _reverse(self, curve: MemoryCurve) -> None:
        curve.shape = curve.shape[::-1].copy()
        curve.start, curve.end = curve.end, curve.start
        curve.params = 1.0 - curve.params[::-1]
        for patch in self._patches.values():
            for edge in patch.edges:
                if edge.curve is curve:
                    edge.reversed = not edge.reversed

    def align_orientation(self, curve: MemoryCurve, reference_curves: Sequence[MemoryCurve]) -> None:
        reference_nodes = {node for ref in reference_curves if ref is not curve for node in (ref.start, ref.end)}
        if curve.start in reference_nodes:
            return
        if curve.end in reference_nodes:
            self._reverse(curve)
            logger.debug(f"Reversed '{curve.name}' to start on the reference curves.")

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------
    def get_nodes(self, curve: MemoryCurve) -> tuple[MemoryNode, MemoryNode]:
        return curve.start, curve.end

    def get_node_point(self, node: MemoryNode) -> Point:
        return Point.from_array(node.coords)

    def get_adjacent_curves(self, node: MemoryNode, curves: Sequence[MemoryCurve]) -> list[MemoryCurve]:
        return [curve for curve in curves if curve.start is node or curve.end is node]

    # ------------------------------------------------------------------
    # Patches
    # ------------------------------------------------------------------
    @staticmethod
    def _four_cycles(curves: Sequence[MemoryCurve]) -> list[tuple[list[MemoryNode], list[MemoryCurve]]]:
        """Every closed chain of four curves through four distinct nodes."""
        incidence: Dict[MemoryNode, list[MemoryCurve]] = defaultdict(list)
        for curve in curves:
            if curve.start is curve.end:
                continue
            incidence[curve.start].append(curve)
            incidence[curve.end].append(curve)

        def other(curve: MemoryCurve, node: MemoryNode) -> MemoryNode:
            return curve.end if curve.start is node else curve.start

        cycles = []
        seen: set[frozenset[int]] = set()
        for c0 in curves:
            if c0.start is c0.end:
                continue
            n0, n1 = c0.start, c0.end
            for c1 in incidence[n1]:
                if c1 is c0:
                    continue
                n2 = other(c1, n1)
                if n2 is n0:
                    continue
                for c2 in incidence[n2]:
                    if c2 is c0 or c2 is c1:
                        continue
                    n3 = other(c2, n2)
                    if n3 is n0 or n3 is n1:
                        continue
                    for c3 in incidence[n3]:
                        if c3 is c0 or c3 is c1 or c3 is c2 or other(c3, n3) is not n0:
                            continue
                        key = frozenset(c.id for c in (c0, c1, c2, c3))
                        if key in seen:
                            continue
                        seen.add(key)
                        cycles.append(([n0, n1, n2, n3], [c0, c1, c2, c3]))
        return cycles

    def _edge_points(self, edge: PatchEdge) -> npt.NDArray[np.float64]:
        points = self._grid(edge.curve)
        return points[::-1] if edge.reversed else points

    def _assemble(self, patch: MemoryPatch) -> npt.NDArray[np.float64]:
        """Patch grid with its boundary rows refreshed from the host curves."""
        grid = patch.grid
        grid[:, 0] = self._edge_points(patch.edges[0])
        grid[-1, :] = self._edge_points(patch.edges[1])
        grid[:, -1] = self._edge_points(patch.edges[2])
        grid[0, :] = self._edge_points(patch.edges[3])
        return grid

    def build_structured_patch(self, curves: Sequence[MemoryCurve]) -> list[MemoryPatch]:
        """
        Create a structured patch for every four-sided loop of the curve set.

        Loops whose opposite edges differ in dimension are skipped, as are loops
        that already bound a patch.
        """
        created = []
        for nodes, loop in self._four_cycles(list(curves)):
            key = frozenset(c.id for c in loop)
            if key in self._patch_keys:
                continue
            if loop[0].dimension != loop[2].dimension or loop[1].dimension != loop[3].dimension:
                logger.warning(
                    f"Skipping loop {[c.name for c in loop]}: opposite dimensions "
                    f"{loop[0].dimension}/{loop[2].dimension} and {loop[1].dimension}/{loop[3].dimension} differ."
                )
                continue

            # Counter-clockwise corners in the XY plane
            corners = np.array([n.coords for n in nodes])
            area = 0.5 * np.sum(corners[:, 0] * np.roll(corners[:, 1], -1) - np.roll(corners[:, 0], -1) * corners[:, 1])
            if area < 0.0:
                nodes = [nodes[0], nodes[3], nodes[2], nodes[1]]
                loop = [loop[3], loop[2], loop[1], loop[0]]

            n0, n1, n2, n3 = nodes
            c0, c1, c2, c3 = loop
            edges = [
                PatchEdge(curve=c0, reversed=c0.start is not n0),  # bottom: n0 -> n1
                PatchEdge(curve=c1, reversed=c1.start is not n1),  # right: n1 -> n2
                PatchEdge(curve=c2, reversed=c2.start is not n3),  # top: n3 -> n2
                PatchEdge(curve=c3, reversed=c3.start is not n0),  # left: n0 -> n3
            ]
            grid = elliptic.transfinite_grid(*(self._edge_points(edge) for edge in edges))

            patch_id = next(self._ids)
            patch = MemoryPatch(id=patch_id, name=f"patch-{patch_id}", edges=edges, grid=grid)
            self._patches[patch.id] = patch
            self._patch_keys.add(key)
            created.append(patch)
            logger.debug(f"Built {patch} from {[c.name for c in loop]}.")
        return created

    def get_patch_grid(self, patch: MemoryPatch) -> npt.NDArray[np.float64]:
        return self._assemble(patch).copy()

    def get_edge_curve(self, patch: MemoryPatch, edge_index: int) -> MemoryCurve:
        return patch.edges[edge_index].curve

    def get_edge_count(self, patch: MemoryPatch) -> int:
        return len(patch.edges)

    def get_edge_endpoints(self, patch: MemoryPatch, edge_index: int) -> tuple[Point, Point]:
        edge = patch.edges[edge_index]
        start, end = (edge.curve.end, edge.curve.start) if edge.reversed else (edge.curve.start, edge.curve.end)
        return self.get_node_point(start), self.get_node_point(end)

    def get_edge_constraint(self, patch: MemoryPatch, edge_index: int) -> EdgeConstraint:
        return patch.edges[edge_index].constraint

    def set_edge_constraint(self, patch: MemoryPatch, edge_index: int, kind: EdgeConstraint) -> None:
        patch.edges[edge_index].constraint = EdgeConstraint(kind)

    def get_edge_angle_mode(self, patch: MemoryPatch, edge_index: int) -> AngleMode:
        return patch.edges[edge_index].angle_mode

    def set_edge_angle_mode(self, patch: MemoryPatch, edge_index: int, kind: AngleMode) -> None:
        patch.edges[edge_index].angle_mode = AngleMode(kind)

    def run_elliptic(self, patches: Sequence[MemoryPatch], iterations: int) -> None:
        """
        Relax the patches for a number of Winslow sweeps.

        Each sweep smooths every patch interior, then moves the interior nodes
        of floating edges along their curves. Slide proposals of all patches
        sharing a curve are averaged; an update that would fold the curve
        distribution is dropped.
        """
        if iterations < 0:
            raise ValueError(f"Iteration count must not be negative, got {iterations}.")
        patches = list(patches)

        for _ in range(iterations):
            proposals: Dict[int, list[npt.NDArray[np.float64]]] = defaultdict(list)
            floating: Dict[int, MemoryCurve] = {}

            for patch in patches:
                patch.grid = elliptic.winslow_sweep(self._assemble(patch))
                for edge_index, edge in enumerate(patch.edges):
                    if edge.constraint != EdgeConstraint.FLOATING or edge.curve.dimension < 3:
                        continue
                    targets = elliptic.slide_targets(patch.grid, edge_index, edge.angle_mode)
                    params = self._project(edge.curve, targets)
                    proposals[edge.curve.id].append(params[::-1] if edge.reversed else params)
                    floating[edge.curve.id] = edge.curve

            for curve_id, candidates in proposals.items():
                curve = floating[curve_id]
                inner = curve.params[1:-1]
                updated = inner + SLIDE_RELAXATION * (np.mean(candidates, axis=0) - inner)
                if np.all(np.diff(np.concatenate(([0.0], updated, [1.0]))) > 0.0):
                    curve.params[1:-1] = updated
                else:
                    logger.debug(f"Dropped a folding slide update of '{curve.name}'.")

        if iterations:
            logger.debug(f"Ran {iterations} elliptic iteration(s) on {len(patches)} patch(es).")

    # ------------------------------------------------------------------
    # Regions
    # ------------------------------------------------------------------
    def get_boundary_curves(self, region: MemoryRegion) -> list[MemoryCurve]:
        return list(region.curves)
