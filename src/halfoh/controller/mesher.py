"""
Mesh Export (Gmsh Adapter)
==========================
This module writes the structured patch grids as a quad mesh.

Why is this file needed?
------------------------
1. Merging: Neighbouring patches repeat the grid points of their shared edges.
   They are merged into one node set before export.
2. Export: It hands the quads to the Gmsh API as discrete surfaces, one
   physical group per patch, and writes a .msh file the usual solvers read.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple, TYPE_CHECKING

import gmsh
import numpy as np

from halfoh.config import NODE_CACHE_DECIMALS

if TYPE_CHECKING:
    import numpy.typing as npt

# Get logger
logger = logging.getLogger(__name__)

GMSH_QUAD4 = 3


@dataclass
class MeshStats:
    """Return object containing mesh metadata."""
    filepath: str
    num_nodes: int
    num_elements: int


def merge_patch_grids(
    grids: Sequence[npt.NDArray[np.float64]],
) -> Tuple[npt.NDArray[np.float64], npt.NDArray[np.int64], npt.NDArray[np.int64]]:
    """
    Merge the grid points of all patches.

    Args:
        grids: Patch grids of shape (ni, nj, 3).

    Returns:
        points (n, 3), quads (m, 4) as 0-based point indices in counter-clockwise
        order, and the patch index of every quad.
    """
    # Rounded coordinates -> merged point index
    cache: Dict[Tuple[float, ...], int] = {}
    points = []
    quads = []
    patch_ids = []

    for patch_index, grid in enumerate(grids):
        ni, nj = grid.shape[0], grid.shape[1]
        indices = np.empty((ni, nj), dtype=np.int64)
        for i in range(ni):
            for j in range(nj):
                key = tuple(round(float(c), NODE_CACHE_DECIMALS) for c in grid[i, j])
                if key not in cache:
                    cache[key] = len(points)
                    points.append(grid[i, j])
                indices[i, j] = cache[key]

        quads.append(np.stack(
            (indices[:-1, :-1], indices[1:, :-1], indices[1:, 1:], indices[:-1, 1:]),
            axis=-1,
        ).reshape(-1, 4))
        patch_ids.append(np.full((ni - 1) * (nj - 1), patch_index, dtype=np.int64))

    if not points:
        return np.empty((0, 3)), np.empty((0, 4), dtype=np.int64), np.empty(0, dtype=np.int64)
    return np.array(points, dtype=np.float64), np.concatenate(quads), np.concatenate(patch_ids)


class GmshExporter:
    def __init__(self):
        self._initialized = False

    def _ensure_init(self):
        """Initialize Gmsh if not already initialized."""
        if not self._initialized:
            gmsh.initialize()
            self._initialized = True
        # Double-check gmsh state in case it was finalized externally
        elif not gmsh.is_initialized():
            logger.warning("Gmsh was finalized externally, reinitializing")
            gmsh.initialize()
            self._initialized = True

    def write(self, grids: Sequence[npt.NDArray[np.float64]], filename: str) -> MeshStats:
        """
        Write the patch grids to a .msh file (format 2.2).

        Each patch becomes a discrete surface with the physical name "PATCH k".
        """
        if not grids:
            raise ValueError("No patch grids to export.")

        points, quads, patch_ids = merge_patch_grids(grids)
        self._ensure_init()

        try:
            gmsh.model.add("HalfOH")
            gmsh.option.setNumber("Mesh.MshFileVersion", 2.2)
            logger.info(f"Exporting {len(grids)} patches to {filename}.")

            surface_tags = [gmsh.model.addDiscreteEntity(2) for _ in grids]

            # Each node is stored on the first patch that uses it
            owner = np.full(len(points), -1, dtype=np.int64)
            for quad, patch_index in zip(quads, patch_ids):
                unset = quad[owner[quad] < 0]
                owner[unset] = patch_index

            for patch_index, surface_tag in enumerate(surface_tags):
                owned = np.flatnonzero(owner == patch_index)
                gmsh.model.mesh.addNodes(2, surface_tag, (owned + 1).tolist(), points[owned].ravel().tolist())

            element_tag = 1
            for patch_index, surface_tag in enumerate(surface_tags):
                patch_quads = quads[patch_ids == patch_index]
                element_tags = list(range(element_tag, element_tag + len(patch_quads)))
                element_tag += len(patch_quads)
                gmsh.model.mesh.addElementsByType(
                    surface_tag, GMSH_QUAD4, element_tags, (patch_quads + 1).ravel().tolist()
                )
                gmsh.model.addPhysicalGroup(2, [surface_tag], name=f"PATCH {patch_index + 1}")

            gmsh.write(filename)
            logger.info(f"Mesh exported: {len(points)} nodes, {len(quads)} elements.")

            return MeshStats(
                filepath=filename,
                num_nodes=len(points),
                num_elements=len(quads),
            )

        except Exception as e:
            logger.exception("Gmsh export failed")
            raise e

        finally:
            # Cleanup: Release memory and reset state
            if self._initialized:
                try:
                    gmsh.finalize()
                except Exception as finalize_error:
                    logger.warning(f"Failed to finalize Gmsh: {finalize_error}")
                finally:
                    self._initialized = False
