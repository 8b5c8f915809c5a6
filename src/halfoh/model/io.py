"""
Input/Output Manager (JSON, VTU)
Handles loading loop descriptions from .json files and exporting patch grids
to .vtu files.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, TYPE_CHECKING

import meshio
import numpy as np

from halfoh.controller.mesher import merge_patch_grids
from halfoh.model.options import TopologyOptions

if TYPE_CHECKING:
    import numpy.typing as npt
    from halfoh.controller.memory_adapter import MemoryCurve, MemoryGeometryAdapter, MemoryRegion

# Get module logger
logger = logging.getLogger(__name__)


@dataclass
class CurveSpec:
    name: str
    points: npt.NDArray[np.float64]
    dimension: int
    distribution: Optional[list[float]] = None


@dataclass
class LoopInput:
    """A parsed input file: curves, the loop to build in, and the run options."""
    curves: list[CurveSpec]
    loop: list[str]
    region: bool = False
    options: TopologyOptions = field(default_factory=TopologyOptions)

    def create_curves(self, adapter: MemoryGeometryAdapter) -> Dict[str, MemoryCurve]:
        """Register every curve with the adapter, keyed by name."""
        return {
            spec.name: adapter.create_curve(spec.points, spec.dimension, spec.name, spec.distribution)
            for spec in self.curves
        }

    def loop_curves(self, adapter: MemoryGeometryAdapter) -> list[MemoryCurve]:
        created = self.create_curves(adapter)
        return [created[name] for name in self.loop]

    def create_region(self, adapter: MemoryGeometryAdapter) -> MemoryRegion:
        return adapter.create_region(self.loop_curves(adapter), name="region")


class IOManager:
    @staticmethod
    def load_input(filepath: str) -> LoopInput:
        """
        Load a loop description from a .json file.

        Raises:
            FileNotFoundError: The file does not exist.
            ValueError: The file is not valid JSON or misses required entries.
        """
        logger.info(f"Loading input from: {filepath}")
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Input file not found: {filepath}")

        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        return IOManager.parse_input(data)

    @staticmethod
    def parse_input(data: Dict[str, Any]) -> LoopInput:
        if not isinstance(data, dict) or "curves" not in data:
            raise ValueError("Input must be an object with a 'curves' list.")

        curves = []
        for i, entry in enumerate(data["curves"]):
            try:
                spec = CurveSpec(
                    name=str(entry.get("name", f"curve-{i + 1}")),
                    points=np.asarray(entry["points"], dtype=np.float64),
                    dimension=int(entry["dimension"]),
                    distribution=entry.get("distribution"),
                )
            except (KeyError, TypeError) as e:
                raise ValueError(f"Curve entry {i + 1} is incomplete: {e}") from e
            curves.append(spec)

        names = [spec.name for spec in curves]
        if len(set(names)) != len(names):
            raise ValueError(f"Curve names must be unique, got {names}.")

        region = bool(data.get("region", False))
        loop = data.get("loop")
        if loop is None:
            if len(curves) != 2 and not region:
                raise ValueError(f"'loop' is required when the input holds {len(curves)} curves.")
            loop = names
        loop = [str(name) for name in loop]

        missing = [name for name in loop if name not in names]
        if missing:
            raise ValueError(f"Loop refers to unknown curve(s): {', '.join(missing)}.")
        if not region and len(loop) != 2:
            raise ValueError(f"A loop needs exactly two curves, got {len(loop)}.")

        options = TopologyOptions.from_dict(data.get("options") or {})
        logger.debug(f"Parsed {len(curves)} curve(s), loop {loop}, region={region}, options {options}.")
        return LoopInput(curves=curves, loop=loop, region=region, options=options)

    # ---- EXPORT HELPERS ----
    @staticmethod
    def export_vtu(grids: Sequence[npt.NDArray[np.float64]], filepath: str) -> str:
        """
        Exports the patch grids as a quad mesh with a 'patch' cell array (1-based).
        """
        if not grids:
            raise ValueError("No patch grids to export.")

        points, quads, patch_ids = merge_patch_grids(grids)
        mesh = meshio.Mesh(
            points=points,
            cells=[("quad", quads)],
            cell_data={"patch": [patch_ids + 1]},
        )
        try:
            meshio.write(filepath, mesh)
        except Exception as e:
            logger.exception("Failed to export VTU file")
            raise e

        logger.info(f"Exported {len(quads)} quads to: {filepath}")
        return filepath
