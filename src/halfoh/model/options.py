"""
Topology Options
================
The immutable configuration passed into the pipeline entry point.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TopologyOptions:
    auto_dim: bool = True
    solve: bool = True
    interpolate_angles: bool = True
    spoke_dimension: Optional[int] = None

    # JSON keys of the input file
    _KEYS = {
        "autoDim": "auto_dim",
        "solve": "solve",
        "interpolateAngles": "interpolate_angles",
        "spokeDimension": "spoke_dimension",
    }

    def __post_init__(self) -> None:
        if self.spoke_dimension is not None:
            if isinstance(self.spoke_dimension, bool) or not isinstance(self.spoke_dimension, int):
                raise TypeError(f"spoke_dimension must be an integer, got {self.spoke_dimension!r}.")
            if self.spoke_dimension < 2:
                raise ValueError(f"spoke_dimension must be at least 2, got {self.spoke_dimension}.")

    def to_dict(self) -> Dict[str, Any]:
        values = asdict(self)
        return {key: values[attr] for key, attr in self._KEYS.items()}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> TopologyOptions:
        unknown = set(data) - set(TopologyOptions._KEYS)
        if unknown:
            raise ValueError(f"Unknown option(s): {', '.join(sorted(unknown))}.")
        kwargs = {attr: data[key] for key, attr in TopologyOptions._KEYS.items() if key in data}
        return TopologyOptions(**kwargs)
