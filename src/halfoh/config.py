"""
Configuration & Constants
=========================
This module serves as the central registry for file paths and numeric constants
of the half O-H topology builder.

Why is this file needed?
------------------------
1. Abstraction: It keeps the magic numbers of the topology rules (minimum curve
   dimension, relaxation iteration counts, coincidence tolerance) in one place.
2. Examples: It resolves the assets directory holding the example input loops.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    EXAMPLE_INPUT_PATH (str): Absolute path to the bundled D-shaped example loop.
"""
import os
from pathlib import Path


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to a resource relative to the project root.
    """
    # config.py is in src/halfoh/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


# Topology rules
MIN_DIMENSION: int = 5  # Smallest odd dimension that still survives the midpoint split + triangle
SPLIT_POSITION: float = 0.5  # Normalized arc position of the waist points

# Elliptic relaxation
HALF_LOOP_ITERATIONS: int = 10
GLOBAL_ITERATIONS: int = 5
SLIDE_RELAXATION: float = 0.5  # Under-relaxation of floating boundary nodes

# Geometry
COINCIDENCE_TOLERANCE: float = 1e-6
NODE_CACHE_DECIMALS: int = 6

# Paths
ASSETS_PATH: str = get_resource_path("assets")
EXAMPLE_INPUT_PATH: str = os.path.join(ASSETS_PATH, "d_shape.json")
