import json

import numpy as np

# Semicircle of radius R closed by its chord, both ends shared
R = 1.0
N_ARC_POINTS = 33

ARC_DIMENSION = 17
CHORD_DIMENSION = 13

angles = np.linspace(0.0, np.pi, N_ARC_POINTS)
arc = np.column_stack((R * np.cos(angles), R * np.sin(angles), np.zeros(N_ARC_POINTS)))
arc[np.abs(arc) < 5e-7] = 0.0

data = {
    "curves": [
        {"name": "arc", "dimension": ARC_DIMENSION, "points": np.round(arc, 6).tolist()},
        {"name": "chord", "dimension": CHORD_DIMENSION, "points": [[-R, 0.0, 0.0], [R, 0.0, 0.0]]},
    ],
    "loop": ["arc", "chord"],
    "region": False,
    "options": {
        "autoDim": True,
        "solve": True,
        "interpolateAngles": True,
        "spokeDimension": None,
    },
}

with open("d_shape.json", "w") as f:
    json.dump(data, f, indent=2)
