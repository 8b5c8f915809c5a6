"""
Patch Preview
=============
Draws structured patch grids with matplotlib, one colour per patch.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence, TYPE_CHECKING

import matplotlib.pyplot as plt
import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt
    from matplotlib.axes import Axes


def plot_patches(
    grids: Sequence[npt.NDArray[np.float64]],
    ax: Optional[Axes] = None,
    show: bool = False,
) -> Axes:
    """
    Plot the grid lines of every patch in the XY plane.

    Args:
        grids: Patch grids of shape (ni, nj, 3).
        ax: Axes to draw into; a new figure is created when omitted.
        show: Call plt.show() when done.

    Returns:
        The axes drawn into.
    """
    if ax is None:
        plt.rcParams["figure.constrained_layout.use"] = True
        _, ax = plt.subplots()

    cmap = plt.get_cmap("gist_rainbow", max(len(grids), 1))
    for k, grid in enumerate(grids):
        color = cmap(k % cmap.N)

        # Fill the patch outline, then draw both families of grid lines
        outline = np.vstack((grid[:, 0], grid[-1, 1:], grid[-2::-1, -1], grid[0, -2::-1]))
        ax.fill(outline[:, 0], outline[:, 1], color=color, alpha=0.15, label=f"PATCH {k + 1}")
        for j in range(grid.shape[1]):
            ax.plot(grid[:, j, 0], grid[:, j, 1], color="black", lw=0.5)
        for i in range(grid.shape[0]):
            ax.plot(grid[i, :, 0], grid[i, :, 1], color="black", lw=0.5)

        center = grid.reshape(-1, 3).mean(axis=0)
        ax.text(center[0], center[1], str(k + 1), fontsize=12, color=color, ha="center", va="center")

    ax.set_aspect("equal")
    ax.set_title(f"Half O-H patches plotted at {datetime.now().strftime('%d.%m.%Y %H:%M:%S')}")
    ax.set_xlabel("X Coordinate")
    ax.set_ylabel("Y Coordinate")
    if grids:
        ax.legend(loc="best")

    if show:
        plt.show()
    return ax
