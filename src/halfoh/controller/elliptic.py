"""
Structured Grid Kernels
=======================
Vectorised numpy kernels behind the in-memory elliptic relaxation.

Grids are arrays of shape ``(ni, nj, 3)``. Edge indices follow the patch
convention: 0 = bottom (j = 0), 1 = right (i = ni - 1), 2 = top (j = nj - 1),
3 = left (i = 0). Bottom and top run along i, right and left along j.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from halfoh.controller.adapter import AngleMode

if TYPE_CHECKING:
    import numpy.typing as npt

EDGE_COUNT = 4


def transfinite_grid(
    bottom: npt.NDArray[np.float64],
    right: npt.NDArray[np.float64],
    top: npt.NDArray[np.float64],
    left: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """
    Fill a four-sided region by Gordon-Hall transfinite interpolation.

    Args:
        bottom: (ni, 3) points of edge 0, running from the left to the right corner.
        right: (nj, 3) points of edge 1, running from the bottom to the top corner.
        top: (ni, 3) points of edge 2, running from the left to the right corner.
        left: (nj, 3) points of edge 3, running from the bottom to the top corner.

    Returns:
        Array of shape (ni, nj, 3) whose boundary rows equal the given edges.
    """
    ni, nj = len(bottom), len(left)
    if len(top) != ni or len(right) != nj:
        raise ValueError(f"Opposite edges differ in size: {ni}/{len(top)} and {nj}/{len(right)}.")

    u = np.linspace(0.0, 1.0, ni)[:, None, None]
    v = np.linspace(0.0, 1.0, nj)[None, :, None]

    # P(u,v) = (1-v)*Bottom(u) + v*Top(u) + (1-u)*Left(v) + u*Right(v) - bilinear corners
    edges = (1 - v) * bottom[:, None, :] + v * top[:, None, :] + (1 - u) * left[None, :, :] + u * right[None, :, :]
    corners = (
        (1 - u) * (1 - v) * bottom[0]
        + u * (1 - v) * bottom[-1]
        + (1 - u) * v * top[0]
        + u * v * top[-1]
    )
    grid = edges - corners

    # Exact boundary copies, interpolation round-off must not leak onto the curves
    grid[:, 0] = bottom
    grid[:, -1] = top
    grid[0, :] = left
    grid[-1, :] = right
    return grid


def winslow_sweep(grid: npt.NDArray[np.float64], eps: float = 1e-14) -> npt.NDArray[np.float64]:
    """
    One Jacobi sweep of the Winslow (inverse Laplace) equations on the interior nodes.

    Notes:
        alpha * x_xixi - 2 * beta * x_xieta + gamma * x_etaeta = 0 with
        alpha = |x_eta|^2, beta = x_xi . x_eta, gamma = |x_xi|^2, discretised by
        central differences. Boundary rows are returned unchanged.
    """
    new = grid.copy()
    if grid.shape[0] < 3 or grid.shape[1] < 3:
        return new

    x_xi = 0.5 * (grid[2:, 1:-1] - grid[:-2, 1:-1])
    x_eta = 0.5 * (grid[1:-1, 2:] - grid[1:-1, :-2])

    alpha = np.sum(x_eta * x_eta, axis=-1)[..., None]
    beta = np.sum(x_xi * x_eta, axis=-1)[..., None]
    gamma = np.sum(x_xi * x_xi, axis=-1)[..., None]

    cross = grid[2:, 2:] - grid[2:, :-2] - grid[:-2, 2:] + grid[:-2, :-2]
    numerator = (
        alpha * (grid[2:, 1:-1] + grid[:-2, 1:-1])
        + gamma * (grid[1:-1, 2:] + grid[1:-1, :-2])
        - 0.5 * beta * cross
    )
    denominator = 2.0 * (alpha + gamma)

    interior = grid[1:-1, 1:-1]
    new[1:-1, 1:-1] = np.where(denominator > eps, numerator / np.maximum(denominator, eps), interior)
    return new


def edge_rows(
    grid: npt.NDArray[np.float64],
    edge_index: int,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Boundary row of an edge and the grid row next to it, both in edge direction."""
    match edge_index:
        case 0:
            return grid[:, 0], grid[:, 1]
        case 1:
            return grid[-1, :], grid[-2, :]
        case 2:
            return grid[:, -1], grid[:, -2]
        case 3:
            return grid[0, :], grid[1, :]
    raise IndexError(f"Edge index {edge_index} out of range 0..{EDGE_COUNT - 1}.")


def slide_targets(
    grid: npt.NDArray[np.float64],
    edge_index: int,
    mode: AngleMode,
) -> npt.NDArray[np.float64]:
    """
    Target positions for the interior nodes of a floating edge.

    The caller projects the targets back onto the host curve, so ORTHOGONAL
    pulls each boundary node to the foot of the grid line leaving it, and NONE
    only evens out the spacing along the edge.

    Returns:
        Array of shape (n - 2, 3) for an edge of n nodes.
    """
    boundary, adjacent = edge_rows(grid, edge_index)
    orthogonal = adjacent[1:-1]
    tangential = 0.5 * (boundary[:-2] + boundary[2:])

    match mode:
        case AngleMode.ORTHOGONAL:
            return orthogonal.copy()
        case AngleMode.INTERPOLATE:
            return 0.5 * (orthogonal + tangential)
    return tangential
