import numpy as np
import pytest

from halfoh.controller import elliptic
from halfoh.controller.adapter import AngleMode


def uniform_grid(ni=5, nj=4, width=2.0, height=1.0):
    x, y = np.meshgrid(np.linspace(0.0, width, ni), np.linspace(0.0, height, nj), indexing="ij")
    return np.stack((x, y, np.zeros_like(x)), axis=-1)


def boundaries(grid):
    return grid[:, 0], grid[-1, :], grid[:, -1], grid[0, :]


def test_transfinite_grid_reproduces_rectangle():
    expected = uniform_grid()
    grid = elliptic.transfinite_grid(*boundaries(expected))
    assert grid.shape == (5, 4, 3)
    np.testing.assert_allclose(grid, expected, atol=1e-12)


def test_transfinite_grid_copies_boundaries_exactly():
    grid = uniform_grid(6, 6)
    # Bulge the top edge
    grid[1:-1, -1, 1] += 0.3 * np.sin(np.linspace(0.0, np.pi, 6)[1:-1])
    filled = elliptic.transfinite_grid(*boundaries(grid))
    for given, row in zip(boundaries(grid), boundaries(filled)):
        np.testing.assert_array_equal(given, row)


def test_transfinite_grid_rejects_mismatched_edges():
    bottom, right, top, left = boundaries(uniform_grid())
    with pytest.raises(ValueError):
        elliptic.transfinite_grid(bottom, right, top[:-1], left)


def test_winslow_sweep_keeps_uniform_grid():
    grid = uniform_grid()
    np.testing.assert_allclose(elliptic.winslow_sweep(grid), grid, atol=1e-12)


def test_winslow_sweep_smooths_interior_and_keeps_boundary():
    grid = uniform_grid(7, 7, 1.0, 1.0)
    disturbed = grid.copy()
    disturbed[3, 3, :2] += [0.1, -0.05]

    swept = disturbed
    for _ in range(50):
        swept = elliptic.winslow_sweep(swept)

    np.testing.assert_array_equal(swept[0], disturbed[0])
    np.testing.assert_array_equal(swept[:, -1], disturbed[:, -1])
    assert np.linalg.norm(swept[3, 3] - grid[3, 3]) < np.linalg.norm(disturbed[3, 3] - grid[3, 3])


def test_winslow_sweep_on_grid_without_interior():
    grid = uniform_grid(2, 5)
    np.testing.assert_array_equal(elliptic.winslow_sweep(grid), grid)


def test_edge_rows_follow_patch_convention():
    grid = uniform_grid()
    boundary, adjacent = elliptic.edge_rows(grid, 1)
    np.testing.assert_array_equal(boundary, grid[-1, :])
    np.testing.assert_array_equal(adjacent, grid[-2, :])

    with pytest.raises(IndexError):
        elliptic.edge_rows(grid, elliptic.EDGE_COUNT)


def test_slide_targets_by_angle_mode():
    grid = uniform_grid(5, 4)
    grid[2, 1, 0] += 0.2  # Tilt the grid line leaving bottom node 2

    orthogonal = elliptic.slide_targets(grid, 0, AngleMode.ORTHOGONAL)
    tangential = elliptic.slide_targets(grid, 0, AngleMode.NONE)
    blended = elliptic.slide_targets(grid, 0, AngleMode.INTERPOLATE)

    assert orthogonal.shape == (3, 3)
    np.testing.assert_allclose(orthogonal, grid[1:-1, 1])
    np.testing.assert_allclose(tangential, grid[1:-1, 0])
    np.testing.assert_allclose(blended, 0.5 * (orthogonal + tangential))
