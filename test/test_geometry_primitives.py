import numpy as np
import pytest

from halfoh.model.geometry_primitives import Point, centroid


def test_from_array_pads_planar_points():
    assert Point.from_array([1.0, 2.0]) == Point(1.0, 2.0, 0.0)
    assert Point.from_array(np.array([1.0, 2.0, 3.0])) == Point(1.0, 2.0, 3.0)


def test_from_array_rejects_other_sizes():
    with pytest.raises(ValueError, match="2 or 3 coordinates"):
        Point.from_array([1.0])


def test_distance_and_closeness():
    a, b = Point(0.0, 0.0), Point(3.0, 4.0)
    assert a.distance_to(b) == pytest.approx(5.0)
    assert a.is_close(Point(1e-10, -1e-10), 1e-9)
    assert not a.is_close(b, 1e-9)


def test_centroid():
    center = centroid([Point(0.0, 0.0), Point(4.0, 0.0), Point(0.0, 4.0)])
    assert center.is_close(Point(4.0 / 3.0, 4.0 / 3.0), 1e-12)

    with pytest.raises(ValueError, match="empty"):
        centroid([])
