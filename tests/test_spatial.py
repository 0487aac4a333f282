import dataclasses

import pytest

from defect_marker.models.spatial import BoundingBox, Point3D


def test_center_is_midpoint():
    box = BoundingBox(Point3D(0, 0, 0), Point3D(2, 4, 6))

    assert box.center == Point3D(1, 2, 3)


def test_degenerate_only_when_min_equals_max():
    assert BoundingBox(Point3D(1, 1, 1), Point3D(1, 1, 1)).is_degenerate
    # flach, aber nicht degeneriert
    assert not BoundingBox(Point3D(0, 0, 0), Point3D(1, 1, 0)).is_degenerate


def test_from_corners_normalises_order():
    box = BoundingBox.from_corners(Point3D(3, -1, 5), Point3D(1, 2, 0))

    assert box.min == Point3D(1, -1, 0)
    assert box.max == Point3D(3, 2, 5)


def test_point_is_immutable():
    point = Point3D(1, 2, 3)

    with pytest.raises(dataclasses.FrozenInstanceError):
        point.x = 5


def test_distance_and_finiteness():
    assert Point3D(0, 0, 0).distance_to(Point3D(3, 4, 0)) == pytest.approx(5.0)
    assert not Point3D(float("inf"), 0, 0).is_finite()


def test_from_sequence_requires_three_values():
    with pytest.raises(ValueError):
        Point3D.from_sequence([1, 2])


def test_distance_and_center_with_huge_finite_coordinates():
    box = BoundingBox(Point3D(1e200, 0, 0), Point3D(1e308, 1, 1))

    assert box.center.is_finite()
    assert Point3D(-1e200, 0, 0).distance_to(Point3D(1e200, 0, 0)) == pytest.approx(2e200)
