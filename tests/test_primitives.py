#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Tests for the geometry primitives module.
"""

import numpy as np
import pytest

from bearing_triangulation.core.geometry.primitives import (
    DEG2RAD,
    angle_between_vectors,
    camera_center,
    camera_centers,
    compose_pose,
    normalize_rows,
    pose_from_center,
    project_to_bearing,
    rotation_from_axis_angle,
    skew,
    world_bearings,
)


def test_skew_matches_cross_product():
    """skew(v) @ w equals v x w."""
    v = np.array([0.3, -1.2, 2.0])
    w = np.array([1.5, 0.4, -0.7])
    np.testing.assert_allclose(skew(v) @ w, np.cross(v, w))
    np.testing.assert_allclose(skew(v), -skew(v).T)


def test_rotation_from_axis_angle_about_y():
    """A rotation about Y leaves Y fixed and turns Z towards X."""
    angle = 30 * DEG2RAD
    R = rotation_from_axis_angle([0.0, angle, 0.0])
    np.testing.assert_allclose(R @ R.T, np.eye(3), atol=1e-12)
    np.testing.assert_allclose(R @ [0.0, 1.0, 0.0], [0.0, 1.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(R @ [0.0, 0.0, 1.0], [np.sin(angle), 0.0, np.cos(angle)], atol=1e-12)


def test_pose_from_center_round_trip():
    """The camera center of a pose built from a center is that center."""
    R = rotation_from_axis_angle([0.1, -0.2, 0.3])
    center = np.array([1.0, -2.0, 0.5])
    pose = pose_from_center(center, R)
    assert pose.shape == (3, 4)
    np.testing.assert_allclose(camera_center(pose), center, atol=1e-12)
    np.testing.assert_allclose(project_to_bearing(pose, center), np.zeros(3), atol=1e-12)


def test_compose_pose_accepts_column_translation():
    """Translations may be given as 3x1 columns."""
    pose = compose_pose(np.eye(3), np.array([[1.0], [2.0], [3.0]]))
    np.testing.assert_allclose(pose[:, 3], [1.0, 2.0, 3.0])


def test_world_bearings_rotate_into_world_frame():
    """Camera-frame bearings map back onto the world direction to the point."""
    R = rotation_from_axis_angle([0.0, 0.4, 0.1])
    center = np.array([0.5, 0.0, -1.0])
    point = np.array([0.2, 0.3, 2.0])
    pose = pose_from_center(center, R)
    bearing = normalize_rows(project_to_bearing(pose, point))

    world = world_bearings([pose], bearing[None, :])
    expected = (point - center) / np.linalg.norm(point - center)
    np.testing.assert_allclose(world[0], expected, atol=1e-12)
    np.testing.assert_allclose(camera_centers([pose]), center[None, :], atol=1e-12)


def test_world_bearings_length_mismatch():
    """Mismatched poses and bearings are a caller error."""
    with pytest.raises(ValueError):
        world_bearings([np.hstack((np.eye(3), np.zeros((3, 1))))], np.zeros((2, 3)))


def test_normalize_rows_keeps_zero_rows():
    """Zero rows stay zero instead of becoming NaN."""
    result = normalize_rows([[3.0, 0.0, 4.0], [0.0, 0.0, 0.0]])
    np.testing.assert_allclose(result, [[0.6, 0.0, 0.8], [0.0, 0.0, 0.0]])


@pytest.mark.parametrize("angle", [1e-9, 1e-4, 0.5, np.pi / 2, 3.0])
def test_angle_between_vectors(angle):
    """The angle is exact from tiny to obtuse values."""
    a = np.array([1.0, 0.0, 0.0])
    b = np.array([np.cos(angle), np.sin(angle), 0.0])
    assert angle_between_vectors(a, b) == pytest.approx(angle, rel=1e-9)


def test_angle_with_zero_vector_is_zero():
    """A zero vector has no direction; the angle is reported as 0."""
    assert angle_between_vectors(np.zeros(3), np.array([0.0, 0.0, 1.0])) == 0.0
