#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Geometry primitives module.
This module provides the pose, rotation and bearing helpers shared by all
triangulation solvers. Poses are 3x4 matrices [R | t] mapping a world point X
to camera coordinates as R @ X + t.
"""

import logging
from typing import Sequence, Union

import numpy as np
import cv2

logger = logging.getLogger(__name__)

# Constants
DEG2RAD = np.pi / 180.0
RAD2DEG = 180.0 / np.pi

ArrayLike = Union[np.ndarray, Sequence[float]]


def skew(vector: ArrayLike) -> np.ndarray:
    """
    Build the cross-product matrix of a 3D vector.

    Args:
        vector: 3D vector v

    Returns:
        3x3 matrix S such that S @ w == np.cross(v, w)
    """
    x, y, z = np.asarray(vector, dtype=np.float64).reshape(3)
    return np.array([
        [0.0, -z, y],
        [z, 0.0, -x],
        [-y, x, 0.0]
    ])


def rotation_from_axis_angle(rotation_vector: ArrayLike) -> np.ndarray:
    """
    Convert a Rodrigues rotation vector to a rotation matrix.

    Args:
        rotation_vector: Axis-angle vector (radians)

    Returns:
        3x3 rotation matrix
    """
    rvec = np.asarray(rotation_vector, dtype=np.float64).reshape(3, 1)
    rotation_matrix, _ = cv2.Rodrigues(rvec)
    return rotation_matrix


def compose_pose(rotation: ArrayLike, translation: ArrayLike) -> np.ndarray:
    """
    Stack a rotation and a translation into a 3x4 pose [R | t].

    Args:
        rotation: 3x3 rotation matrix
        translation: 3D translation vector

    Returns:
        3x4 pose matrix
    """
    R = np.asarray(rotation, dtype=np.float64).reshape(3, 3)
    t = np.asarray(translation, dtype=np.float64).reshape(3, 1)
    return np.hstack((R, t))


def pose_from_center(center: ArrayLike, rotation: ArrayLike = None) -> np.ndarray:
    """
    Build the pose of a camera located at a given world position.

    Args:
        center: Camera center in world coordinates
        rotation: World-to-camera rotation (identity if None)

    Returns:
        3x4 pose matrix with t = -R @ center
    """
    R = np.eye(3) if rotation is None else np.asarray(rotation, dtype=np.float64).reshape(3, 3)
    c = np.asarray(center, dtype=np.float64).reshape(3)
    return compose_pose(R, -R @ c)


def camera_center(pose: np.ndarray) -> np.ndarray:
    """Return the world position -R^T t of the camera described by a pose."""
    pose = np.asarray(pose, dtype=np.float64)
    return -pose[:, :3].T @ pose[:, 3]


def camera_centers(poses: Sequence[np.ndarray]) -> np.ndarray:
    """Stack the camera centers of several poses into an (N, 3) array."""
    return np.array([camera_center(pose) for pose in poses], dtype=np.float64).reshape(-1, 3)


def world_bearings(poses: Sequence[np.ndarray], bearings: np.ndarray) -> np.ndarray:
    """
    Rotate camera-frame bearings into the world frame.

    Args:
        poses: Sequence of 3x4 poses, one per bearing
        bearings: (N, 3) array of camera-frame bearings

    Returns:
        (N, 3) array of R_i^T @ b_i
    """
    bearings = np.asarray(bearings, dtype=np.float64).reshape(-1, 3)
    if len(poses) != bearings.shape[0]:
        raise ValueError(f"Got {len(poses)} poses for {bearings.shape[0]} bearings")
    return np.array([
        np.asarray(pose, dtype=np.float64)[:, :3].T @ bearing
        for pose, bearing in zip(poses, bearings)
    ]).reshape(-1, 3)


def normalize_rows(vectors: ArrayLike) -> np.ndarray:
    """
    Scale every row of an (N, 3) array to unit length.

    Zero-length rows are returned unchanged.
    """
    vectors = np.asarray(vectors, dtype=np.float64)
    norms = np.linalg.norm(vectors, axis=-1, keepdims=True)
    return np.divide(vectors, norms, out=np.copy(vectors), where=norms > 0)


def angle_between_vectors(a: ArrayLike, b: ArrayLike) -> Union[float, np.ndarray]:
    """
    Compute the angle between vectors using atan2(|a x b|, a . b).

    This stays accurate for very small angles where arccos loses precision.
    Broadcasts over leading dimensions. A zero-length vector yields 0.

    Args:
        a: Vector(s) of shape (..., 3)
        b: Vector(s) of shape (..., 3)

    Returns:
        Angle(s) in radians in [0, pi]
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    cross_norm = np.linalg.norm(np.cross(a, b), axis=-1)
    dot = np.sum(a * b, axis=-1)
    return np.arctan2(cross_norm, dot)


def project_to_bearing(pose: np.ndarray, point_3d: ArrayLike) -> np.ndarray:
    """
    Map a world point into a camera's local frame.

    Args:
        pose: 3x4 pose [R | t]
        point_3d: World point [X, Y, Z]

    Returns:
        Un-normalized camera-frame ray R @ X + t
    """
    pose = np.asarray(pose, dtype=np.float64)
    return pose[:, :3] @ np.asarray(point_3d, dtype=np.float64).reshape(3) + pose[:, 3]
