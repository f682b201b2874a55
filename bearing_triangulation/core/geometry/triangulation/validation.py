#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Triangulation validity checks.

Every solver in this package hands its candidate point to the functions in
this module before reporting success. A candidate is accepted only if:

1. the largest angle between any two observation rays reaches ``min_angle``,
2. the point lies at least ``min_depth`` along every observation ray,
3. the angle between each predicted ray and its observed bearing stays
   within that observation's threshold.

Rays are compared in the world frame. For pose-based inputs the bearings are
rotated by R^T and the rays start at the camera centers, which leaves angles
and depths unchanged.
"""

import logging
from typing import Sequence, Union

import numpy as np

from bearing_triangulation.core.geometry.primitives import (
    angle_between_vectors, camera_centers, world_bearings
)

logger = logging.getLogger(__name__)

Thresholds = Union[float, Sequence[float], np.ndarray]


def as_thresholds(thresholds: Thresholds, count: int) -> np.ndarray:
    """
    Expand a scalar threshold or validate a per-observation sequence.

    Args:
        thresholds: Single threshold or one threshold per observation
        count: Number of observations

    Returns:
        (count,) array of thresholds

    Raises:
        ValueError: If a sequence does not have exactly ``count`` entries
    """
    values = np.asarray(thresholds, dtype=np.float64)
    if values.ndim == 0:
        return np.full(count, float(values))
    values = values.reshape(-1)
    if values.shape[0] != count:
        raise ValueError(f"Got {values.shape[0]} thresholds for {count} observations")
    return values


def max_ray_angle(bearings: np.ndarray) -> float:
    """
    Compute the largest pairwise angle between world-frame rays.

    Args:
        bearings: (N, 3) world-frame bearings

    Returns:
        Largest angle (radians), 0 for fewer than two rays
    """
    bearings = np.asarray(bearings, dtype=np.float64).reshape(-1, 3)
    if bearings.shape[0] < 2:
        return 0.0
    angles = angle_between_vectors(bearings[:, None, :], bearings[None, :, :])
    return float(np.max(angles))


def check_ray_angle(bearings: np.ndarray, min_angle: float) -> bool:
    """
    Check that at least two rays diverge by ``min_angle`` or more.

    Args:
        bearings: (N, 3) world-frame bearings
        min_angle: Minimum triangulation angle (radians)

    Returns:
        True if the configuration is not too close to parallel
    """
    angle = max_ray_angle(bearings)
    if angle < min_angle:
        logger.debug(f"Triangulation angle {angle:.3e} rad below minimum {min_angle:.3e} rad")
        return False
    return True


def check_point(centers: np.ndarray,
                bearings: np.ndarray,
                point_3d: np.ndarray,
                thresholds: Thresholds,
                min_depth: float) -> bool:
    """
    Check the depth and reprojection conditions of a candidate point.

    Args:
        centers: (N, 3) camera centers
        bearings: (N, 3) world-frame bearings
        point_3d: Candidate world point
        thresholds: Angular reprojection threshold(s) in radians
        min_depth: Minimum signed distance along each ray

    Returns:
        True if the point is in front of every camera and agrees with every bearing
    """
    centers = np.asarray(centers, dtype=np.float64).reshape(-1, 3)
    bearings = np.asarray(bearings, dtype=np.float64).reshape(-1, 3)
    if centers.shape[0] != bearings.shape[0]:
        raise ValueError(f"Got {centers.shape[0]} centers for {bearings.shape[0]} bearings")
    limits = as_thresholds(thresholds, bearings.shape[0])

    point_3d = np.asarray(point_3d, dtype=np.float64).reshape(3)
    if not np.all(np.isfinite(point_3d)):
        logger.debug(f"Candidate point is not finite: {point_3d}")
        return False

    rays = point_3d[None, :] - centers

    depths = np.sum(rays * bearings, axis=1)
    if np.any(depths < min_depth):
        logger.debug(f"Candidate depth {depths.min():.3e} below minimum {min_depth:.3e}")
        return False

    errors = angle_between_vectors(rays, bearings)
    if np.any(errors > limits):
        worst = int(np.argmax(errors - limits))
        logger.debug(f"Reprojection error {errors[worst]:.3e} rad exceeds "
                     f"threshold {limits[worst]:.3e} rad for observation {worst}")
        return False

    return True


def check_triangulation(centers: np.ndarray,
                        bearings: np.ndarray,
                        point_3d: np.ndarray,
                        thresholds: Thresholds,
                        min_angle: float,
                        min_depth: float) -> bool:
    """
    Apply the full validity policy to a candidate point.

    Args:
        centers: (N, 3) camera centers
        bearings: (N, 3) world-frame bearings
        point_3d: Candidate world point
        thresholds: Angular reprojection threshold(s) in radians
        min_angle: Minimum triangulation angle (radians)
        min_depth: Minimum signed distance along each ray

    Returns:
        True if all conditions hold
    """
    return (check_ray_angle(bearings, min_angle)
            and check_point(centers, bearings, point_3d, thresholds, min_depth))


def check_triangulation_poses(poses: Sequence[np.ndarray],
                              bearings: np.ndarray,
                              point_3d: np.ndarray,
                              thresholds: Thresholds,
                              min_angle: float,
                              min_depth: float) -> bool:
    """
    Apply the full validity policy to a candidate seen by posed cameras.

    Args:
        poses: 3x4 world-to-camera poses
        bearings: (N, 3) camera-frame bearings
        point_3d: Candidate world point
        thresholds: Angular reprojection threshold(s) in radians
        min_angle: Minimum triangulation angle (radians)
        min_depth: Minimum signed distance along each ray

    Returns:
        True if all conditions hold
    """
    return check_triangulation(camera_centers(poses), world_bearings(poses, bearings),
                               point_3d, thresholds, min_angle, min_depth)
