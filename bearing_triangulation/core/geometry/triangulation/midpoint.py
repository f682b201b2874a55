#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Midpoint triangulation implementation module.

The midpoint method finds the point with the smallest sum of squared
perpendicular distances to all observation rays c_i + s * b_i.
"""

import numpy as np
import logging
from typing import List, Optional

from bearing_triangulation.core.geometry.primitives import camera_centers, world_bearings
from bearing_triangulation.core.geometry.triangulation.base import (
    AbstractTriangulator, TriangulationResult
)
from bearing_triangulation.core.geometry.triangulation.validation import (
    Thresholds, as_thresholds, check_ray_angle, check_point
)
from bearing_triangulation.utils.constants import NUMERICS

logger = logging.getLogger(__name__)


def triangulate_bearings_midpoint_solve(centers: np.ndarray, bearings: np.ndarray) -> Optional[np.ndarray]:
    """
    Solve the midpoint normal equations for one point.

    Accumulates M = sum(I - b b^T) and v = sum((I - b b^T) c) and solves M X = v.

    Args:
        centers: (N, 3) camera centers
        bearings: (N, 3) world-frame unit bearings

    Returns:
        3D point, or None if the system is singular or ill-conditioned
    """
    centers = np.asarray(centers, dtype=np.float64).reshape(-1, 3)
    bearings = np.asarray(bearings, dtype=np.float64).reshape(-1, 3)
    if centers.shape[0] != bearings.shape[0]:
        raise ValueError(f"Got {centers.shape[0]} centers for {bearings.shape[0]} bearings")

    M = np.zeros((3, 3))
    v = np.zeros(3)
    eye_matrix = np.eye(3)
    for center, bearing in zip(centers, bearings):
        projector = eye_matrix - np.outer(bearing, bearing)
        M += projector
        v += projector @ center

    condition = np.linalg.cond(M)
    if not np.isfinite(condition) or condition > NUMERICS.max_condition_number:
        logger.debug(f"Midpoint system is ill-conditioned (cond={condition:.3e})")
        return None

    try:
        return np.linalg.solve(M, v)
    except np.linalg.LinAlgError:
        logger.debug("Midpoint system is singular: parallel rays")
        return None


def triangulate_bearings_midpoint(centers: np.ndarray,
                                  bearings: np.ndarray,
                                  thresholds: Thresholds,
                                  min_angle: float,
                                  min_depth: float) -> TriangulationResult:
    """
    Triangulate a point from camera centers and world-frame bearings.

    Args:
        centers: (N, 3) camera centers
        bearings: (N, 3) world-frame unit bearings
        thresholds: Angular reprojection threshold per observation (radians)
        min_angle: Minimum triangulation angle (radians)
        min_depth: Minimum depth along each ray; negative disables the check

    Returns:
        TriangulationResult
    """
    centers = np.asarray(centers, dtype=np.float64).reshape(-1, 3)
    bearings = np.asarray(bearings, dtype=np.float64).reshape(-1, 3)
    limits = as_thresholds(thresholds, bearings.shape[0])

    if bearings.shape[0] < 2:
        logger.debug("Midpoint triangulation requires at least two observations")
        return TriangulationResult.failure()

    if not check_ray_angle(bearings, min_angle):
        return TriangulationResult.failure()

    point_3d = triangulate_bearings_midpoint_solve(centers, bearings)
    if point_3d is None:
        return TriangulationResult.failure()

    if not check_point(centers, bearings, point_3d, limits, min_depth):
        return TriangulationResult(False, point_3d)

    return TriangulationResult(True, point_3d)


class MidpointTriangulator(AbstractTriangulator):
    """
    Midpoint triangulator implementation.

    Converts the configured poses to camera centers and rotates bearings into
    the world frame before solving, so it works for any number of views.
    """

    def _triangulate(self, poses: List[np.ndarray], bearings: np.ndarray) -> TriangulationResult:
        return triangulate_bearings_midpoint(camera_centers(poses),
                                             world_bearings(poses, bearings),
                                             self.reprojection_threshold,
                                             self.min_angle, self.min_depth)
