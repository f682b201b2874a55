#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Direct Linear Transform (DLT) triangulation implementation.
"""

import numpy as np
import logging
from typing import List, Sequence

from bearing_triangulation.core.geometry.primitives import skew, camera_centers, world_bearings
from bearing_triangulation.core.geometry.triangulation.base import (
    AbstractTriangulator, TriangulationResult
)
from bearing_triangulation.core.geometry.triangulation.validation import (
    check_ray_angle, check_point
)
from bearing_triangulation.utils.constants import NUMERICS

logger = logging.getLogger(__name__)


def triangulate_bearings_dlt_solve(poses: Sequence[np.ndarray], bearings: np.ndarray) -> np.ndarray:
    """
    Solve the homogeneous DLT system for one point.

    Each observation contributes the three rows of skew(b_i) @ [R_i | t_i],
    which vanish when R_i @ X + t_i is parallel to b_i. Two of the three rows
    are independent; keeping all three avoids picking a pair per bearing.

    Args:
        poses: Sequence of 3x4 world-to-camera poses
        bearings: (N, 3) camera-frame bearings

    Returns:
        Unit-norm homogeneous point [X, Y, Z, W]
    """
    bearings = np.asarray(bearings, dtype=np.float64).reshape(-1, 3)
    if len(poses) != bearings.shape[0]:
        raise ValueError(f"Got {len(poses)} poses for {bearings.shape[0]} bearings")

    A = np.zeros((3 * len(poses), 4))
    for i, (pose, bearing) in enumerate(zip(poses, bearings)):
        A[3*i:3*i+3] = skew(bearing) @ np.asarray(pose, dtype=np.float64)

    # The solution is the right singular vector of the smallest singular value
    _, _, Vt = np.linalg.svd(A)
    return Vt[-1]


def triangulate_bearings_dlt(poses: Sequence[np.ndarray],
                             bearings: np.ndarray,
                             threshold: float,
                             min_angle: float,
                             min_depth: float) -> TriangulationResult:
    """
    Triangulate a point from bearings using the Direct Linear Transform.

    Args:
        poses: Sequence of 3x4 world-to-camera poses
        bearings: (N, 3) camera-frame unit bearings
        threshold: Angular reprojection threshold (radians), shared by all observations
        min_angle: Minimum triangulation angle (radians)
        min_depth: Minimum depth along each ray; negative disables the check

    Returns:
        TriangulationResult
    """
    bearings = np.asarray(bearings, dtype=np.float64).reshape(-1, 3)
    if len(poses) < 2:
        logger.debug("DLT triangulation requires at least two observations")
        return TriangulationResult.failure()

    centers = camera_centers(poses)
    rays = world_bearings(poses, bearings)
    if not check_ray_angle(rays, min_angle):
        return TriangulationResult.failure()

    point_h = triangulate_bearings_dlt_solve(poses, bearings)

    if abs(point_h[3]) < NUMERICS.homogeneous_eps * np.linalg.norm(point_h):
        logger.debug("DLT produced point at infinity")
        return TriangulationResult.failure()

    point_3d = point_h[:3] / point_h[3]

    if not check_point(centers, rays, point_3d, threshold, min_depth):
        return TriangulationResult(False, point_3d)

    return TriangulationResult(True, point_3d)


class DLTTriangulator(AbstractTriangulator):
    """
    Direct Linear Transform (DLT) triangulator implementation.

    This class implements triangulation using the DLT algorithm on bearing
    vectors, which needs no initial guess and extends to any number of views
    by stacking rows.
    """

    def _triangulate(self, poses: List[np.ndarray], bearings: np.ndarray) -> TriangulationResult:
        return triangulate_bearings_dlt(poses, bearings, self.reprojection_threshold,
                                        self.min_angle, self.min_depth)
