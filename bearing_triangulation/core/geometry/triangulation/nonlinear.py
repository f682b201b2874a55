#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Nonlinear triangulation module.

This module provides an implementation of nonlinear triangulation that refines
linear triangulation results using optimization techniques to minimize the
angular reprojection error.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np
from scipy import optimize

from bearing_triangulation.core.geometry.primitives import camera_centers, world_bearings
from bearing_triangulation.core.geometry.triangulation.base import (
    AbstractTriangulator, TriangulationResult
)
from bearing_triangulation.core.geometry.triangulation.dlt import triangulate_bearings_dlt_solve
from bearing_triangulation.core.geometry.triangulation.midpoint import triangulate_bearings_midpoint_solve
from bearing_triangulation.core.geometry.triangulation.validation import (
    check_ray_angle, check_point
)
from bearing_triangulation.utils.constants import (
    NUMERICS, TRIANGULATION, VALID_LINEAR_METHODS, VALID_NONLINEAR_METHODS
)

logger = logging.getLogger(__name__)


def bearing_residuals(point_3d: np.ndarray, centers: np.ndarray, bearings: np.ndarray) -> np.ndarray:
    """
    Compute the stacked residuals u_i - b_i for all observations.

    Args:
        point_3d: Candidate world point
        centers: (N, 3) camera centers
        bearings: (N, 3) world-frame unit bearings

    Returns:
        (3N,) residual vector
    """
    rays = np.asarray(point_3d, dtype=np.float64).reshape(1, 3) - centers
    lengths = np.linalg.norm(rays, axis=1, keepdims=True)
    units = rays / np.maximum(lengths, np.finfo(np.float64).tiny)
    return (units - bearings).ravel()


def _initial_estimate(poses: Sequence[np.ndarray], bearings: np.ndarray,
                      centers: np.ndarray, rays: np.ndarray,
                      linear_method: str) -> Optional[np.ndarray]:
    if linear_method == "midpoint":
        return triangulate_bearings_midpoint_solve(centers, rays)

    point_h = triangulate_bearings_dlt_solve(poses, bearings)
    if abs(point_h[3]) < NUMERICS.homogeneous_eps * np.linalg.norm(point_h):
        return None
    return point_h[:3] / point_h[3]


def triangulate_bearings_nonlinear(poses: Sequence[np.ndarray],
                                   bearings: np.ndarray,
                                   threshold: float,
                                   min_angle: float,
                                   min_depth: float,
                                   optimization_method: str = TRIANGULATION.sub_method,
                                   linear_method: str = TRIANGULATION.linear_method,
                                   max_nfev: int = 100) -> TriangulationResult:
    """
    Triangulate a point with a linear estimate refined by least squares.

    Args:
        poses: Sequence of 3x4 world-to-camera poses
        bearings: (N, 3) camera-frame unit bearings
        threshold: Angular reprojection threshold (radians)
        min_angle: Minimum triangulation angle (radians)
        min_depth: Minimum depth along each ray; negative disables the check
        optimization_method: scipy least_squares method ('lm', 'trf', 'dogbox')
        linear_method: Initial estimate ('dlt' or 'midpoint')
        max_nfev: Maximum number of residual evaluations

    Returns:
        TriangulationResult
    """
    bearings = np.asarray(bearings, dtype=np.float64).reshape(-1, 3)
    if len(poses) < 2:
        logger.debug("Nonlinear triangulation requires at least two observations")
        return TriangulationResult.failure()

    centers = camera_centers(poses)
    rays = world_bearings(poses, bearings)
    if not check_ray_angle(rays, min_angle):
        return TriangulationResult.failure()

    initial_point = _initial_estimate(poses, bearings, centers, rays, linear_method)
    if initial_point is None:
        logger.warning("Linear triangulation failed, cannot perform nonlinear refinement")
        return TriangulationResult.failure()

    result = optimize.least_squares(
        bearing_residuals,
        initial_point,
        args=(centers, rays),
        method=optimization_method,
        ftol=1e-12,
        xtol=1e-12,
        gtol=1e-12,
        max_nfev=max_nfev
    )
    point_3d = result.x

    if not check_point(centers, rays, point_3d, threshold, min_depth):
        return TriangulationResult(False, point_3d)

    return TriangulationResult(True, point_3d)


class NonlinearTriangulator(AbstractTriangulator):
    """
    Nonlinear triangulator class that refines 3D points using optimization techniques.

    This triangulator first uses a linear method to get an initial estimate, then
    refines it using nonlinear optimization to minimize the angular error.
    """

    def __init__(self, poses: Optional[Sequence[np.ndarray]] = None,
                 linear_method: str = TRIANGULATION.linear_method,
                 optimization_method: str = TRIANGULATION.sub_method,
                 **kwargs):
        """
        Initialize the nonlinear triangulator.

        Args:
            poses: Sequence of 3x4 world-to-camera poses
            linear_method: Linear method to use for initial estimate ('dlt', 'midpoint')
            optimization_method: Optimization method to use ('lm', 'trf', 'dogbox')
            **kwargs: Thresholds forwarded to AbstractTriangulator
        """
        if linear_method not in VALID_LINEAR_METHODS:
            raise ValueError(f"Unknown linear method: {linear_method}")
        if optimization_method not in VALID_NONLINEAR_METHODS:
            raise ValueError(f"Unknown optimization method: {optimization_method}")

        self.linear_method = linear_method
        self.optimization_method = optimization_method
        super().__init__(poses, **kwargs)

    def _triangulate(self, poses: List[np.ndarray], bearings: np.ndarray) -> TriangulationResult:
        return triangulate_bearings_nonlinear(poses, bearings, self.reprojection_threshold,
                                              self.min_angle, self.min_depth,
                                              optimization_method=self.optimization_method,
                                              linear_method=self.linear_method)
