#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Point refinement module.

Gauss-Newton refinement of a 3D point against world-frame observation rays.
The residual of observation i is u_i - b_i, where u_i is the unit ray from
the camera center to the point, with Jacobian (I - u_i u_i^T) / ||X - c_i||.
"""

import logging

import numpy as np

from bearing_triangulation.utils.constants import NUMERICS

logger = logging.getLogger(__name__)


def point_refinement(centers: np.ndarray,
                     bearings: np.ndarray,
                     initial_point: np.ndarray,
                     iterations: int) -> np.ndarray:
    """
    Refine a point to reduce the angular error against all observation rays.

    There is no success flag: the current estimate is always returned and the
    caller decides whether to accept it, typically with check_triangulation.
    Convergence is expected only for starting points near the optimum.

    Args:
        centers: (N, 3) camera centers
        bearings: (N, 3) world-frame unit bearings
        initial_point: Starting estimate [X, Y, Z]
        iterations: Maximum number of Gauss-Newton steps

    Returns:
        Refined 3D point
    """
    centers = np.asarray(centers, dtype=np.float64).reshape(-1, 3)
    bearings = np.asarray(bearings, dtype=np.float64).reshape(-1, 3)
    if centers.shape[0] != bearings.shape[0]:
        raise ValueError(f"Got {centers.shape[0]} centers for {bearings.shape[0]} bearings")

    point = np.asarray(initial_point, dtype=np.float64).reshape(3).copy()
    eye_matrix = np.eye(3)

    for iteration in range(iterations):
        rays = point[None, :] - centers
        lengths = np.linalg.norm(rays, axis=1)
        if np.any(lengths == 0):
            logger.debug("Refinement stopped: point coincides with a camera center")
            break
        units = rays / lengths[:, None]

        JtJ = np.zeros((3, 3))
        Jte = np.zeros(3)
        for unit, bearing, length in zip(units, bearings, lengths):
            projector = eye_matrix - np.outer(unit, unit)
            # J = P / l with P a symmetric projector, so J^T J = P / l^2
            JtJ += projector / length ** 2
            Jte += projector @ (unit - bearing) / length

        step, _, rank, _ = np.linalg.lstsq(JtJ, Jte, rcond=None)
        if rank < 3:
            logger.debug(f"Refinement stopped at iteration {iteration}: rank-deficient system")
            break

        point -= step
        if np.linalg.norm(step) < NUMERICS.refinement_step_eps:
            break

    return point
