#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Two-view triangulation module.

Vectorized midpoint triangulation and epipolar consistency for many
correspondences between two cameras related by one relative pose. Camera 1
sits at the origin of the shared frame; camera 2 sits at ``translation_1_2``
and its bearings are mapped into the shared frame by ``rotation_1_2``.
"""

import logging
from collections.abc import Sequence
from typing import List, Union, overload

import numpy as np

from bearing_triangulation.core.geometry.triangulation.base import TriangulationResult
from bearing_triangulation.utils.constants import NUMERICS

logger = logging.getLogger(__name__)


class TwoViewResults(Sequence):
    """
    Read-only sequence of per-correspondence triangulation results.

    Results are built on access from the vectorized success mask and point
    array, so the sequence can be indexed, sliced and iterated any number of
    times in input order.
    """

    def __init__(self, success: np.ndarray, points: np.ndarray):
        self._success = np.asarray(success, dtype=bool)
        self._points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        self._success.setflags(write=False)
        self._points.setflags(write=False)

    @property
    def success(self) -> np.ndarray:
        """(N,) boolean mask of successful correspondences."""
        return self._success

    @property
    def points(self) -> np.ndarray:
        """(N, 3) triangulated points; rows with a False mask carry no guarantee."""
        return self._points

    def __len__(self) -> int:
        return self._success.shape[0]

    @overload
    def __getitem__(self, index: int) -> TriangulationResult: ...

    @overload
    def __getitem__(self, index: slice) -> List[TriangulationResult]: ...

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        return TriangulationResult(bool(self._success[index]), self._points[index].copy())

    def __repr__(self) -> str:
        return f"TwoViewResults(n={len(self)}, succeeded={int(self._success.sum())})"


def _as_bearing_sets(bearings1: np.ndarray, bearings2: np.ndarray,
                     rotation_1_2: np.ndarray, translation_1_2: np.ndarray):
    b1 = np.asarray(bearings1, dtype=np.float64).reshape(-1, 3)
    b2 = np.asarray(bearings2, dtype=np.float64).reshape(-1, 3)
    R = np.asarray(rotation_1_2, dtype=np.float64).reshape(3, 3)
    t = np.asarray(translation_1_2, dtype=np.float64).reshape(3)
    return b1, b2 @ R.T, t


def triangulate_two_bearings_midpoint_many(bearings1: np.ndarray,
                                           bearings2: np.ndarray,
                                           rotation_1_2: np.ndarray,
                                           translation_1_2: np.ndarray) -> TwoViewResults:
    """
    Triangulate many correspondences between two views with the midpoint method.

    For each index i the closest points p1 = l1 * b1_i and p2 = t + l2 * b2_i
    of the two rays are found from the 2x2 normal equations and their midpoint
    is reported in camera 1's frame. Parallel rays fail, and every index
    fails when the baseline is zero; no angle, depth or reprojection
    threshold is applied.

    Args:
        bearings1: (N, 3) bearings in camera 1
        bearings2: (N, 3) bearings in camera 2, aligned with bearings1
        rotation_1_2: Rotation mapping camera 2 directions into camera 1
        translation_1_2: Position of camera 2 in camera 1's frame

    Returns:
        TwoViewResults with one result per correspondence
    """
    b1, b2, t = _as_bearing_sets(bearings1, bearings2, rotation_1_2, translation_1_2)
    if b1.shape[0] != b2.shape[0]:
        raise ValueError(f"Got {b1.shape[0]} bearings in view 1 and {b2.shape[0]} in view 2")

    b11 = np.sum(b1 * b1, axis=1)
    b22 = np.sum(b2 * b2, axis=1)
    b12 = np.sum(b1 * b2, axis=1)
    a1 = b1 @ t
    a2 = b2 @ t

    det = b11 * b22 - b12 ** 2
    success = np.abs(det) > NUMERICS.two_view_det_eps

    if not np.linalg.norm(t) > NUMERICS.two_view_det_eps:
        logger.warning("Two-view midpoint is undefined without a baseline; every correspondence fails")
        success = np.zeros_like(success)

    # Parallel rows are masked out; give them a unit denominator to keep the division finite
    safe_det = np.where(success, det, 1.0)
    lambda1 = (a1 * b22 - a2 * b12) / safe_det
    lambda2 = (a1 * b12 - a2 * b11) / safe_det

    points = 0.5 * (lambda1[:, None] * b1 + t[None, :] + lambda2[:, None] * b2)
    points[~success] = np.nan

    n_failed = int(np.count_nonzero(~success))
    if n_failed:
        logger.debug(f"Two-view midpoint: {n_failed}/{len(success)} correspondences failed")

    return TwoViewResults(success, points)


def triangulate_two_bearings_midpoint(bearing1: np.ndarray,
                                      bearing2: np.ndarray,
                                      rotation_1_2: np.ndarray,
                                      translation_1_2: np.ndarray) -> TriangulationResult:
    """
    Triangulate a single correspondence between two views.

    See triangulate_two_bearings_midpoint_many.
    """
    return triangulate_two_bearings_midpoint_many(
        np.reshape(bearing1, (1, 3)), np.reshape(bearing2, (1, 3)),
        rotation_1_2, translation_1_2)[0]


def epipolar_angle_two_bearings_many(bearings1: np.ndarray,
                                     bearings2: np.ndarray,
                                     rotation_1_2: np.ndarray,
                                     translation_1_2: np.ndarray) -> np.ndarray:
    """
    Measure how far every candidate correspondence is from the epipolar constraint.

    Entry (i, j) is the angle between bearings1[i] and the epipolar plane
    spanned by the baseline and bearings2[j] mapped into camera 1. True
    correspondences give angles near zero.

    Args:
        bearings1: (N1, 3) bearings in camera 1
        bearings2: (N2, 3) bearings in camera 2
        rotation_1_2: Rotation mapping camera 2 directions into camera 1
        translation_1_2: Position of camera 2 in camera 1's frame

    Returns:
        (N1, N2) matrix of angles in radians, in [0, pi/2]
    """
    b1, b2, t = _as_bearing_sets(bearings1, bearings2, rotation_1_2, translation_1_2)

    normals = np.cross(t[None, :], b2)
    normal_norms = np.linalg.norm(normals, axis=1)
    bearing_norms = np.linalg.norm(b1, axis=1)

    if not np.any(normal_norms > 0):
        logger.warning("Epipolar angles are undefined without a baseline; returning pi/2")

    scale = bearing_norms[:, None] * normal_norms[None, :]
    dots = np.abs(b1 @ normals.T)
    sines = np.divide(dots, scale, out=np.ones_like(dots), where=scale > 0)

    return np.arcsin(np.clip(sines, 0.0, 1.0))
