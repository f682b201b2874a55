#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Abstract triangulation base module.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, NamedTuple, Sequence

import numpy as np

from bearing_triangulation.core.geometry.primitives import (
    DEG2RAD, angle_between_vectors, camera_centers, world_bearings
)
from bearing_triangulation.utils.constants import TRIANGULATION

logger = logging.getLogger(__name__)


class TriangulationResult(NamedTuple):
    """
    Outcome of a triangulation.

    Unpacks as ``success, point = result``. When ``success`` is False the
    point carries no guarantee and must not be used.
    """
    success: bool
    point: np.ndarray

    @classmethod
    def failure(cls) -> "TriangulationResult":
        """Build a failed result whose point is NaN."""
        return cls(False, np.full(3, np.nan))


class AbstractTriangulator(ABC):
    """
    Abstract base class for triangulation implementations.

    A triangulator is bound to a fixed set of camera poses (one per view) and
    estimates 3D points from the bearings observed in those views. Every
    estimate is validated against the triangulator's angle, depth and
    reprojection thresholds before it is reported as a success.
    """

    def __init__(self, poses: Optional[Sequence[np.ndarray]] = None,
                 reprojection_threshold: float = TRIANGULATION.reprojection_threshold,
                 min_angle: float = TRIANGULATION.min_angle_deg * DEG2RAD,
                 min_depth: float = TRIANGULATION.min_depth):
        """
        Initialize the triangulator.

        Args:
            poses: Sequence of 3x4 world-to-camera poses, one per view
            reprojection_threshold: Maximum angular error per observation (radians)
            min_angle: Minimum triangulation angle (radians)
            min_depth: Minimum depth along each ray; negative disables the check
        """
        self.reprojection_threshold = reprojection_threshold
        self.min_angle = min_angle
        self.min_depth = min_depth
        self.poses: List[np.ndarray] = []
        self.is_calibrated = False

        if poses is not None:
            self.set_camera_parameters(poses)

    def set_camera_parameters(self, poses: Sequence[np.ndarray]) -> None:
        """
        Set the camera poses used for triangulation.

        Args:
            poses: Sequence of 3x4 world-to-camera poses
        """
        if poses is None or len(poses) < 2:
            logger.error("At least two camera poses are required for triangulation")
            self.reset()
            return

        converted = [np.asarray(pose, dtype=np.float64) for pose in poses]
        if any(pose.shape != (3, 4) for pose in converted):
            logger.error("Camera poses must be 3x4 [R | t] matrices")
            self.reset()
            return

        self.poses = converted
        self.is_calibrated = True
        logger.info(f"{self.__class__.__name__} calibrated with {len(self.poses)} cameras")

    @abstractmethod
    def _triangulate(self, poses: List[np.ndarray], bearings: np.ndarray) -> TriangulationResult:
        """
        Triangulate one point from bearings observed by the given poses.

        Args:
            poses: 3x4 poses of the observing cameras
            bearings: (N, 3) camera-frame bearings aligned with ``poses``

        Returns:
            TriangulationResult
        """
        pass

    def triangulate_point(self, bearings: np.ndarray) -> TriangulationResult:
        """
        Triangulate a single 3D point from one bearing per configured view.

        Args:
            bearings: (N, 3) camera-frame bearings, N equal to the number of poses

        Returns:
            TriangulationResult
        """
        if not self.is_calibrated:
            logger.error("Triangulator not calibrated. Call set_camera_parameters first.")
            return TriangulationResult.failure()

        bearings = np.asarray(bearings, dtype=np.float64).reshape(-1, 3)
        if bearings.shape[0] != len(self.poses):
            raise ValueError(f"Expected {len(self.poses)} bearings, got {bearings.shape[0]}")

        if np.isnan(bearings).any():
            logger.warning("Cannot triangulate bearings with NaN coordinates")
            return TriangulationResult.failure()

        return self._triangulate(self.poses, bearings)

    def triangulate_points(self, bearings_list: List[np.ndarray]) -> List[TriangulationResult]:
        """
        Triangulate many 3D points from per-view bearing arrays.

        Args:
            bearings_list: One (M, 3) array per view; row i of every array
                           observes point i

        Returns:
            List of M TriangulationResult, in input order
        """
        if not self.is_calibrated:
            logger.error("Triangulator not calibrated. Call set_camera_parameters first.")
            return []

        if len(bearings_list) != len(self.poses):
            raise ValueError(f"Expected {len(self.poses)} bearing sets, got {len(bearings_list)}")

        views = [np.asarray(b, dtype=np.float64).reshape(-1, 3) for b in bearings_list]
        n_points = views[0].shape[0]
        for i, view in enumerate(views[1:], start=1):
            if view.shape[0] != n_points:
                raise ValueError(f"Bearing set {i} has {view.shape[0]} rows, expected {n_points}")

        return [self.triangulate_point(np.array([view[i] for view in views]))
                for i in range(n_points)]

    def calculate_reprojection_error(self, point_3d: np.ndarray, bearings: np.ndarray) -> float:
        """
        Calculate the mean angular reprojection error of a point.

        Args:
            point_3d: World point [X, Y, Z]
            bearings: (N, 3) camera-frame bearings aligned with the poses

        Returns:
            Mean angle (radians) between predicted and observed rays, or inf
            when the triangulator is not calibrated
        """
        if not self.is_calibrated or point_3d is None:
            return float('inf')

        rays = np.asarray(point_3d, dtype=np.float64).reshape(1, 3) - camera_centers(self.poses)
        observed = world_bearings(self.poses, bearings)
        return float(np.mean(angle_between_vectors(rays, observed)))

    def is_ready(self) -> bool:
        """
        Check if the triangulator is calibrated and ready to use.

        Returns:
            True if calibrated, False otherwise
        """
        return self.is_calibrated

    def reset(self) -> None:
        """
        Reset the triangulator state.
        """
        self.is_calibrated = False
        self.poses = []

    def get_calibration_status(self) -> Dict[str, Any]:
        """
        Get the current calibration status.

        Returns:
            Dictionary with calibration status and thresholds
        """
        return {
            "is_calibrated": self.is_calibrated,
            "n_cameras": len(self.poses),
            "reprojection_threshold": self.reprojection_threshold,
            "min_angle": self.min_angle,
            "min_depth": self.min_depth,
        }
