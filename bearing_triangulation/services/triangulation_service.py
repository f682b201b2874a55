#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Triangulation Service module.
This module triangulates many independent tracks, each a set of bearings
observed by posed cameras, with one configured solver.
"""

import concurrent.futures
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from bearing_triangulation.core.geometry.primitives import DEG2RAD, camera_centers, world_bearings
from bearing_triangulation.core.geometry.triangulation import (
    TriangulationResult,
    check_triangulation,
    point_refinement,
    triangulate_bearings_dlt,
    triangulate_bearings_midpoint,
    triangulate_bearings_nonlinear,
)
from bearing_triangulation.utils.config_manager import ConfigManager
from bearing_triangulation.utils.constants import TRIANGULATION, VALID_METHODS
from bearing_triangulation.utils.error_handling import handle_errors, ErrorAction
from bearing_triangulation.utils.logging_utils import (
    log_service_init, log_service_update, log_batch_summary
)

logger = logging.getLogger(__name__)


@dataclass
class Track:
    """Observations of one 3D point: a camera pose and a bearing per view."""
    poses: List[np.ndarray] = field(default_factory=list)
    bearings: List[np.ndarray] = field(default_factory=list)
    track_id: Optional[Any] = None

    def add_observation(self, pose: np.ndarray, bearing: np.ndarray) -> None:
        """Append one (pose, bearing) observation."""
        self.poses.append(np.asarray(pose, dtype=np.float64).reshape(3, 4))
        self.bearings.append(np.asarray(bearing, dtype=np.float64).reshape(3))

    def __len__(self) -> int:
        return len(self.poses)


class TriangulationService:
    """
    Batch triangulation service.

    Each track is solved independently with the configured method, optionally
    refined with Gauss-Newton and re-validated. Tracks may be processed on a
    thread pool; results are always returned in track order.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 config_manager: Optional[ConfigManager] = None):
        """
        Initialize the triangulation service.

        Args:
            config: Triangulation settings, in the layout returned by
                    ConfigManager.get_triangulation_settings()
            config_manager: Configuration manager to read settings from when
                            ``config`` is not given
        """
        self.settings = self._default_settings()
        if config is None and config_manager is not None:
            config = config_manager.get_triangulation_settings()
        if config:
            self.settings.update(config)
        self._validate_settings()
        log_service_init("TriangulationService", self.settings)

    @staticmethod
    def _default_settings() -> Dict[str, Any]:
        return {
            "method": TRIANGULATION.method,
            "sub_method": TRIANGULATION.sub_method,
            "linear_method": TRIANGULATION.linear_method,
            "reprojection_threshold": TRIANGULATION.reprojection_threshold,
            "min_angle": TRIANGULATION.min_angle_deg * DEG2RAD,
            "min_depth": TRIANGULATION.min_depth,
            "refine": TRIANGULATION.refine,
            "refinement_iterations": TRIANGULATION.refinement_iterations,
            "max_workers": TRIANGULATION.max_workers,
        }

    def _validate_settings(self) -> None:
        if self.settings["method"] not in VALID_METHODS:
            logger.warning(f"Unknown triangulation method {self.settings['method']!r}. "
                           f"Using {TRIANGULATION.method!r} instead.")
            self.settings["method"] = TRIANGULATION.method

    def update_settings(self, **settings) -> None:
        """
        Update service settings.

        Args:
            **settings: Any key accepted in the constructor's ``config``
        """
        self.settings.update(settings)
        self._validate_settings()
        log_service_update("TriangulationService", settings)

    def _solve(self, poses: List[np.ndarray], bearings: np.ndarray) -> TriangulationResult:
        method = self.settings["method"]
        threshold = self.settings["reprojection_threshold"]
        min_angle = self.settings["min_angle"]
        min_depth = self.settings["min_depth"]

        if method == "midpoint":
            return triangulate_bearings_midpoint(camera_centers(poses), world_bearings(poses, bearings),
                                                 threshold, min_angle, min_depth)
        elif method == "nonlinear":
            return triangulate_bearings_nonlinear(poses, bearings, threshold, min_angle, min_depth,
                                                  optimization_method=self.settings["sub_method"],
                                                  linear_method=self.settings["linear_method"])
        return triangulate_bearings_dlt(poses, bearings, threshold, min_angle, min_depth)

    @handle_errors(action=ErrorAction.RETURN_DEFAULT,
                   default_factory=TriangulationResult.failure,
                   message="Track triangulation failed: {error}",
                   log_level=logging.WARNING,
                   exception_types=(np.linalg.LinAlgError, ValueError, FloatingPointError))
    def triangulate_track(self, track: Track) -> TriangulationResult:
        """
        Triangulate a single track.

        Args:
            track: Track with at least two observations

        Returns:
            TriangulationResult; malformed tracks yield a failed result
        """
        if len(track) < 2:
            logger.debug(f"Track {track.track_id} has {len(track)} observation(s), need at least 2")
            return TriangulationResult.failure()

        poses = list(track.poses)
        bearings = np.asarray(track.bearings, dtype=np.float64).reshape(-1, 3)
        result = self._solve(poses, bearings)

        if not result.success or not self.settings["refine"]:
            return result

        centers = camera_centers(poses)
        rays = world_bearings(poses, bearings)
        refined = point_refinement(centers, rays, result.point, self.settings["refinement_iterations"])
        success = check_triangulation(centers, rays, refined,
                                      self.settings["reprojection_threshold"],
                                      self.settings["min_angle"],
                                      self.settings["min_depth"])
        return TriangulationResult(success, refined)

    def triangulate_tracks(self, tracks: Sequence[Track],
                           max_workers: Optional[int] = None) -> List[TriangulationResult]:
        """
        Triangulate many independent tracks.

        Args:
            tracks: Tracks to triangulate
            max_workers: Thread count; 1 runs sequentially, None uses the
                         configured value (or the executor default)

        Returns:
            One TriangulationResult per track, in input order
        """
        workers = max_workers if max_workers is not None else self.settings["max_workers"]

        if workers == 1 or len(tracks) <= 1:
            results = [self.triangulate_track(track) for track in tracks]
        else:
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(self.triangulate_track, tracks))

        log_batch_summary("TriangulationService", len(results),
                          sum(1 for result in results if result.success))
        return results

    def triangulate_points_array(self, tracks: Sequence[Track],
                                 max_workers: Optional[int] = None) -> np.ndarray:
        """
        Triangulate tracks and pack the results into an array.

        Args:
            tracks: Tracks to triangulate
            max_workers: See triangulate_tracks

        Returns:
            (N, 3) array; rows of failed tracks are NaN
        """
        results = self.triangulate_tracks(tracks, max_workers=max_workers)
        points_3d = np.full((len(results), 3), np.nan)
        for i, result in enumerate(results):
            if result.success:
                points_3d[i] = result.point
        return points_3d
