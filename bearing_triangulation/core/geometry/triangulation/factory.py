#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Triangulation factory module.

This module provides a factory class for creating triangulator instances
based on specified methods and parameters.
"""

import logging
from typing import Dict, Any, Optional, Sequence

import numpy as np

from bearing_triangulation.core.geometry.triangulation.base import AbstractTriangulator
from bearing_triangulation.core.geometry.triangulation.dlt import DLTTriangulator
from bearing_triangulation.core.geometry.triangulation.midpoint import MidpointTriangulator
from bearing_triangulation.core.geometry.triangulation.nonlinear import NonlinearTriangulator
from bearing_triangulation.utils.constants import VALID_LINEAR_METHODS, VALID_NONLINEAR_METHODS

logger = logging.getLogger(__name__)

THRESHOLD_KEYS = ("reprojection_threshold", "min_angle", "min_depth")


class TriangulationFactory:
    """
    Factory class for creating triangulator instances.

    This class provides static methods to create different types of triangulators
    with appropriate parameters.
    """

    @staticmethod
    def create_triangulator(method: str = 'linear',
                            sub_method: str = 'dlt',
                            poses: Optional[Sequence[np.ndarray]] = None,
                            **kwargs) -> AbstractTriangulator:
        """
        Create a triangulator instance based on the specified method.

        Args:
            method: Triangulation method ('linear', 'nonlinear'); 'dlt' and
                    'midpoint' are accepted as shorthands for linear methods
            sub_method: Specific algorithm implementation
                       - For linear: 'dlt', 'midpoint'
                       - For nonlinear: 'lm', 'trf', 'dogbox'
            poses: Camera poses to initialize the triangulator
            **kwargs: Thresholds (reprojection_threshold, min_angle, min_depth)
                      and, for nonlinear, linear_method

        Returns:
            AbstractTriangulator instance
        """
        if method in VALID_LINEAR_METHODS:
            return TriangulationFactory.create_linear_triangulator(method, poses, **kwargs)
        elif method == 'linear':
            return TriangulationFactory.create_linear_triangulator(sub_method, poses, **kwargs)
        elif method == 'nonlinear':
            return TriangulationFactory.create_nonlinear_triangulator(sub_method, poses, **kwargs)
        else:
            logger.error(f"Unknown triangulation method: {method}")
            # Default to DLT triangulation
            return TriangulationFactory.create_linear_triangulator('dlt', poses, **kwargs)

    @staticmethod
    def create_linear_triangulator(method: str = 'dlt',
                                   poses: Optional[Sequence[np.ndarray]] = None,
                                   **kwargs) -> AbstractTriangulator:
        """
        Create a linear triangulator with the specified method.

        Args:
            method: Linear triangulation method ('dlt', 'midpoint')
            poses: Camera poses to initialize the triangulator
            **kwargs: Threshold parameters

        Returns:
            DLTTriangulator or MidpointTriangulator instance
        """
        if method not in VALID_LINEAR_METHODS:
            logger.warning(f"Unknown linear method: {method}. Using 'dlt' instead.")
            method = 'dlt'

        thresholds = {key: kwargs[key] for key in THRESHOLD_KEYS if key in kwargs}
        if method == 'midpoint':
            return MidpointTriangulator(poses, **thresholds)
        return DLTTriangulator(poses, **thresholds)

    @staticmethod
    def create_nonlinear_triangulator(method: str = 'lm',
                                      poses: Optional[Sequence[np.ndarray]] = None,
                                      linear_method: str = 'dlt',
                                      **kwargs) -> NonlinearTriangulator:
        """
        Create a nonlinear triangulator with the specified method.

        Args:
            method: Nonlinear optimization method ('lm', 'trf', 'dogbox')
            poses: Camera poses to initialize the triangulator
            linear_method: Linear method for initial estimate
            **kwargs: Threshold parameters

        Returns:
            NonlinearTriangulator instance
        """
        if method not in VALID_NONLINEAR_METHODS:
            logger.warning(f"Unknown nonlinear method: {method}. Using 'lm' instead.")
            method = 'lm'

        if linear_method not in VALID_LINEAR_METHODS:
            logger.warning(f"Unknown linear method: {linear_method}. Using 'dlt' instead.")
            linear_method = 'dlt'

        thresholds = {key: kwargs[key] for key in THRESHOLD_KEYS if key in kwargs}
        return NonlinearTriangulator(poses,
                                     linear_method=linear_method,
                                     optimization_method=method,
                                     **thresholds)

    @staticmethod
    def create_triangulator_from_config(config: Dict[str, Any],
                                        poses: Optional[Sequence[np.ndarray]] = None) -> AbstractTriangulator:
        """
        Create a triangulator from a configuration dictionary.

        The dictionary uses the layout returned by
        ConfigManager.get_triangulation_settings(): 'method' is one of 'dlt',
        'midpoint' or 'nonlinear', angles are in radians.

        Args:
            config: Configuration dictionary with triangulation parameters
            poses: Camera poses to initialize the triangulator

        Returns:
            AbstractTriangulator instance
        """
        method = config.get('method', 'dlt')
        sub_method = config.get('sub_method', 'lm' if method == 'nonlinear' else method)

        kwargs = {key: config[key] for key in THRESHOLD_KEYS if key in config}

        if method == 'nonlinear':
            kwargs['linear_method'] = config.get('linear_method', 'dlt')

        triangulator = TriangulationFactory.create_triangulator(
            method=method,
            sub_method=sub_method,
            poses=poses,
            **kwargs
        )

        return triangulator
