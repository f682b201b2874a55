#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Constants Module for the bearing triangulation package.
This file centralizes the default thresholds and solver settings.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


# =============================================
# Triangulation Constants
# =============================================

@dataclass
class TRIANGULATION:
    """Default triangulation thresholds and solver selection"""
    # Angular reprojection error threshold (radians)
    reprojection_threshold: float = 0.01
    # Minimum triangulation angle between rays (degrees)
    min_angle_deg: float = 2.0
    # Minimum depth along each observation ray; negative disables the check
    min_depth: float = 1e-6
    # Gauss-Newton iterations applied after the linear estimate
    refinement_iterations: int = 10
    refine: bool = False
    # Solver: 'dlt', 'midpoint' or 'nonlinear'
    method: str = "dlt"
    # scipy least_squares method for the nonlinear solver: 'lm', 'trf', 'dogbox'
    sub_method: str = "lm"
    # Linear solver used to seed the nonlinear solver
    linear_method: str = "dlt"
    # Worker threads for batch track triangulation (None lets the executor decide)
    max_workers: Optional[int] = None


@dataclass
class NUMERICS:
    """Numerical tolerances of the linear solvers"""
    # Smallest |w| / ||X_h|| accepted before a DLT solution is a point at infinity
    homogeneous_eps: float = 1e-12
    # Largest condition number accepted for the midpoint normal equations
    max_condition_number: float = 1e10
    # Smallest determinant of the two-view 2x2 normal system
    two_view_det_eps: float = 1e-12
    # Refinement stops once the update is shorter than this
    refinement_step_eps: float = 1e-14


VALID_METHODS: Tuple[str, ...] = ("dlt", "midpoint", "nonlinear")
VALID_LINEAR_METHODS: Tuple[str, ...] = ("dlt", "midpoint")
VALID_NONLINEAR_METHODS: Tuple[str, ...] = ("lm", "trf", "dogbox")
