#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Triangulation package initialization.

This package provides bearing-based triangulation: DLT and midpoint solvers,
a vectorized two-view solver, an epipolar consistency check, Gauss-Newton
point refinement and the validity checks shared by all of them.
"""

from bearing_triangulation.core.geometry.triangulation.base import (
    AbstractTriangulator, TriangulationResult
)
from bearing_triangulation.core.geometry.triangulation.validation import (
    check_triangulation, check_triangulation_poses
)
from bearing_triangulation.core.geometry.triangulation.dlt import (
    DLTTriangulator, triangulate_bearings_dlt
)
from bearing_triangulation.core.geometry.triangulation.midpoint import (
    MidpointTriangulator, triangulate_bearings_midpoint
)
from bearing_triangulation.core.geometry.triangulation.two_view import (
    TwoViewResults,
    triangulate_two_bearings_midpoint_many,
    epipolar_angle_two_bearings_many,
)
from bearing_triangulation.core.geometry.triangulation.refinement import point_refinement
from bearing_triangulation.core.geometry.triangulation.nonlinear import (
    NonlinearTriangulator, triangulate_bearings_nonlinear
)
from bearing_triangulation.core.geometry.triangulation.factory import TriangulationFactory

__all__ = [
    'AbstractTriangulator',
    'TriangulationResult',
    'check_triangulation',
    'check_triangulation_poses',
    'DLTTriangulator',
    'triangulate_bearings_dlt',
    'MidpointTriangulator',
    'triangulate_bearings_midpoint',
    'TwoViewResults',
    'triangulate_two_bearings_midpoint_many',
    'epipolar_angle_two_bearings_many',
    'point_refinement',
    'NonlinearTriangulator',
    'triangulate_bearings_nonlinear',
    'TriangulationFactory',
]
