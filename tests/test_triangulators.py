#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Tests for the triangulator classes and the triangulation factory.
"""

import unittest

import numpy as np

from bearing_triangulation.core.geometry.primitives import pose_from_center
from bearing_triangulation.core.geometry.triangulation import (
    DLTTriangulator,
    MidpointTriangulator,
    NonlinearTriangulator,
    TriangulationFactory,
    TriangulationResult,
    triangulate_bearings_nonlinear,
)
from scene_generators import (
    MIN_ANGLE, MIN_DEPTH, THRESHOLD, five_cams, two_cams, two_cams_many_points
)


class TestTriangulators(unittest.TestCase):
    """Behaviour shared by all triangulator implementations."""

    def setUp(self):
        """Set up the scene."""
        self.scene = five_cams()
        self.triangulators = [
            DLTTriangulator(self.scene["poses"]),
            MidpointTriangulator(self.scene["poses"]),
            NonlinearTriangulator(self.scene["poses"]),
            NonlinearTriangulator(self.scene["poses"], linear_method='midpoint',
                                  optimization_method='trf'),
        ]

    def test_triangulate_point(self):
        """Every triangulator recovers the point from exact and noisy bearings."""
        for triangulator in self.triangulators:
            with self.subTest(triangulator=type(triangulator).__name__):
                success, point = triangulator.triangulate_point(self.scene["bearings"])
                self.assertTrue(success)
                self.assertLess(np.linalg.norm(point - self.scene["gt_point"]), 1e-6)

                success, point = triangulator.triangulate_point(self.scene["bearings_noisy"])
                self.assertTrue(success)
                self.assertLess(np.linalg.norm(point - self.scene["gt_point"]), 0.01)

    def test_reprojection_error(self):
        """The ground truth has zero error, a displaced point does not."""
        triangulator = self.triangulators[0]
        error = triangulator.calculate_reprojection_error(self.scene["gt_point"], self.scene["bearings"])
        self.assertLess(error, 1e-9)
        error = triangulator.calculate_reprojection_error(
            self.scene["gt_point"] + [0.1, 0.0, 0.0], self.scene["bearings"])
        self.assertGreater(error, 0.01)

    def test_uncalibrated(self):
        """An uncalibrated triangulator reports failure instead of raising."""
        triangulator = DLTTriangulator()
        self.assertFalse(triangulator.is_ready())
        result = triangulator.triangulate_point(self.scene["bearings"])
        self.assertIsInstance(result, TriangulationResult)
        self.assertFalse(result.success)
        self.assertEqual(triangulator.triangulate_points([self.scene["bearings"]]), [])
        self.assertEqual(triangulator.calculate_reprojection_error(self.scene["gt_point"],
                                                                   self.scene["bearings"]),
                         float('inf'))

    def test_single_pose_is_rejected(self):
        """At least two poses are needed to calibrate."""
        triangulator = MidpointTriangulator(self.scene["poses"][:1])
        self.assertFalse(triangulator.is_ready())

    def test_reset(self):
        """Reset clears the calibration."""
        triangulator = self.triangulators[0]
        self.assertTrue(triangulator.is_ready())
        triangulator.reset()
        self.assertFalse(triangulator.is_ready())
        self.assertEqual(triangulator.get_calibration_status()["n_cameras"], 0)

    def test_invalid_recalibration_clears_poses(self):
        """Rejected poses do not leave the previous calibration in place."""
        triangulator = self.triangulators[0]
        triangulator.set_camera_parameters(self.scene["poses"][:1])
        self.assertFalse(triangulator.is_ready())
        self.assertEqual(triangulator.poses, [])

        triangulator = self.triangulators[1]
        triangulator.set_camera_parameters([np.eye(3), np.eye(3)])
        self.assertFalse(triangulator.is_ready())
        self.assertEqual(triangulator.get_calibration_status()["n_cameras"], 0)

    def test_wrong_bearing_count_raises(self):
        """A bearing count different from the pose count is a caller error."""
        with self.assertRaises(ValueError):
            self.triangulators[0].triangulate_point(self.scene["bearings"][:2])

    def test_nan_bearings_fail(self):
        """NaN bearings fail without reaching the solver."""
        bearings = self.scene["bearings"].copy()
        bearings[0, 0] = np.nan
        self.assertFalse(self.triangulators[1].triangulate_point(bearings).success)

    def test_invalid_nonlinear_methods_raise(self):
        """Unknown solver names are rejected at construction."""
        with self.assertRaises(ValueError):
            NonlinearTriangulator(optimization_method='newton')
        with self.assertRaises(ValueError):
            NonlinearTriangulator(linear_method='eigen')


class TestTriangulatePoints(unittest.TestCase):
    """Batch triangulation through the triangulator interface."""

    def setUp(self):
        """Set up two posed cameras observing two points."""
        self.scene = two_cams_many_points()
        self.poses = [
            pose_from_center(np.zeros(3)),
            pose_from_center(self.scene["translation_1_2"], self.scene["rotation_1_2"].T),
        ]

    def test_triangulate_points(self):
        """Each row of the per-view arrays yields one point."""
        for triangulator in (DLTTriangulator(self.poses), MidpointTriangulator(self.poses)):
            results = triangulator.triangulate_points([self.scene["bearings1"], self.scene["bearings2"]])
            self.assertEqual(len(results), len(self.scene["gt_points"]))
            for (success, point), gt_point in zip(results, self.scene["gt_points"]):
                self.assertTrue(success)
                self.assertLess(np.linalg.norm(point - gt_point), 1e-6)

    def test_mismatched_rows_raise(self):
        """All views must observe the same number of points."""
        triangulator = DLTTriangulator(self.poses)
        with self.assertRaises(ValueError):
            triangulator.triangulate_points([self.scene["bearings1"], self.scene["bearings2"][:1]])


class TestNonlinearFunction(unittest.TestCase):
    """Tests for the functional nonlinear solver."""

    def setUp(self):
        """Set up the scene."""
        self.scene = two_cams()

    def test_recovers_point(self):
        """Least-squares refinement keeps the exact solution."""
        for method in ('lm', 'trf', 'dogbox'):
            with self.subTest(method=method):
                success, point = triangulate_bearings_nonlinear(
                    self.scene["poses"], self.scene["bearings_noisy"], THRESHOLD, MIN_ANGLE, MIN_DEPTH,
                    optimization_method=method)
                self.assertTrue(success)
                self.assertLess(np.linalg.norm(point - self.scene["gt_point"]), 0.01)

    def test_parallel_rays_fail(self):
        """Parallel rays are rejected before optimizing."""
        bearings = np.array([[0.0, 0.0, 1.0], [0.0, 0.0, 1.0]])
        success, _ = triangulate_bearings_nonlinear(
            self.scene["poses"], bearings, THRESHOLD, MIN_ANGLE, MIN_DEPTH)
        self.assertFalse(success)


class TestTriangulationFactory(unittest.TestCase):
    """Tests for TriangulationFactory."""

    def test_create_linear(self):
        """Linear sub-methods map to their classes."""
        self.assertIsInstance(TriangulationFactory.create_triangulator('linear', 'dlt'), DLTTriangulator)
        self.assertIsInstance(TriangulationFactory.create_triangulator('linear', 'midpoint'),
                              MidpointTriangulator)
        self.assertIsInstance(TriangulationFactory.create_triangulator('midpoint'), MidpointTriangulator)

    def test_unknown_methods_fall_back(self):
        """Unknown names fall back to DLT and Levenberg-Marquardt."""
        self.assertIsInstance(TriangulationFactory.create_triangulator('magic'), DLTTriangulator)
        self.assertIsInstance(TriangulationFactory.create_linear_triangulator('eigen'), DLTTriangulator)
        triangulator = TriangulationFactory.create_nonlinear_triangulator('newton', linear_method='eigen')
        self.assertEqual(triangulator.optimization_method, 'lm')
        self.assertEqual(triangulator.linear_method, 'dlt')

    def test_thresholds_are_forwarded(self):
        """Threshold keyword arguments reach the triangulator."""
        triangulator = TriangulationFactory.create_triangulator(
            'nonlinear', 'trf', reprojection_threshold=0.05, min_angle=0.1, min_depth=-1.0)
        self.assertIsInstance(triangulator, NonlinearTriangulator)
        self.assertEqual(triangulator.optimization_method, 'trf')
        self.assertEqual(triangulator.reprojection_threshold, 0.05)
        self.assertEqual(triangulator.min_angle, 0.1)
        self.assertEqual(triangulator.min_depth, -1.0)

    def test_create_from_config(self):
        """Configuration dictionaries select method and thresholds."""
        scene = two_cams()
        config = {'method': 'nonlinear', 'sub_method': 'dogbox', 'linear_method': 'midpoint',
                  'min_angle': MIN_ANGLE, 'min_depth': MIN_DEPTH, 'reprojection_threshold': THRESHOLD}
        triangulator = TriangulationFactory.create_triangulator_from_config(config, scene["poses"])
        self.assertIsInstance(triangulator, NonlinearTriangulator)
        self.assertEqual(triangulator.linear_method, 'midpoint')
        self.assertTrue(triangulator.is_ready())
        success, point = triangulator.triangulate_point(scene["bearings"])
        self.assertTrue(success)
        self.assertLess(np.linalg.norm(point - scene["gt_point"]), 1e-6)

        self.assertIsInstance(TriangulationFactory.create_triangulator_from_config({'method': 'midpoint'}),
                              MidpointTriangulator)
        self.assertIsInstance(TriangulationFactory.create_triangulator_from_config({}), DLTTriangulator)


if __name__ == '__main__':
    unittest.main()
