"""
Tests for fiducial marker detection.
"""

import os
import sys
import unittest

import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.dirname(__file__))

from cube_vision.config import FiducialConfig
from cube_vision.detection.fiducials import (
    CandidateRegion,
    detect_candidates,
    find_fiducials,
    regions_from_mask,
)
from cube_vision.errors import CalibrationError
from synthetic import blank, face_image, with_disks

DISKS = [(60, 60), (240, 50), (70, 200), (250, 210)]


def _sorted_centroids(regions):
    return sorted((round(r.centroid[0]), round(r.centroid[1])) for r in regions)


class TestFindFiducials(unittest.TestCase):
    """Detection on synthetic marker layouts."""

    def setUp(self):
        self.background = blank(280, 300)

    def test_four_disks_found_at_their_centres(self):
        image = with_disks(self.background, DISKS, radius=8)
        fiducials = find_fiducials(image)

        self.assertEqual(len(fiducials), 4)
        found = sorted(f.centroid for f in fiducials)
        for (fx, fy), (ex, ey) in zip(found, sorted(DISKS)):
            self.assertAlmostEqual(fx, ex, delta=1.0)
            self.assertAlmostEqual(fy, ey, delta=1.0)

    def test_disk_shape_measurements(self):
        image = with_disks(self.background, DISKS, radius=8)
        for f in find_fiducials(image):
            self.assertGreater(f.major_axis_length, 10)
            self.assertLess(f.major_axis_length, 24)
            self.assertLess(f.major_axis_length / f.minor_axis_length, 1.2)
            self.assertGreater(f.area, 100)
            self.assertLess(f.area, 450)

    def test_three_disks_is_calibration_error(self):
        image = with_disks(self.background, DISKS[:3], radius=8)
        with self.assertRaises(CalibrationError) as ctx:
            find_fiducials(image)
        self.assertEqual(ctx.exception.found, 3)
        self.assertEqual(ctx.exception.expected, 4)
        self.assertIn("found 3", str(ctx.exception))

    def test_five_disks_is_calibration_error(self):
        image = with_disks(self.background, DISKS + [(150, 130)], radius=8)
        with self.assertRaises(CalibrationError) as ctx:
            find_fiducials(image)
        self.assertEqual(ctx.exception.found, 5)

    def test_blank_image_is_calibration_error(self):
        with self.assertRaises(CalibrationError) as ctx:
            find_fiducials(self.background)
        self.assertEqual(ctx.exception.found, 0)

    def test_large_blob_is_filtered_out(self):
        image = with_disks(blank(400, 400), [(200, 200)], radius=50)
        image = with_disks(image, [(40, 40), (360, 40), (40, 360), (360, 360)], radius=8)

        candidates = detect_candidates(image)
        fiducials = find_fiducials(image)
        self.assertEqual(len(candidates), 5)
        self.assertEqual(len(fiducials), 4)
        self.assertNotIn((200, 200), _sorted_centroids(fiducials))

    def test_marker_cut_by_border_is_ignored(self):
        image = with_disks(self.background, DISKS + [(0, 140)], radius=8)
        self.assertEqual(len(find_fiducials(image)), 4)

    def test_face_markers(self):
        fiducials = find_fiducials(face_image())
        self.assertEqual(
            _sorted_centroids(fiducials),
            [(20, 20), (20, 380), (380, 20), (380, 380)],
        )

    def test_custom_expected_count(self):
        image = with_disks(self.background, DISKS[:3], radius=8)
        config = FiducialConfig(expected_count=3)
        self.assertEqual(len(find_fiducials(image, config)), 3)


class TestRegionProperties(unittest.TestCase):
    """Ellipse fit on hand-made masks."""

    def test_rectangle_moments(self):
        mask = np.zeros((50, 80), dtype=bool)
        mask[20:30, 10:50] = True   # 40 wide, 10 high
        (region,) = regions_from_mask(mask)

        self.assertEqual(region.area, 400)
        self.assertAlmostEqual(region.centroid[0], 29.5)
        self.assertAlmostEqual(region.centroid[1], 24.5)
        self.assertAlmostEqual(region.major_axis_length, 2 * np.sqrt(2) * np.sqrt(800 / 3), places=3)
        self.assertAlmostEqual(region.minor_axis_length, 2 * np.sqrt(2) * np.sqrt(50 / 3), places=3)

    def test_components_are_eight_connected(self):
        mask = np.zeros((10, 10), dtype=bool)
        mask[2, 2] = True
        mask[3, 3] = True
        self.assertEqual(len(regions_from_mask(mask)), 1)

    def test_size_filter_is_strict(self):
        config = FiducialConfig()
        at_limit = CandidateRegion((0.0, 0.0), 70.0, 10.0, 100.0)
        below = CandidateRegion((0.0, 0.0), 69.9, 10.0, 100.0)
        big_area = CandidateRegion((0.0, 0.0), 20.0, 10.0, 5000.0)
        self.assertFalse(at_limit.is_fiducial(config))
        self.assertTrue(below.is_fiducial(config))
        self.assertFalse(big_area.is_fiducial(config))


if __name__ == "__main__":
    unittest.main()
