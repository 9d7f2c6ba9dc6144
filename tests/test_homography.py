"""
Tests for the homography estimator and calibration store
"""

import numpy as np
import pytest

from paper_drum.geometry.homography import (
    Homography, CalibrationStore, compute_homography, apply_homography, transform_points, sheet_corners
)

SHEET = (384, 288)


class TestComputeHomography:
    """Tests for compute_homography"""

    @pytest.fixture
    def skewed_corners(self):
        """Perspective-distorted sheet as seen on screen (TL, TR, BR, BL)"""
        return [(100.0, 80.0), (520.0, 60.0), (560.0, 420.0), (70.0, 400.0)]

    def test_round_trip_hits_sheet_corners(self, skewed_corners):
        """Calibration points map onto the canonical sheet corners"""
        H = compute_homography(skewed_corners, SHEET)
        assert H is not None

        for src, expected in zip(skewed_corners, sheet_corners(SHEET)):
            mapped = apply_homography(H, src, (640, 480), SHEET)
            assert mapped[0] == pytest.approx(expected[0], abs=1e-6)
            assert mapped[1] == pytest.approx(expected[1], abs=1e-6)

    def test_axis_aligned_rectangle_is_plain_scaling(self):
        H = compute_homography([(0, 0), (768, 0), (768, 576), (0, 576)], SHEET)
        assert apply_homography(H, (384, 288), (768, 576), SHEET) == pytest.approx((192, 144))
        assert H.matrix[2, 0] == pytest.approx(0.0, abs=1e-12)
        assert H.matrix[2, 1] == pytest.approx(0.0, abs=1e-12)

    def test_collinear_points_fail(self):
        """Three corners on one line cannot define a homography"""
        assert compute_homography([(0, 0), (100, 0), (200, 0), (0, 100)], SHEET) is None

    def test_repeated_corner_fails(self):
        assert compute_homography([(0, 0), (100, 0), (100, 0), (0, 100)], SHEET) is None

    def test_wrong_number_of_points_fails(self):
        assert compute_homography([(0, 0), (100, 0), (100, 100)], SHEET) is None

    def test_non_finite_points_fail(self):
        assert compute_homography([(0, 0), (100, np.nan), (100, 100), (0, 100)], SHEET) is None


class TestApplyHomography:
    """Tests for apply_homography"""

    def test_fallback_is_linear_rescale(self):
        """Without calibration the display is scaled onto the sheet"""
        assert apply_homography(None, (320, 240), (640, 480), SHEET) == pytest.approx((192, 144))
        assert apply_homography(None, (640, 0), (640, 480), SHEET) == pytest.approx((384, 0))

    def test_point_at_infinity_returns_none(self):
        """w == 0 must not produce inf/nan"""
        H = Homography([[1, 0, 0], [0, 1, 0], [1, 0, -5]])
        assert apply_homography(H, (5, 0), (640, 480), SHEET) is None

    def test_transform_points_matches_apply(self):
        H = compute_homography([(100, 80), (520, 60), (560, 420), (70, 400)], SHEET)
        pts = np.array([[300.0, 250.0], [120.0, 390.0]])
        batch = transform_points(pts, H)
        for p, b in zip(pts, batch):
            assert apply_homography(H, p, (640, 480), SHEET) == pytest.approx(tuple(b))

    def test_inverse_maps_sheet_back_to_display(self):
        corners = [(100.0, 80.0), (520.0, 60.0), (560.0, 420.0), (70.0, 400.0)]
        H = compute_homography(corners, SHEET)
        back = transform_points(sheet_corners(SHEET), H.inverse())
        assert np.allclose(back, np.array(corners), atol=1e-6)


class TestHomographyValue:
    """The transform is immutable"""

    def test_matrix_is_read_only(self):
        H = Homography(np.eye(3))
        with pytest.raises(ValueError):
            H.matrix[0, 0] = 2.0

    def test_source_array_changes_do_not_leak(self):
        m = np.eye(3)
        H = Homography(m)
        m[0, 0] = 5.0
        assert H.matrix[0, 0] == 1.0


class TestCalibrationStore:
    """Tests for CalibrationStore"""

    def test_starts_uncalibrated(self):
        store = CalibrationStore()
        assert store.current is None
        assert not store.calibrated

    def test_replace_swaps_whole_transform(self):
        store = CalibrationStore()
        first = Homography(np.eye(3))
        second = Homography(np.diag([2.0, 2.0, 1.0]))

        store.replace(first)
        held = store.current
        store.replace(second)

        assert store.current is second
        assert held is first
        assert held.matrix[0, 0] == 1.0

    def test_replace_with_none_is_rejected(self):
        with pytest.raises(ValueError):
            CalibrationStore().replace(None)

    def test_reset_returns_to_fallback(self):
        store = CalibrationStore()
        store.replace(Homography(np.eye(3)))
        store.reset()
        assert store.current is None
