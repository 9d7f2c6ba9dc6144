"""
Tests for the per-frame and calibration flow
"""

import numpy as np
import pytest

from paper_drum.config import DrumConfig, TriggerParams, Zone
from paper_drum.geometry import CornerCandidate, Homography
from paper_drum.session import DrumSession

SOURCE = (640, 480)
SURFACE = (640, 480)
RECT = [(64.0, 48.0), (576.0, 48.0), (576.0, 432.0), (64.0, 432.0)]


def norm(x, y, size=SOURCE):
    return (x / size[0], y / size[1])


@pytest.fixture
def session():
    cfg = DrumConfig(zones=(Zone("A", 100, 100, 30),), trigger=TriggerParams())
    return DrumSession(cfg)


class TestProcessFrame:
    """Tests for DrumSession.process_frame"""

    def test_stroke_through_pad_fires(self):
        """Uncalibrated, a sheet-sized surface maps 1:1 onto the sheet"""
        cfg = DrumConfig(zones=(Zone("A", 100, 100, 30),))
        s = DrumSession(cfg)
        size = (384, 288)

        first = s.process_frame(norm(75, 100, size), size, size, 0)
        second = s.process_frame(norm(125, 100, size), size, size, 50)

        assert first.events == []
        assert len(second.events) == 1
        assert second.events[0].zone_name == "A"
        assert second.events[0].intensity == pytest.approx(1.0)
        assert second.cursor == pytest.approx((125, 100))

    def test_missing_point_is_not_an_error(self, session):
        """No detector point: nothing is mapped, engine state untouched"""
        session.process_frame(norm(300, 200), SOURCE, SURFACE, 0)
        before = session.engine.state("A")

        result = session.process_frame(None, SOURCE, SURFACE, 10)

        assert result.cursor is None
        assert result.events == []
        assert session.engine.state("A") == before
        assert session.last_cursor is not None

    def test_frame_not_ready(self, session):
        assert session.process_frame((0.5, 0.5), (0, 0), SURFACE, 0).cursor is None

    def test_cover_fit_applies_before_fallback(self, session):
        """Wide surface crops the source vertically"""
        result = session.process_frame((0.5, 0.5), (640, 480), (800, 450), 0)
        assert result.surface_point == pytest.approx((400, 225))
        assert result.cursor == pytest.approx((192, 144))

    def test_mirror_flips_detector_x(self, session):
        session.mirror = True
        result = session.process_frame((0.25, 0.5), SOURCE, SURFACE, 0)
        assert result.surface_point == pytest.approx((480, 240))

    def test_degenerate_mapping_reuses_previous_cursor(self, session):
        # w = x - 600 vanishes on the vertical line x == 600
        session.calibration.replace(Homography([[1, 0, 0], [0, 1, 0], [1, 0, -600]]))

        first = session.process_frame(norm(300, 200), SOURCE, SURFACE, 0)
        second = session.process_frame(norm(600, 200), SOURCE, SURFACE, 10)

        assert first.cursor is not None
        assert second.cursor == first.cursor
        assert np.isfinite(second.cursor).all()

    def test_degenerate_first_frame_is_skipped(self, session):
        session.calibration.replace(Homography([[1, 0, 0], [0, 1, 0], [1, 0, -600]]))
        result = session.process_frame(norm(600, 200), SOURCE, SURFACE, 0)
        assert result.cursor is None
        assert result.events == []


class TestCalibrate:
    """Tests for DrumSession.calibrate"""

    def test_success_installs_transform(self, session):
        candidates = [CornerCandidate(x, y, 10.0) for x, y in reversed(RECT)]
        result = session.calibrate(candidates, SOURCE, SURFACE)

        assert result.success
        assert session.calibrated
        assert np.allclose(result.corners, RECT)

        # sheet center sits in the middle of the detected rectangle
        frame = session.process_frame(norm(320, 240), SOURCE, SURFACE, 0)
        assert frame.cursor == pytest.approx((192, 144))

        frame = session.process_frame(norm(64, 48), SOURCE, SURFACE, 10)
        assert frame.cursor[0] == pytest.approx(0, abs=1e-6)
        assert frame.cursor[1] == pytest.approx(0, abs=1e-6)

    def test_failure_keeps_previous_transform(self, session):
        assert session.calibrate(RECT, SOURCE, SURFACE).success
        before = session.calibration.current

        result = session.calibrate(RECT[:3], SOURCE, SURFACE)

        assert not result.success
        assert session.calibration.current is before

    def test_failure_when_uncalibrated_stays_on_fallback(self, session):
        result = session.calibrate([], SOURCE, SURFACE)
        assert not result.success
        assert session.calibration.current is None
        assert result.message

    def test_collinear_corners_fail(self, session):
        line = [(0.0, 0.0), (100.0, 100.0), (200.0, 200.0), (300.0, 300.0)]
        result = session.calibrate(line, SOURCE, SURFACE)
        assert not result.success
        assert not session.calibrated

    def test_corners_are_mapped_through_cover_fit(self, session):
        result = session.calibrate(RECT, (640, 480), (800, 450))
        # scale 1.25, vertical offset -75
        assert result.corners[0] == pytest.approx((80.0, -15.0))

    def test_mirrored_candidates(self, session):
        session.mirror = True
        quad = [(100.0, 50.0), (600.0, 40.0), (560.0, 440.0), (40.0, 400.0)]
        result = session.calibrate(quad, SOURCE, SURFACE)

        assert result.success
        # the candidate at (600, 40) becomes the top-left once mirrored
        assert result.corners[0] == pytest.approx((40.0, 40.0))

    def test_set_mirror_drops_calibration(self, session):
        session.calibrate(RECT, SOURCE, SURFACE)
        session.set_mirror(True)
        assert session.mirror
        assert not session.calibrated

    def test_reset_calibration(self, session):
        session.calibrate(RECT, SOURCE, SURFACE)
        session.reset_calibration()
        assert not session.calibrated
        assert session.last_cursor is None
