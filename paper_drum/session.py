"""
Per-frame mapping and calibration flow for the paper drum.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from paper_drum.config import DrumConfig
from paper_drum.geometry import (
    CalibrationStore, CalibrationUnavailable, CornerCandidate,
    as_candidate, apply_homography, compute_homography, cover_fit, normalized_to_source, resolve_corners
)
from paper_drum.trigger import TriggerEngine, TriggerEvent

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    cursor: Optional[Tuple[float, float]] = None        # sheet units
    surface_point: Optional[Tuple[float, float]] = None  # display pixels
    events: List[TriggerEvent] = field(default_factory=list)


@dataclass
class CalibrationResult:
    success: bool
    message: str
    corners: Optional[List[Tuple[float, float]]] = None  # display pixels, TL TR BR BL


class DrumSession:
    '''
    Owns the calibration and the trigger engine for one fingertip stream.
    Calibration and frame processing are called from the same loop, so they
    never overlap.
    '''

    def __init__(self, config: DrumConfig):
        self.config = config
        self.mirror = config.mirror
        self.calibration = CalibrationStore()
        self.engine = TriggerEngine(config.zones, config.trigger)
        self.last_cursor: Optional[Tuple[float, float]] = None

    @property
    def calibrated(self) -> bool:
        return self.calibration.calibrated

    def source_to_surface(self, point, source_size, surface_size) -> Tuple[float, float]:
        fit = cover_fit(surface_size[0], surface_size[1], source_size[0], source_size[1])
        return fit.map_point(point)

    def to_sheet(self, normalized_point, source_size, surface_size):
        '''
        Map a normalized detector point all the way to sheet units.
        :return: (surface_point, sheet_point); sheet_point is None on a degenerate mapping
        '''
        source_point = normalized_to_source(normalized_point, source_size[0], source_size[1], self.mirror)
        surface_point = self.source_to_surface(source_point, source_size, surface_size)

        # one read of the transform per frame
        homography = self.calibration.current
        sheet_point = apply_homography(homography, surface_point, surface_size, self.config.sheet_size)

        return surface_point, sheet_point

    def process_frame(self, normalized_point, source_size, surface_size, timestamp_ms) -> FrameResult:
        '''
        Run one frame through mapping and triggering.
        :param normalized_point: fingertip (x, y) in 0-1 detector coordinates, or None
        :param source_size: (width, height) of the current source frame
        :param surface_size: (width, height) of the current display surface
        :param timestamp_ms: frame time in milliseconds
        :return: FrameResult with the sheet cursor and any trigger events
        '''
        if normalized_point is None or not _positive(source_size) or not _positive(surface_size):
            return FrameResult()

        surface_point, sheet_point = self.to_sheet(normalized_point, source_size, surface_size)

        if sheet_point is None:
            if self.last_cursor is None:
                return FrameResult(surface_point=surface_point)
            logger.debug("degenerate mapping at %s, reusing previous cursor", surface_point)
            sheet_point = self.last_cursor

        self.last_cursor = sheet_point
        events = self.engine.update(sheet_point, timestamp_ms)

        for ev in events:
            logger.info("pad hit: %s (intensity %.2f)", ev.zone_name, ev.intensity)

        return FrameResult(sheet_point, surface_point, events)

    def calibrate(self, candidates: Sequence, source_size, surface_size) -> CalibrationResult:
        '''
        Derive a new perspective correction from raw corner candidates.
        The previous calibration stays active when this fails.
        :param candidates: CornerCandidate objects or (x, y[, weight]) in source pixels
        :param source_size: (width, height) of the frame the candidates came from
        :param surface_size: (width, height) of the current display surface
        '''
        if not _positive(source_size) or not _positive(surface_size):
            return self._failed("frame not ready")

        candidates = [self._mirror_candidate(c, source_size[0]) for c in (candidates or [])]

        try:
            corners_source = resolve_corners(candidates, self.config.markers.max_candidates)
        except CalibrationUnavailable as e:
            return self._failed(str(e))

        corners_surface = [self.source_to_surface(p, source_size, surface_size) for p in corners_source]
        homography = compute_homography(corners_surface, self.config.sheet_size)
        if homography is None:
            return self._failed("corner markers are degenerate (collinear?)")

        self.calibration.replace(homography)
        # sheet coordinates jump with a new transform
        self.engine.clear_motion()
        self.last_cursor = None
        return CalibrationResult(True, "calibrated", corners_surface)

    def set_mirror(self, mirror: bool):
        "a calibration taken in the other orientation no longer matches, so drop it"
        if mirror != self.mirror:
            self.mirror = mirror
            self.reset_calibration()

    def reset_calibration(self):
        self.calibration.reset()
        self.engine.clear_motion()
        self.last_cursor = None

    def _mirror_candidate(self, c, source_w) -> CornerCandidate:
        c = as_candidate(c)
        if self.mirror:
            return CornerCandidate(source_w - c.x, c.y, c.weight)
        return c

    def _failed(self, reason) -> CalibrationResult:
        state = "keeping previous calibration" if self.calibrated else "staying uncalibrated"
        logger.warning("calibration unavailable: %s; %s", reason, state)
        return CalibrationResult(False, reason)


def _positive(size) -> bool:
    return size is not None and size[0] > 0 and size[1] > 0
