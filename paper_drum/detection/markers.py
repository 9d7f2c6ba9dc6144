from pyapriltags import Detector
import cv2
import logging
import numpy as np
from typing import List, Optional

from paper_drum.geometry import CornerCandidate

logger = logging.getLogger(__name__)


def candidates_from_detections(detections, allowed_ids=None) -> List[CornerCandidate]:
    '''
    Turn AprilTag detections into corner candidates.
    Each tag contributes its center; the tag's pixel area is used as weight,
    so large, close markers win over small far-away noise.
    '''
    candidates = []
    for det in detections:
        if allowed_ids is not None and det.tag_id not in allowed_ids:
            continue

        corners = np.asarray(det.corners, dtype=np.float32).reshape(-1, 2)
        area = float(abs(cv2.contourArea(corners)))
        cx, cy = (float(v) for v in det.center)

        candidates.append(CornerCandidate(cx, cy, area))

    return candidates


# Corner marker detector for the printed sheet
class CornerMarkerDetector:
    def __init__(self, family: str = "tag36h11", allowed_ids: Optional[List[int]] = None):
        self.detector = Detector(families=family)
        self.allowed_ids = set(allowed_ids) if allowed_ids else None

    # Detect corner markers in the given frame
    def detect(self, frame) -> List[CornerCandidate]:
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        detections = self.detector.detect(gray)

        candidates = candidates_from_detections(detections, self.allowed_ids)
        logger.info("found %d corner marker candidates", len(candidates))

        return candidates
