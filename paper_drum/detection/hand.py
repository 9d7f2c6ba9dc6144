import cv2
import logging
import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

INDEX_FINGER_TIP = 8


@dataclass(frozen=True)
class FingertipSample:
    point: Tuple[float, float]        # normalized 0-1 detector coordinates
    frame_size: Tuple[int, int]       # (width, height) of the frame it came from


class FingertipDetector:
    '''
    Class to track the index fingertip of one hand using the MediaPipe hand landmarker.
    '''

    def __init__(self,
                 model_path,
                 min_detection_confidence: float = 0.7,
                 min_tracking_confidence: float = 0.5):

        model_path = Path(model_path)
        if not model_path.exists():
            raise FileNotFoundError(
                f"hand landmarker model not found at {model_path}, download hand_landmarker.task first"
            )

        options = vision.HandLandmarkerOptions(
            base_options=python.BaseOptions(model_asset_path=str(model_path)),
            num_hands=1,
            min_hand_detection_confidence=min_detection_confidence,
            min_hand_presence_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
            running_mode=vision.RunningMode.VIDEO
        )
        self.landmarker = vision.HandLandmarker.create_from_options(options)
        logger.info("hand landmarker loaded from %s", model_path)
        self._last_timestamp_ms = -1

    def detect(self, image: np.ndarray, timestamp_ms: int) -> Optional[FingertipSample]:
        '''
        Detect the index fingertip in the given image.
        :param image: BGR image (OpenCV default format)
        :param timestamp_ms: frame time, must increase between calls
        :return: FingertipSample or None if no hand is visible
        '''
        if image is None or image.size == 0:
            return None

        # VIDEO mode rejects non-increasing timestamps
        timestamp_ms = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        # Convert BGR to RGB (MediaPipe expects RGB)
        image_rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=image_rgb)

        result = self.landmarker.detect_for_video(mp_image, timestamp_ms)
        if not result.hand_landmarks:
            return None

        tip = result.hand_landmarks[0][INDEX_FINGER_TIP]
        height, width = image.shape[:2]

        return FingertipSample((float(tip.x), float(tip.y)), (width, height))

    def close(self):
        self.landmarker.close()
