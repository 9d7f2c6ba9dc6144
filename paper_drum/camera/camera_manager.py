import cv2
import logging
import sys
from typing import Optional, Tuple

from paper_drum.config import CameraConfig

logger = logging.getLogger(__name__)


def open_camera(cfg: CameraConfig):
    "open the configured capture device and apply resolution / fps"
    # DirectShow opens much faster on Windows
    backend = cv2.CAP_DSHOW if sys.platform.startswith("win") else cv2.CAP_ANY

    cap = cv2.VideoCapture(cfg.device_id, backend)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.image_width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.image_height)
    cap.set(cv2.CAP_PROP_FPS, cfg.fps)

    if not cap.isOpened():
        raise RuntimeError(f"Camera {cfg.device_id} could not be opened")

    logger.info("camera %s opened at %sx%s", cfg.device_id,
                int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)), int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)))
    return cap


def frame_size(frame) -> Optional[Tuple[int, int]]:
    "(width, height) of a frame, None while the camera is not delivering"
    if frame is None or frame.size == 0:
        return None
    height, width = frame.shape[:2]
    return (width, height)
