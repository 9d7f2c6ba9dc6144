import argparse
import logging
import time
from dataclasses import replace
from pathlib import Path

import cv2

from paper_drum.camera import open_camera, frame_size
from paper_drum.config import DrumConfig, load_config
from paper_drum.detection.hand import FingertipDetector
from paper_drum.detection.markers import CornerMarkerDetector
from paper_drum.geometry import fit_frame
from paper_drum.logging_utils import setup_logging
from paper_drum.session import DrumSession
from paper_drum.visualization import (
    draw_pads, draw_cursor, draw_corners, draw_calibration_status, draw_message
)

logger = logging.getLogger(__name__)

WINDOW_NAME = "Paper Drum"
HIT_FLASH_MS = 150
ESC = 27


def surface_size(default):
    "current size of the display window, falls back to the frame size"
    try:
        _, _, w, h = cv2.getWindowImageRect(WINDOW_NAME)
    except cv2.error:
        return default
    if w <= 0 or h <= 0:
        return default
    return (w, h)


def parse_args(argv=None):
    project_root = Path(__file__).resolve().parents[1]

    parser = argparse.ArgumentParser(description="Play the printed paper drum with your index finger.")
    parser.add_argument("--config", type=Path, default=project_root / "configs" / "paper_drum.yaml",
                        help="drum configuration (yaml)")
    return parser.parse_args(argv)


def main(argv=None):

    args = parse_args(argv)

    # Load configuration
    if args.config.exists():
        cfg = load_config(args.config)
    else:
        print(f"No config at {args.config}, using the six-pad reference layout")
        cfg = DrumConfig.default()

    setup_logging(cfg.log_level)
    logger.info("%d pads on a %gx%g sheet", len(cfg.zones), cfg.sheet_width, cfg.sheet_height)

    session = DrumSession(cfg)
    hand_detector = FingertipDetector(
        cfg.detector.model_path,
        min_detection_confidence=cfg.detector.min_detection_confidence,
        min_tracking_confidence=cfg.detector.min_tracking_confidence
    )
    marker_detector = CornerMarkerDetector(cfg.markers.family, cfg.markers.ids)

    cap = open_camera(cfg.camera)

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(WINDOW_NAME, cfg.camera.image_width, cfg.camera.image_height)

    flashes = {}            # zone name -> (intensity, until_ms)
    last_corners = None
    message = "Show the printed sheet, press 'c' to calibrate."
    start = time.perf_counter()

    # main loop
    print("Starting paper drum... c: calibrate, r: reset calibration, m: mirror, d: downward only, ESC: quit")
    while True:
        ret, frame = cap.read()
        if not ret:
            break

        source = frame_size(frame)
        if source is None:
            continue

        now_ms = (time.perf_counter() - start) * 1000.0
        surface = surface_size(source)

        # detect fingertip (MediaPipe)
        sample = hand_detector.detect(frame, now_ms)

        if sample is not None:
            result = session.process_frame(sample.point, sample.frame_size, surface, now_ms)
        else:
            result = session.process_frame(None, source, surface, now_ms)

        for ev in result.events:
            flashes[ev.zone_name] = (ev.intensity, now_ms + HIT_FLASH_MS)
        flashes = {name: f for name, f in flashes.items() if f[1] > now_ms}

        # draw overlay on the cover-fitted frame
        shown = cv2.flip(frame, 1) if session.mirror else frame
        display = fit_frame(shown, surface[0], surface[1])
        draw_pads(display, cfg.zones, session.calibration.current, cfg.sheet_size,
                  hits={name: f[0] for name, f in flashes.items()})
        draw_corners(display, last_corners)
        draw_cursor(display, result.surface_point)
        draw_calibration_status(display, session.calibrated, session.mirror, session.engine.params.downward_only)
        draw_message(display, message)

        cv2.imshow(WINDOW_NAME, display)

        key = cv2.waitKey(1) & 0xFF
        if key == ESC:
            break

        elif key == ord('c'):
            # calibration runs between frames, never during an update
            candidates = marker_detector.detect(frame)
            cal = session.calibrate(candidates, source, surface)
            if cal.success:
                last_corners = cal.corners
                message = "Calibrated. Tap a pad."
            else:
                message = f"Calibration failed: {cal.message}"
            print(message)

        elif key == ord('r'):
            session.reset_calibration()
            last_corners = None
            message = "Calibration reset (linear mapping). Keep the camera square to the paper."
            print(message)

        elif key == ord('m'):
            session.set_mirror(not session.mirror)
            last_corners = None
            print(f"mirror: {session.mirror} (calibration cleared)")

        elif key == ord('d'):
            params = session.engine.params
            session.engine.params = replace(params, downward_only=not params.downward_only)
            print(f"downward only: {session.engine.params.downward_only}")

    hand_detector.close()
    cap.release()
    cv2.destroyAllWindows()


if __name__ == "__main__":
    main()
