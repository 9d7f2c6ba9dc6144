import cv2
import numpy as np
from typing import Dict, Iterable, Optional

from paper_drum.config import Zone
from paper_drum.geometry import Homography, transform_points


def sheet_to_surface(points, homography: Optional[Homography], surface_size, sheet_size) -> np.ndarray:
    '''
    Map sheet-space points onto the display surface for drawing.
    :param points: Nx2 sheet points
    :param homography: active calibration (display -> sheet) or None
    :param surface_size: (width, height) of the display surface
    :param sheet_size: (W, H) of the sheet
    :return: Nx2 surface points, NaN where a point is not drawable
    '''
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)

    if homography is None:
        scale = np.array([surface_size[0] / sheet_size[0], surface_size[1] / sheet_size[1]])
        return pts * scale

    inverse = homography.inverse()
    if inverse is None:
        return np.full_like(pts, np.nan)

    return transform_points(pts, inverse)


def _circle_outline(zone: Zone, segments: int = 48) -> np.ndarray:
    angles = np.linspace(0, 2 * np.pi, segments, endpoint=False)
    return np.stack([zone.x + zone.r * np.cos(angles), zone.y + zone.r * np.sin(angles)], axis=1)


def draw_pads(frame, zones: Iterable[Zone], homography, sheet_size,
              hits: Optional[Dict[str, float]] = None,
              color=(255, 255, 255), hit_color=(0, 200, 255)):
    '''
    Draw pad outlines as they appear on the paper, plus their names.
    :param frame: display surface image (drawn in place)
    :param zones: configured pads
    :param homography: active calibration or None
    :param sheet_size: (W, H) of the sheet
    :param hits: zone name -> intensity for pads to flash this frame
    '''
    h, w = frame.shape[:2]
    hits = hits or {}

    for zone in zones:
        outline = sheet_to_surface(_circle_outline(zone), homography, (w, h), sheet_size)
        if not np.isfinite(outline).all():
            continue

        pts = outline.round().astype(np.int32).reshape(-1, 1, 2)

        if zone.name in hits:
            # brighter fill for harder hits
            layer = frame.copy()
            cv2.fillPoly(layer, [pts], hit_color)
            alpha = 0.25 + 0.5 * hits[zone.name]
            cv2.addWeighted(layer, alpha, frame, 1 - alpha, 0, frame)

        cv2.polylines(frame, [pts], True, color, 2, cv2.LINE_AA)

        center = sheet_to_surface([zone.center], homography, (w, h), sheet_size)[0]
        if np.isfinite(center).all():
            cv2.putText(frame, zone.name, (int(center[0]) - 16, int(center[1]) + 4),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1, cv2.LINE_AA)


def draw_cursor(frame, surface_point, color=(255, 200, 0)):
    if surface_point is None:
        return

    pt = (int(round(surface_point[0])), int(round(surface_point[1])))
    cv2.circle(frame, pt, 7, color, -1)


def draw_corners(frame, corners, color=(0, 255, 0)):
    "draw resolved TL, TR, BR, BL corners as a closed quad"
    if corners is None or len(corners) != 4:
        return

    pts = [(int(round(x)), int(round(y))) for x, y in corners]
    for i in range(4):
        cv2.line(frame, pts[i], pts[(i + 1) % 4], color, 2)

    for label, pt in zip(("TL", "TR", "BR", "BL"), pts):
        cv2.circle(frame, pt, 6, (255, 0, 255), -1)
        cv2.putText(frame, label, (pt[0] + 8, pt[1] - 8),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1, cv2.LINE_AA)


def draw_calibration_status(frame, calibrated: bool, mirror: bool = False, downward_only: bool = False):
    h, w = frame.shape[:2]

    if calibrated:
        text = "CALIBRATED"
        color = (0, 255, 0)
    else:
        text = "NOT CALIBRATED"
        color = (0, 0, 255)

    font = cv2.FONT_HERSHEY_SIMPLEX
    font_scale = 0.8
    thickness = 2

    # Get text size
    (text_width, text_height), _ = cv2.getTextSize(
        text, font, font_scale, thickness
    )

    # Top-right position
    x = w - text_width - 10
    y = 10 + text_height

    cv2.putText(frame, text, (x, y), font, font_scale, color, thickness, cv2.LINE_AA)

    flags = []
    if mirror:
        flags.append("mirror")
    if downward_only:
        flags.append("down only")
    if flags:
        cv2.putText(frame, " | ".join(flags), (x, y + text_height + 10),
                    font, 0.5, (255, 255, 255), 1, cv2.LINE_AA)


def draw_message(frame, text, color=(255, 255, 255)):
    "status line at the bottom-left"
    h = frame.shape[0]
    cv2.putText(frame, text, (10, h - 15), cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2, cv2.LINE_AA)
