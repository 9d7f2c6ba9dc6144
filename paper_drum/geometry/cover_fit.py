from dataclasses import dataclass
from typing import Tuple
import cv2
import numpy as np


@dataclass(frozen=True)
class CoverFit:
    '''
    Uniform scale and centering offset that makes a source image cover a
    display surface, cropping whatever overflows.
    '''
    scale: float
    offset_x: float
    offset_y: float

    def map_point(self, point) -> Tuple[float, float]:
        "source pixels -> surface pixels"
        return (self.offset_x + point[0] * self.scale,
                self.offset_y + point[1] * self.scale)


def cover_fit(surface_w, surface_h, source_w, source_h) -> CoverFit:
    '''
    Compute the cover-fit of a source rectangle onto a surface rectangle.
    :param surface_w: display surface width in pixels
    :param surface_h: display surface height in pixels
    :param source_w: source frame width in pixels, must be > 0
    :param source_h: source frame height in pixels, must be > 0
    :return: CoverFit with scale = max(surface_w/source_w, surface_h/source_h)
    '''
    if source_w <= 0 or source_h <= 0:
        raise ValueError(f"source size must be positive, got {source_w}x{source_h}")

    scale = max(surface_w / source_w, surface_h / source_h)
    offset_x = (surface_w - source_w * scale) / 2.0
    offset_y = (surface_h - source_h * scale) / 2.0

    return CoverFit(scale, offset_x, offset_y)


def map_point(surface_w, surface_h, source_w, source_h, point) -> Tuple[float, float]:
    return cover_fit(surface_w, surface_h, source_w, source_h).map_point(point)


def normalized_to_source(point, source_w, source_h, mirror: bool = False) -> Tuple[float, float]:
    '''
    Scale a normalized detector coordinate (0-1) into source pixels.
    Mirroring flips the normalized x before any scaling happens.
    '''
    x, y = float(point[0]), float(point[1])
    if mirror:
        x = 1.0 - x

    return (x * source_w, y * source_h)


def fit_frame(frame: np.ndarray, surface_w: int, surface_h: int) -> np.ndarray:
    '''
    Render a source frame onto the display surface with the cover-fit policy,
    so drawn overlays line up with mapped points.
    :param frame: BGR source image
    :param surface_w: surface width in pixels
    :param surface_h: surface height in pixels
    :return: BGR image of shape (surface_h, surface_w, 3)
    '''
    src_h, src_w = frame.shape[:2]
    fit = cover_fit(surface_w, surface_h, src_w, src_h)

    # scaled size always covers the surface, round up to never leave a gap
    scaled_w = max(surface_w, int(np.ceil(src_w * fit.scale)))
    scaled_h = max(surface_h, int(np.ceil(src_h * fit.scale)))
    scaled = cv2.resize(frame, (scaled_w, scaled_h), interpolation=cv2.INTER_LINEAR)

    x0 = int(round(-fit.offset_x))
    y0 = int(round(-fit.offset_y))
    x0 = min(max(x0, 0), scaled_w - surface_w)
    y0 = min(max(y0, 0), scaled_h - surface_h)

    return scaled[y0:y0 + surface_h, x0:x0 + surface_w]
