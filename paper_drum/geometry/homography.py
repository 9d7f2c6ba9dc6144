import numpy as np
import logging
from itertools import combinations
from typing import Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# |w| below this is treated as a point at infinity
W_EPSILON = 1e-9
# triangle area (pixels^2) below this counts as collinear
COLLINEAR_EPSILON = 1e-6


class Homography:
    '''
    Immutable 3x3 projective transform from display-surface pixels to sheet units.
    '''
    __slots__ = ("_matrix",)

    def __init__(self, matrix):
        m = np.array(matrix, dtype=np.float64).reshape(3, 3)
        m.setflags(write=False)
        self._matrix = m

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix

    def inverse(self) -> Optional["Homography"]:
        "sheet units -> display-surface pixels, None if not invertible"
        try:
            inv = np.linalg.inv(self._matrix)
        except np.linalg.LinAlgError:
            return None
        if abs(inv[2, 2]) > W_EPSILON:
            inv = inv / inv[2, 2]
        return Homography(inv)

    def __repr__(self):
        return f"Homography({self._matrix.tolist()})"


def _triangle_area(a, b, c) -> float:
    return abs((b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])) / 2.0


def sheet_corners(sheet_size) -> np.ndarray:
    '''
    Canonical sheet rectangle corners in TL, TR, BR, BL order.
    '''
    w, h = sheet_size
    return np.array([
        [0, 0],
        [w, 0],
        [w, h],
        [0, h]
    ], dtype=np.float64)


def compute_homography(corners: Sequence, sheet_size) -> Optional[Homography]:
    '''
    Direct linear transform from four ordered display points onto the sheet rectangle.
    :param corners: 4 points (TL, TR, BR, BL) in display-surface pixels
    :param sheet_size: (W, H) of the canonical sheet
    :return: Homography mapping corners[i] to the i-th sheet corner, or None if degenerate
    '''
    src = np.asarray(corners, dtype=np.float64).reshape(-1, 2)
    if src.shape != (4, 2) or not np.isfinite(src).all():
        return None

    # any three corners on a line make the system singular
    for a, b, c in combinations(src, 3):
        if _triangle_area(a, b, c) < COLLINEAR_EPSILON:
            logger.debug("homography rejected: collinear corners %s", src.tolist())
            return None

    dst = sheet_corners(sheet_size)

    # 8 unknowns (h33 fixed to 1), two equations per correspondence
    A = np.zeros((8, 8), dtype=np.float64)
    b = np.zeros(8, dtype=np.float64)
    for i, ((x, y), (u, v)) in enumerate(zip(src, dst)):
        A[2 * i] = [x, y, 1, 0, 0, 0, -u * x, -u * y]
        A[2 * i + 1] = [0, 0, 0, x, y, 1, -v * x, -v * y]
        b[2 * i] = u
        b[2 * i + 1] = v

    try:
        h = np.linalg.solve(A, b)
    except np.linalg.LinAlgError:
        logger.debug("homography rejected: singular system")
        return None

    H = np.append(h, 1.0).reshape(3, 3)
    if not np.isfinite(H).all() or abs(np.linalg.det(H)) < 1e-12:
        return None

    return Homography(H)


def apply_homography(homography: Optional[Homography], point, surface_size, sheet_size) -> Optional[Tuple[float, float]]:
    '''
    Map a display-surface point into sheet space.
    Without a homography, the display is linearly rescaled onto the sheet
    (no perspective correction).
    :param homography: current calibration or None
    :param point: (x, y) in display-surface pixels
    :param surface_size: (width, height) of the display surface
    :param sheet_size: (W, H) of the canonical sheet
    :return: (x, y) in sheet units, or None when the point maps to infinity
    '''
    x, y = float(point[0]), float(point[1])

    if homography is None:
        surface_w, surface_h = surface_size
        sheet_w, sheet_h = sheet_size
        return (x / surface_w * sheet_w, y / surface_h * sheet_h)

    H = homography.matrix
    w = H[2, 0] * x + H[2, 1] * y + H[2, 2]
    if abs(w) < W_EPSILON:
        return None

    return ((H[0, 0] * x + H[0, 1] * y + H[0, 2]) / w,
            (H[1, 0] * x + H[1, 1] * y + H[1, 2]) / w)


def transform_points(points, homography: Homography) -> np.ndarray:
    '''
    Transform 2D points using the given homography.
    :param points: Nx2 array of points
    :param homography: projective transform
    :return: Nx2 array of transformed points (rows at infinity are NaN)
    '''
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)

    # Convert points to homogeneous coordinates
    points_homogeneous = np.hstack([pts, np.ones((len(pts), 1))])

    transformed = (homography.matrix @ points_homogeneous.T).T

    w = transformed[:, 2:]
    out = np.full((len(pts), 2), np.nan)
    ok = np.abs(w[:, 0]) >= W_EPSILON
    out[ok] = transformed[ok, 0:2] / w[ok]

    return out


class CalibrationStore:
    '''
    Holds the single active calibration. The stored Homography is immutable and
    only ever replaced as a whole, so a reader always sees either the old or the
    new transform.
    '''

    def __init__(self):
        self._current: Optional[Homography] = None

    @property
    def current(self) -> Optional[Homography]:
        return self._current

    @property
    def calibrated(self) -> bool:
        return self._current is not None

    def replace(self, homography: Homography):
        if homography is None:
            raise ValueError("use reset() to drop the calibration")
        self._current = homography
        logger.info("calibration replaced")

    def reset(self):
        self._current = None
        logger.info("calibration cleared, using linear fallback")
