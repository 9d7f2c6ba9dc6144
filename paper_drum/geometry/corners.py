import math
import logging
from dataclasses import dataclass
from itertools import combinations
from typing import List, Sequence, Tuple

logger = logging.getLogger(__name__)

# upper bound on candidates entering the exhaustive 4-subset search
MAX_CANDIDATES = 6


class CalibrationUnavailable(Exception):
    '''
    The corner candidates cannot produce a calibration (too few, or degenerate).
    '''


@dataclass(frozen=True)
class CornerCandidate:
    x: float
    y: float
    weight: float = 1.0   # detection confidence or area, larger is stronger

    @property
    def point(self) -> Tuple[float, float]:
        return (self.x, self.y)


def as_candidate(c) -> CornerCandidate:
    if isinstance(c, CornerCandidate):
        return c
    if len(c) >= 3:
        return CornerCandidate(float(c[0]), float(c[1]), float(c[2]))
    return CornerCandidate(float(c[0]), float(c[1]))


def prune_candidates(candidates: Sequence, cap: int = MAX_CANDIDATES) -> List[CornerCandidate]:
    '''
    Drop unusable candidates and keep at most `cap` of the strongest ones.
    Equal weights at the cap prefer candidates far from the centroid of all
    candidates, then the smaller (x, y), so the choice ignores input order.
    :param candidates: CornerCandidate objects or (x, y[, weight]) tuples
    :param cap: maximum number of candidates to keep
    :return: list of candidates in their original input order
    '''
    valid = [(i, as_candidate(c)) for i, c in enumerate(candidates)]
    valid = [(i, c) for i, c in valid
             if math.isfinite(c.x) and math.isfinite(c.y) and math.isfinite(c.weight)]

    if len(valid) > cap:
        # fsum is exactly rounded, so the centroid is the same for any order
        cx = math.fsum(c.x for _, c in valid) / len(valid)
        cy = math.fsum(c.y for _, c in valid) / len(valid)

        def rank(ic):
            c = ic[1]
            return (-c.weight, -((c.x - cx) ** 2 + (c.y - cy) ** 2), c.x, c.y)

        valid = sorted(valid, key=rank)[:cap]
        valid.sort(key=lambda ic: ic[0])

    return [c for _, c in valid]


def spread(points) -> float:
    "sum of pairwise squared distances"
    total = 0.0
    for a, b in combinations(points, 2):
        total += (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2
    return total


def select_best_four(points: Sequence[Tuple[float, float]]) -> List[Tuple[float, float]]:
    '''
    Exhaustively choose the 4 points with the largest spread.
    Equal spreads are decided by the sorted coordinates, never by input order.
    '''
    best = None
    best_key = None
    for subset in combinations(points, 4):
        key = (-spread(subset), tuple(sorted(subset)))
        if best_key is None or key < best_key:
            best_key = key
            best = list(subset)
    return best


def order_corners(points: Sequence[Tuple[float, float]]) -> List[Tuple[float, float]]:
    '''
    Assign TL, TR, BR, BL roles with the sum/difference rule.
    Ties go to the earlier point.
    :param points: exactly 4 points
    :return: [top-left, top-right, bottom-right, bottom-left]
    '''
    sums = [p[0] + p[1] for p in points]
    diffs = [p[0] - p[1] for p in points]

    # min()/max() return the first extreme, which gives the stable tie-break
    tl = min(range(4), key=lambda i: sums[i])
    br = max(range(4), key=lambda i: sums[i])
    tr = max(range(4), key=lambda i: diffs[i])
    bl = min(range(4), key=lambda i: diffs[i])

    if len({tl, tr, br, bl}) != 4:
        raise CalibrationUnavailable("corner roles are ambiguous (sheet rotated about 45 degrees?)")

    return [points[tl], points[tr], points[br], points[bl]]


def resolve_corners(candidates: Sequence, cap: int = MAX_CANDIDATES) -> List[Tuple[float, float]]:
    '''
    Pick and order the four candidates that best describe the sheet outline.
    :param candidates: raw corner candidates in source-frame pixels
    :param cap: pruning limit before the exhaustive search
    :return: [TL, TR, BR, BL] points
    :raises CalibrationUnavailable: when fewer than 4 usable candidates exist
    '''
    if candidates is None or len(candidates) < 4:
        n = 0 if candidates is None else len(candidates)
        raise CalibrationUnavailable(f"need 4 corner candidates, got {n}")

    kept = prune_candidates(candidates, cap)
    if len(kept) < 4:
        raise CalibrationUnavailable(f"only {len(kept)} usable corner candidates after pruning")

    best = select_best_four([c.point for c in kept])
    ordered = order_corners(best)

    logger.debug("resolved corners %s from %d candidates", ordered, len(candidates))
    return ordered
