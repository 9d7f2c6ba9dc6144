from .cover_fit import CoverFit, cover_fit, map_point, normalized_to_source, fit_frame
from .homography import (
    Homography, CalibrationStore, compute_homography, apply_homography, transform_points, sheet_corners
)
from .corners import (
    CalibrationUnavailable, CornerCandidate, MAX_CANDIDATES, as_candidate, prune_candidates,
    select_best_four, order_corners, resolve_corners
)
