"""
PaperDrum - play a printed drum sheet with a tracked fingertip

Modules:
    - geometry: cover-fit mapping, homography calibration, corner resolving
    - trigger: per-pad hysteresis and hit events
    - session: per-frame and calibration flow
    - camera: capture device setup
    - detection: MediaPipe fingertip and AprilTag corner markers
    - visualization: drawing overlays
"""

from .config import DrumConfig, Zone, TriggerParams, ConfigError, load_config
from .geometry import CalibrationUnavailable, CornerCandidate, Homography
from .trigger import TriggerEngine, TriggerEvent
from .session import DrumSession, FrameResult, CalibrationResult
