from .engine import TriggerEngine, TriggerEvent, PadState, PadHysteresis, intensity_for_speed
