import math
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from paper_drum.config import TriggerParams, Zone

logger = logging.getLogger(__name__)

MIN_INTENSITY = 0.15
MAX_INTENSITY = 1.0


class PadState(Enum):
    ARMED = "armed"
    COOLING = "cooling"


@dataclass(frozen=True)
class TriggerEvent:
    zone_name: str
    intensity: float
    timestamp: float    # milliseconds


@dataclass
class PadHysteresis:
    state: PadState = PadState.ARMED
    last_trigger_time: float = -math.inf
    currently_inside: bool = False

    @property
    def armed(self) -> bool:
        return self.state is PadState.ARMED


def intensity_for_speed(speed: float, v_hit: float) -> float:
    return min(MAX_INTENSITY, max(MIN_INTENSITY, speed / v_hit))


class TriggerEngine:
    '''
    Turns a stream of sheet-space positions into debounced pad hits.

    Each pad runs its own ARMED/COOLING hysteresis: a hit needs the fingertip
    inside the pad faster than v_hit, and the pad only re-arms once the
    fingertip leaves it or slows below v_arm. Hits on the same pad closer than
    min_retrigger_ms are suppressed.
    '''

    def __init__(self, zones: Iterable[Zone], params: Optional[TriggerParams] = None):
        self.zones: Tuple[Zone, ...] = tuple(zones)
        self.params = params if params is not None else TriggerParams()
        self._pads: Dict[str, PadHysteresis] = {z.name: PadHysteresis() for z in self.zones}

        self._prev_position: Optional[Tuple[float, float]] = None
        self._prev_time: Optional[float] = None
        self.last_velocity: Tuple[float, float] = (0.0, 0.0)

    def state(self, zone_name: str) -> PadHysteresis:
        "copy of one pad's hysteresis state"
        pad = self._pads[zone_name]
        return PadHysteresis(pad.state, pad.last_trigger_time, pad.currently_inside)

    def clear_motion(self):
        "forget the previous sample so the next frame has zero velocity"
        self._prev_position = None
        self._prev_time = None
        self.last_velocity = (0.0, 0.0)

    def _velocity(self, position, timestamp) -> Tuple[float, float]:
        if self._prev_position is None or self._prev_time is None:
            return (0.0, 0.0)

        dt = (timestamp - self._prev_time) / 1000.0
        if dt <= 0:
            return (0.0, 0.0)

        return ((position[0] - self._prev_position[0]) / dt,
                (position[1] - self._prev_position[1]) / dt)

    def update(self, position, timestamp: float) -> List[TriggerEvent]:
        '''
        Advance every pad by one frame.
        :param position: (x, y) fingertip in sheet units
        :param timestamp: frame time in milliseconds
        :return: trigger events fired in this frame (possibly several)
        '''
        p = (float(position[0]), float(position[1]))
        t = float(timestamp)

        vx, vy = self._velocity(p, t)
        speed = math.hypot(vx, vy)
        self.last_velocity = (vx, vy)

        params = self.params
        events = []

        for zone in self.zones:
            pad = self._pads[zone.name]
            inside = math.hypot(p[0] - zone.x, p[1] - zone.y) <= zone.r

            if not inside or speed < params.v_arm:
                pad.state = PadState.ARMED

            if (pad.state is PadState.ARMED
                    and inside
                    and speed > params.v_hit
                    and t - pad.last_trigger_time > params.min_retrigger_ms
                    and (not params.downward_only or vy > 0)):

                event = TriggerEvent(zone.name, intensity_for_speed(speed, params.v_hit), t)
                events.append(event)
                pad.state = PadState.COOLING
                pad.last_trigger_time = t
                logger.debug("hit %s speed=%.1f intensity=%.2f", zone.name, speed, event.intensity)

            pad.currently_inside = inside

        self._prev_position = p
        self._prev_time = t

        return events
