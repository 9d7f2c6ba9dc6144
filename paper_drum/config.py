from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple
import yaml


class ConfigError(ValueError):
    '''
    Raised when the drum configuration is incomplete or inconsistent.
    '''


@dataclass(frozen=True)
class Zone:
    name: str
    x: float
    y: float
    r: float

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class TriggerParams:
    v_hit: float = 220.0            # sheet units / second needed to fire
    v_arm: float = 120.0            # below this speed a pad re-arms
    min_retrigger_ms: float = 100.0
    downward_only: bool = False


@dataclass
class CameraConfig:
    device_id: int = 0
    image_width: int = 1280
    image_height: int = 720
    fps: int = 30


@dataclass
class MarkerConfig:
    family: str = "tag36h11"
    ids: Optional[List[int]] = None
    max_candidates: int = 6


@dataclass
class DetectorConfig:
    model_path: str = "models/hand_landmarker.task"
    min_detection_confidence: float = 0.7
    min_tracking_confidence: float = 0.5


@dataclass
class DrumConfig:
    zones: Tuple[Zone, ...]
    sheet_width: float = 384.0
    sheet_height: float = 288.0
    trigger: TriggerParams = field(default_factory=TriggerParams)
    mirror: bool = False
    camera: CameraConfig = field(default_factory=CameraConfig)
    markers: MarkerConfig = field(default_factory=MarkerConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    log_level: str = "INFO"

    @property
    def sheet_size(self) -> Tuple[float, float]:
        return (self.sheet_width, self.sheet_height)

    @classmethod
    def default(cls) -> "DrumConfig":
        "six-pad reference layout"
        return cls(zones=(
            Zone("Kick", 64, 64, 34),
            Zone("Snare", 192, 64, 34),
            Zone("HiHat C", 320, 64, 30),
            Zone("Tom", 64, 180, 32),
            Zone("Clap", 192, 180, 32),
            Zone("HiHat O", 320, 180, 30),
        ))

    def validate(self):
        '''
        Check the configuration for values the core cannot work with.
        :raises ConfigError: on the first problem found
        '''
        if self.sheet_width <= 0 or self.sheet_height <= 0:
            raise ConfigError(f"sheet size must be positive, got {self.sheet_width}x{self.sheet_height}")

        if not self.zones:
            raise ConfigError("at least one zone is required")

        seen = set()
        for zone in self.zones:
            if zone.name in seen:
                raise ConfigError(f"duplicate zone name: {zone.name!r}")
            seen.add(zone.name)
            if zone.r <= 0:
                raise ConfigError(f"zone {zone.name!r} needs a positive radius, got {zone.r}")

        t = self.trigger
        if t.v_hit <= 0 or t.v_arm < 0:
            raise ConfigError("velocity thresholds must be positive")
        if t.v_arm > t.v_hit:
            raise ConfigError(f"v_arm ({t.v_arm}) must not exceed v_hit ({t.v_hit})")
        if t.min_retrigger_ms < 0:
            raise ConfigError("min_retrigger_ms must not be negative")

        if self.markers.max_candidates < 4:
            raise ConfigError("markers.max_candidates must be at least 4")

        return self


def _zone_from_dict(data) -> Zone:
    try:
        return Zone(
            name=str(data["name"]),
            x=float(data["x"]),
            y=float(data["y"]),
            r=float(data["r"])
        )
    except KeyError as e:
        raise ConfigError(f"zone entry is missing key {e}") from e
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid zone entry {data!r}: {e}") from e


def _number(section, name, data, default):
    try:
        return float(data.get(name, default))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{section}.{name}' must be a number, got {data.get(name)!r}") from e


def _mapping(name, data):
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' section must be a mapping")
    return value


def _section(cls, name, data):
    try:
        return cls(**(data or {}))
    except TypeError as e:
        raise ConfigError(f"invalid '{name}' section: {e}") from e


def config_from_dict(data) -> DrumConfig:
    "build a validated DrumConfig from an already parsed yaml mapping"
    if not isinstance(data, dict):
        raise ConfigError("configuration root must be a mapping")

    if "zones" not in data:
        raise ConfigError("configuration has no 'zones' section")

    if not isinstance(data["zones"], list):
        raise ConfigError("'zones' must be a list of pads")

    zones = tuple(_zone_from_dict(z) for z in data["zones"])

    sheet = _mapping("sheet", data)
    trigger = _mapping("trigger", data)
    display = _mapping("display", data)
    camera = _mapping("camera", data)
    markers = _mapping("markers", data)
    detector = _mapping("detector", data)

    cfg = DrumConfig(
        zones=zones,
        sheet_width=_number("sheet", "width", sheet, 384),
        sheet_height=_number("sheet", "height", sheet, 288),
        trigger=TriggerParams(
            v_hit=_number("trigger", "v_hit", trigger, 220),
            v_arm=_number("trigger", "v_arm", trigger, 120),
            min_retrigger_ms=_number("trigger", "min_retrigger_ms", trigger, 100),
            downward_only=bool(trigger.get("downward_only", False))
        ),
        mirror=bool(display.get("mirror", False)),
        camera=_section(CameraConfig, "camera", camera),
        markers=_section(MarkerConfig, "markers", markers),
        detector=_section(DetectorConfig, "detector", detector),
        log_level=str(data.get("log_level", "INFO")).upper()
    )

    return cfg.validate()


# Load drum configuration from YAML file
def load_config(path) -> DrumConfig:

    with open(Path(path), "r") as f:
        data = yaml.safe_load(f)

    return config_from_dict(data)
