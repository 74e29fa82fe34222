from __future__ import annotations
import math
from dataclasses import dataclass, fields, replace
from datetime import datetime
from enum import IntEnum
from typing import Any, Mapping, Optional


# -----------------------------
# Velocity
# -----------------------------
@dataclass(frozen=True)
class GeoVector:
    """3D velocity (m/s). Vertical is positive when climbing, negative when descending."""
    north: float
    east: float
    vertical: float

    def __add__(self, other: GeoVector) -> GeoVector:
        return GeoVector(self.north + other.north, self.east + other.east, self.vertical + other.vertical)

    def __sub__(self, other: GeoVector) -> GeoVector:
        return GeoVector(self.north - other.north, self.east - other.east, self.vertical - other.vertical)

    def __mul__(self, scalar: float) -> GeoVector:
        return GeoVector(self.north * scalar, self.east * scalar, self.vertical * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> GeoVector:
        return GeoVector(self.north / scalar, self.east / scalar, self.vertical / scalar)

    @property
    def horizontal(self) -> float:
        return math.hypot(self.north, self.east)

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.north ** 2 + self.east ** 2 + self.vertical ** 2)

    @classmethod
    def zero(cls) -> GeoVector:
        return cls(0.0, 0.0, 0.0)


# -----------------------------
# Rows in / rows out
# -----------------------------
@dataclass(frozen=True)
class InputRow:
    time: datetime
    altitude: float     # meters MSL
    velocity: GeoVector
    source: Any = None  # the raw vendor record, passed through untouched


class FlightPhase(IntEnum):
    # Ordered: a later phase always compares greater
    BEFORE_TAKEOFF = 0
    TAKEOFF = 1
    FREEFALL = 2
    CANOPY = 3
    LANDING = 4

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


@dataclass(frozen=True)
class FlightPoint:
    index: int  # sample index where the event happened
    altitude: float


EVENT_SLOTS = ("takeoff", "freefall", "canopy", "landing")


@dataclass(frozen=True)
class DetectedEvents:
    """Where each phase transition happened, as far as the stream has seen.

    A slot is written once: later confirmations of the same event are ignored.
    """
    takeoff: Optional[FlightPoint] = None
    freefall: Optional[FlightPoint] = None
    canopy: Optional[FlightPoint] = None
    landing: Optional[FlightPoint] = None
    last_point: int = -1

    @property
    def is_valid(self) -> bool:
        # A jump without a freefall is not a skydive (hop-and-pop aside)
        return self.freefall is not None

    def record(self, slot: str, point: Optional[FlightPoint]) -> DetectedEvents:
        if slot not in EVENT_SLOTS:
            raise ValueError(f"Unknown event slot '{slot}'. Expected one of {EVENT_SLOTS}")
        if point is None or getattr(self, slot) is not None:
            return self
        return replace(self, **{slot: point})


@dataclass(frozen=True)
class OutputRow:
    phase: FlightPhase
    takeoff: Optional[FlightPoint]
    freefall: Optional[FlightPoint]
    canopy: Optional[FlightPoint]
    landing: Optional[FlightPoint]
    last_point: int
    is_valid: bool
    source: Any = None

    @property
    def events(self) -> DetectedEvents:
        return DetectedEvents(
            takeoff=self.takeoff,
            freefall=self.freefall,
            canopy=self.canopy,
            landing=self.landing,
            last_point=self.last_point,
        )


# -----------------------------
# Configuration / "Detection profile"
# -----------------------------
@dataclass(frozen=True)
class DetectionConfig:
    name: str = "FlySight 5 Hz (default)"

    # Takeoff: the plane rolls fast and starts climbing
    takeoff_speed_threshold: float = 25.0   # horizontal speed above this (m/s)
    takeoff_climb_rate: float = 1.0         # smoothed vertical speed above this means climbing (m/s)
    takeoff_max_altitude: float = 600.0     # takeoff cannot happen above this (m)

    # Freefall: sustained descent, or a sharp drop in vertical speed after exit
    freefall_descent_rate: float = 25.0             # smoothed vertical speed below minus this (m/s)
    freefall_accel_threshold: float = 3.0           # per-sample drop of smoothed vertical speed (m/s)
    freefall_accel_min_descent_rate: float = 10.0   # minimum descent rate for the drop rule (m/s)
    freefall_min_altitude_above: float = 600.0      # must be this high above takeoff (m)
    freefall_min_altitude_absolute: float = 600.0   # used when takeoff was never seen (m)

    # Canopy: descent slows down to canopy rates
    canopy_descent_rate_max: float = 12.0

    # Landing: nearly still, and the vertical speed has settled
    landing_speed_max: float = 3.0
    landing_stability_threshold: float = 0.5    # std-dev of the stability window (m/s)
    landing_mean_vertical_speed_max: float = 1.0
    landing_altitude_tolerance: float = 500.0   # landing within +/- this of takeoff altitude (m)

    # Window sizes (samples)
    smoothing_window_size: int = 5
    landing_stability_window_size: int = 10
    backtrack_window_size: int = 10
    preprocess_window_size: int = 3

    acceleration_clip: float = 20.0     # despike when vertical speed deviates more than this (m/s)

    # Peak detector (shock markers)
    peak_lag: int = 30
    peak_threshold: float = 5.0
    peak_influence: float = 0.5

    def validate(self) -> DetectionConfig:
        sizes = {
            "smoothing_window_size": self.smoothing_window_size,
            "landing_stability_window_size": self.landing_stability_window_size,
            "backtrack_window_size": self.backtrack_window_size,
            "peak_lag": self.peak_lag,
        }
        bad = [k for k, v in sizes.items() if v < 1]
        if bad:
            raise ValueError(f"Window sizes must be >= 1: {bad}")
        if self.acceleration_clip <= 0:
            raise ValueError("acceleration_clip must be > 0")
        if self.peak_threshold <= 0:
            raise ValueError("peak_threshold must be > 0")
        if not 0.0 <= self.peak_influence <= 1.0:
            raise ValueError("peak_influence must be within [0, 1]")
        return self

    def with_overrides(self, overrides: Mapping[str, Any]) -> DetectionConfig:
        """Copy of this config with some fields replaced (values coerced to the field type)."""
        types = {f.name: type(getattr(self, f.name)) for f in fields(self)}
        changes = {}
        for key, value in overrides.items():
            if key not in types:
                raise ValueError(f"Unknown detection parameter '{key}'. Known: {sorted(types)}")
            cast = types[key]
            if cast is int:
                number = float(value)
                if not number.is_integer():
                    raise ValueError(f"{key} must be a whole number, got {value!r}")
                changes[key] = int(number)
            else:
                changes[key] = cast(value)
        return replace(self, **changes).validate()


def parse_params(params: str) -> dict[str, str]:
    """
    Parse "key=value,key=value" into a dict whose keys are real DetectionConfig
    field names. Keys are matched case-insensitively, so "TakeoffMaxAltitude"
    style is not supported but "TAKEOFF_MAX_ALTITUDE" is.
    """
    by_lower = {f.name.lower(): f.name for f in fields(DetectionConfig)}
    out: dict[str, str] = {}
    for pair in params.split(","):
        if not pair.strip():
            continue
        if "=" not in pair:
            raise ValueError(f"Expected key=value, got '{pair.strip()}'")
        key, value = (s.strip() for s in pair.split("=", 1))
        out[by_lower.get(key.lower(), key)] = value
    return out
