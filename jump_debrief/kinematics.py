from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime

import numpy as np

from .domain import DetectionConfig, GeoVector, InputRow
from .windows import BoundedBuffer


# -----------------------------
# Per-sample kinematics
# -----------------------------
@dataclass(frozen=True)
class Kinematics:
    time: datetime
    altitude: float
    vertical_speed: float
    north_speed: float
    east_speed: float
    smoothed_vertical_speed: float
    smoothed_vertical_acceleration: float   # change of smoothed speed since the previous sample
    horizontal_speed: float
    total_speed: float

    @classmethod
    def create(cls, point: InputRow) -> Kinematics:
        """Kinematics of the first sample of a stream: nothing to smooth against yet."""
        v = point.velocity
        return cls(
            time=point.time,
            altitude=point.altitude,
            vertical_speed=v.vertical,
            north_speed=v.north,
            east_speed=v.east,
            smoothed_vertical_speed=v.vertical,
            smoothed_vertical_acceleration=0.0,
            horizontal_speed=v.horizontal,
            total_speed=v.magnitude,
        )

    @classmethod
    def compute(cls, point: InputRow, previous: Kinematics, smoothing: BoundedBuffer[float]) -> Kinematics:
        """
        Kinematics of `point` given the previous sample's kinematics and the
        smoothing window (raw vertical speeds of the preceding samples).

        The smoothed vertical speed is the median of the window plus the new
        raw value. Acceleration is a plain per-sample delta, not divided by
        the elapsed time.
        """
        v = point.velocity
        if smoothing.is_empty:
            smoothed = v.vertical
        else:
            smoothed = float(np.median(np.append(smoothing.to_array(), v.vertical)))

        return cls(
            time=point.time,
            altitude=point.altitude,
            vertical_speed=v.vertical,
            north_speed=v.north,
            east_speed=v.east,
            smoothed_vertical_speed=smoothed,
            smoothed_vertical_acceleration=smoothed - previous.smoothed_vertical_speed,
            horizontal_speed=v.horizontal,
            total_speed=v.magnitude,
        )


@dataclass(frozen=True)
class PointKinematics:
    """Velocity and acceleration of one raw sample relative to its predecessor."""
    time: datetime
    altitude: float
    speed: GeoVector
    acceleration: GeoVector

    @classmethod
    def compute(cls, prev: InputRow, curr: InputRow) -> PointKinematics:
        dt = (curr.time - prev.time).total_seconds()
        if dt > 0:
            acceleration = (curr.velocity - prev.velocity) / dt
        else:
            # duplicate or out-of-order timestamp
            acceleration = GeoVector.zero()
        return cls(time=curr.time, altitude=curr.altitude, speed=curr.velocity, acceleration=acceleration)


@dataclass(frozen=True)
class VerticalSpeedSample:
    index: int
    speed: float    # smoothed vertical speed
    altitude: float


# -----------------------------
# Rolling windows
# -----------------------------
@dataclass(frozen=True)
class Windows:
    smoothing: BoundedBuffer[float]                  # raw vertical speeds
    landing_stability: BoundedBuffer[float]          # smoothed vertical speeds
    backtrack: BoundedBuffer[VerticalSpeedSample]

    @classmethod
    def create(cls, config: DetectionConfig) -> Windows:
        return cls(
            smoothing=BoundedBuffer(config.smoothing_window_size),
            landing_stability=BoundedBuffer(config.landing_stability_window_size),
            backtrack=BoundedBuffer(config.backtrack_window_size),
        )

    def update(self, kinematics: Kinematics, index: int) -> Windows:
        sample = VerticalSpeedSample(index, kinematics.smoothed_vertical_speed, kinematics.altitude)
        return Windows(
            smoothing=self.smoothing.enqueue(kinematics.vertical_speed),
            landing_stability=self.landing_stability.enqueue(kinematics.smoothed_vertical_speed),
            backtrack=self.backtrack.enqueue(sample),
        )


# -----------------------------
# Linear interpolation
# -----------------------------
def time_fraction(t1: datetime, t2: datetime, t: datetime) -> float:
    """
    Where `t` sits between `t1` and `t2`, as a fraction clamped to [0, 1].
    A zero or negative span gives 0 (the older endpoint).
    """
    span = (t2 - t1).total_seconds()
    if span <= 0:
        return 0.0
    return min(max((t - t1).total_seconds() / span, 0.0), 1.0)


def lerp(a: float, b: float, frac: float) -> float:
    return a + (b - a) * frac


def interpolate_row(p1: InputRow, p2: InputRow, at: InputRow) -> InputRow:
    """Row expected at `at.time` on the line p1 -> p2. Keeps time and source of `at`."""
    frac = time_fraction(p1.time, p2.time, at.time)
    return replace(
        at,
        altitude=lerp(p1.altitude, p2.altitude, frac),
        velocity=p1.velocity + (p2.velocity - p1.velocity) * frac,
    )


def interpolate_point_kinematics(
    k1: PointKinematics, k2: PointKinematics, time: datetime
) -> PointKinematics:
    frac = time_fraction(k1.time, k2.time, time)
    return PointKinematics(
        time=time,
        altitude=lerp(k1.altitude, k2.altitude, frac),
        speed=k1.speed + (k2.speed - k1.speed) * frac,
        acceleration=k1.acceleration + (k2.acceleration - k1.acceleration) * frac,
    )


def expected_vertical_speed(p1: InputRow, p2: InputRow, time: datetime) -> float:
    return lerp(p1.velocity.vertical, p2.velocity.vertical, time_fraction(p1.time, p2.time, time))
