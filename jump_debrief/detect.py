"""Online flight phase detection: takeoff, freefall, canopy, landing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Iterator, Optional

import numpy as np

from .domain import DetectedEvents, DetectionConfig, FlightPhase, FlightPoint, InputRow, OutputRow
from .inflection import find_inflection_point
from .kinematics import Kinematics, Windows
from .preprocess import despike_stream

logger = logging.getLogger(__name__)


# -----------------------------
# Stream state
# -----------------------------
@dataclass(frozen=True)
class StreamState:
    """Everything one detection step needs. Each step returns a new one."""
    input_point: InputRow
    sample_index: int
    kinematics: Kinematics
    windows: Windows
    detected_phase: FlightPhase = FlightPhase.BEFORE_TAKEOFF
    detected_events: DetectedEvents = DetectedEvents()
    takeoff_missing: bool = False   # recording started in the air: takeoff cannot be recorded

    @classmethod
    def create(cls, point: InputRow, config: DetectionConfig, index: int = 0) -> StreamState:
        kinematics = Kinematics.create(point)
        return cls(
            input_point=point,
            sample_index=index,
            kinematics=kinematics,
            windows=Windows.create(config).update(kinematics, index),
            takeoff_missing=point.altitude > config.takeoff_max_altitude and point.velocity.vertical > 0,
        )

    def advance(self, point: InputRow, index: int) -> StreamState:
        """Fold the next sample into kinematics and windows. Phase and events are untouched."""
        kinematics = Kinematics.compute(point, self.kinematics, self.windows.smoothing)
        return replace(
            self,
            input_point=point,
            sample_index=index,
            kinematics=kinematics,
            windows=self.windows.update(kinematics, index),
        )

    def to_output(self) -> OutputRow:
        ev = self.detected_events
        return OutputRow(
            phase=self.detected_phase,
            takeoff=ev.takeoff,
            freefall=ev.freefall,
            canopy=ev.canopy,
            landing=ev.landing,
            last_point=ev.last_point,
            is_valid=ev.is_valid,
            source=self.input_point.source,
        )


# -----------------------------
# Per-phase detectors
# Each returns (phase, point): point is None when nothing was detected on this sample
# -----------------------------
def detect_takeoff(
    state: StreamState, current: FlightPoint, config: DetectionConfig
) -> tuple[FlightPhase, Optional[FlightPoint]]:
    """Plane rolling fast and climbing, still close to the ground."""
    if (
        state.detected_phase != FlightPhase.BEFORE_TAKEOFF
        or state.detected_events.takeoff is not None
        or state.takeoff_missing
    ):
        return state.detected_phase, None

    k = state.kinematics
    if not (
        k.horizontal_speed > config.takeoff_speed_threshold
        and k.smoothed_vertical_speed > config.takeoff_climb_rate
        and k.altitude < config.takeoff_max_altitude
    ):
        return state.detected_phase, None

    point = find_inflection_point(state.windows.backtrack, is_rising=True) or current
    return FlightPhase.TAKEOFF, point


def detect_freefall(
    state: StreamState, current: FlightPoint, config: DetectionConfig
) -> tuple[FlightPhase, Optional[FlightPoint]]:
    """
    Fast descent, or vertical speed dropping sharply while already descending.

    Must happen after takeoff and well above it (or above an absolute
    minimum when takeoff was never seen).
    """
    if (
        state.detected_phase not in (FlightPhase.BEFORE_TAKEOFF, FlightPhase.TAKEOFF)
        or state.detected_events.freefall is not None
    ):
        return state.detected_phase, None

    k = state.kinematics
    speed = k.smoothed_vertical_speed
    triggered = speed < -config.freefall_descent_rate or (
        k.smoothed_vertical_acceleration < -config.freefall_accel_threshold
        and speed < -config.freefall_accel_min_descent_rate
    )
    if not triggered:
        return state.detected_phase, None

    takeoff = state.detected_events.takeoff
    if takeoff is not None:
        constrained = (
            current.index > takeoff.index
            and k.altitude > takeoff.altitude + config.freefall_min_altitude_above
        )
    else:
        constrained = k.altitude > config.freefall_min_altitude_absolute
    if not constrained:
        return state.detected_phase, None

    point = find_inflection_point(state.windows.backtrack, is_rising=False) or current
    return FlightPhase.FREEFALL, point


def detect_canopy(
    state: StreamState, current: FlightPoint, config: DetectionConfig
) -> tuple[FlightPhase, Optional[FlightPoint]]:
    """Descent slowed down to canopy rates, between the freefall and takeoff altitudes."""
    ev = state.detected_events
    if state.detected_phase != FlightPhase.FREEFALL or ev.canopy is not None or ev.freefall is None:
        return state.detected_phase, None

    k = state.kinematics
    if not -config.canopy_descent_rate_max < k.smoothed_vertical_speed < 0:
        return state.detected_phase, None

    above_takeoff = ev.takeoff is None or k.altitude > ev.takeoff.altitude
    below_freefall = k.altitude < ev.freefall.altitude
    if not (above_takeoff and below_freefall and current.index > ev.freefall.index):
        return state.detected_phase, None

    point = find_inflection_point(state.windows.backtrack, is_rising=True) or current
    return FlightPhase.CANOPY, point


def _is_stable(values: np.ndarray, size: int, config: DetectionConfig) -> bool:
    if len(values) < size:
        return False
    return (
        float(np.std(values)) < config.landing_stability_threshold
        and abs(float(np.mean(values))) < config.landing_mean_vertical_speed_max
    )


def detect_landing(
    state: StreamState, current: FlightPoint, config: DetectionConfig
) -> tuple[FlightPhase, Optional[FlightPoint]]:
    """Nearly still with a settled vertical speed, back around the takeoff altitude."""
    ev = state.detected_events
    if state.detected_phase != FlightPhase.CANOPY or ev.landing is not None or ev.canopy is None:
        return state.detected_phase, None

    k = state.kinematics
    stability = state.windows.landing_stability
    if k.total_speed >= config.landing_speed_max or not _is_stable(stability.to_array(), stability.size, config):
        return state.detected_phase, None

    near_takeoff = ev.takeoff is None or abs(k.altitude - ev.takeoff.altitude) < config.landing_altitude_tolerance
    below_canopy = k.altitude < ev.canopy.altitude
    if not (near_takeoff and below_canopy and current.index > ev.canopy.index):
        return state.detected_phase, None

    point = find_inflection_point(state.windows.backtrack, is_rising=True) or current
    return FlightPhase.LANDING, point


DETECTORS = (
    ("takeoff", detect_takeoff),
    ("freefall", detect_freefall),
    ("canopy", detect_canopy),
    ("landing", detect_landing),
)


# -----------------------------
# Orchestration
# -----------------------------
def detect_all(state: StreamState, config: DetectionConfig) -> StreamState:
    """
    Run the four detectors in order on the current sample.

    Each detector sees the state as left by the ones before it. An event is
    recorded only in an empty slot, and the phase never moves backwards.
    """
    current = FlightPoint(state.sample_index, state.input_point.altitude)

    for slot, detector in DETECTORS:
        phase, point = detector(state, current, config)
        if point is None or getattr(state.detected_events, slot) is not None:
            continue
        logger.debug("%s at sample %d (%.1f m), confirmed at sample %d",
                     slot, point.index, point.altitude, current.index)
        state = replace(
            state,
            detected_phase=max(state.detected_phase, phase),
            detected_events=state.detected_events.record(slot, point),
        )

    return replace(state, detected_events=replace(state.detected_events, last_point=state.sample_index))


def step(state: Optional[StreamState], row: InputRow, index: int, config: DetectionConfig) -> StreamState:
    """Process one sample. Pass `state=None` for the first sample of a stream."""
    if state is None:
        state = StreamState.create(row, config, index)
    else:
        state = state.advance(row, index)
    return detect_all(state, config)


def detect_phases(rows: Iterable[InputRow], config: DetectionConfig, despike: bool = True) -> Iterator[OutputRow]:
    """
    Annotate a flight, lazily: one OutputRow per input row, in input order.

    Args:
        rows: Samples of one flight, ordered by time
        config: Detection thresholds and window sizes
        despike: Run the despike stage before detection

    Yields:
        OutputRow with the phase and the events known so far
    """
    config.validate()
    stream = despike_stream(rows, config) if despike else iter(rows)

    state: Optional[StreamState] = None
    for index, row in enumerate(stream):
        state = step(state, row, index, config)
        yield state.to_output()


def final_events(rows: Iterable[InputRow], config: DetectionConfig, despike: bool = True) -> DetectedEvents:
    """Events known once the whole flight has been seen."""
    last: Optional[OutputRow] = None
    for last in detect_phases(rows, config, despike=despike):
        pass
    return last.events if last is not None else DetectedEvents()
