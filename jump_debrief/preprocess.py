from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import Iterable, Iterator, Optional

from .domain import DetectionConfig, InputRow
from .kinematics import (
    PointKinematics,
    expected_vertical_speed,
    interpolate_point_kinematics,
    interpolate_row,
)
from .windows import FocusWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpikeSample:
    point: InputRow
    kinematics: Optional[PointKinematics] = None    # None for the first sample of the stream


# -----------------------------
# Despike
# -----------------------------
def _interpolate_sample(a: SpikeSample, b: SpikeSample, at: SpikeSample) -> SpikeSample:
    if a.kinematics is not None and b.kinematics is not None:
        kinematics = interpolate_point_kinematics(a.kinematics, b.kinematics, at.point.time)
    else:
        kinematics = at.kinematics
    return SpikeSample(point=interpolate_row(a.point, b.point, at.point), kinematics=kinematics)


def despike(window: FocusWindow[SpikeSample], clip: float) -> FocusWindow[SpikeSample]:
    """
    Correct the second-oldest sample of a filled window if it is a spike.

    The vertical speed expected at the focused sample's time is the linear
    interpolation between the oldest and newest samples. When the actual
    value is further than `clip` (m/s) from it, the focused sample is
    replaced by the interpolated one. Oldest and newest are never touched.

    Args:
        window: Filled window of samples, oldest first
        clip: Largest accepted deviation in m/s

    Returns:
        The window with the cursor on position 1 and that slot possibly replaced
    """
    focused = window.focus_at(1)
    oldest, newest, current = window.oldest(), window.newest(), focused.focus

    expected = expected_vertical_speed(oldest.point, newest.point, current.point.time)
    deviation = abs(current.point.velocity.vertical - expected)
    if deviation <= clip:
        return focused

    logger.debug(
        "Despiked sample at %s: vertical speed %.2f, expected %.2f",
        current.point.time, current.point.velocity.vertical, expected,
    )
    return focused.modify_focus(lambda s: _interpolate_sample(oldest, newest, s))


def despike_stream(rows: Iterable[InputRow], config: DetectionConfig) -> Iterator[InputRow]:
    """
    Lazily despike a stream of rows.

    A row leaves the stage when it is pushed out of the window, so output lags
    input by the window capacity. Rows still in the window when the input ends
    are despiked once more and flushed in order: one output row per input row.
    """
    window: FocusWindow[SpikeSample] = FocusWindow(max(2, config.preprocess_window_size))

    for row in rows:
        kinematics = PointKinematics.compute(window.newest().point, row) if len(window) else None
        if window.is_filled:
            window = despike(window, config.acceleration_clip)
        evicted, window = window.push(SpikeSample(row, kinematics))
        if evicted is not None:
            yield evicted.point

    if window.is_filled:
        window = despike(window, config.acceleration_clip)
    for sample in window:
        yield sample.point


"""
Why despike before smoothing at all?

GPS loggers occasionally report a single sample whose vertical speed is
wildly off (a satellite swap, a multipath bounce). The median in the
smoothing window absorbs most of those, but a spike right at a phase
transition can still fire a detector one sample early.

Window of 3, clip 20 m/s:

    t=0  vz=-50
    t=1  vz=+5     <- expected -50, off by 55: replaced with -50
    t=2  vz=-50

The corrected sample keeps its timestamp and its raw record, so whatever is
written out at the end still lines up with the input file.
"""
