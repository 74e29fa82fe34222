from __future__ import annotations
from typing import Iterable, Optional

from .domain import FlightPoint
from .kinematics import VerticalSpeedSample


def find_inflection_point(window: Iterable[VerticalSpeedSample], is_rising: bool) -> Optional[FlightPoint]:
    """
    Find where a trend began inside the backtrack window.

    A detector only fires after the trend has lasted a few samples. This scans
    the buffered samples oldest first and returns the first sample whose
    successor moves in the trend's direction (up when `is_rising`, down
    otherwise).

    Returns:
        FlightPoint of the onset sample; the oldest sample when no pair moves
        in that direction; None for an empty window
    """
    samples = list(window)
    if not samples:
        return None

    for prev, curr in zip(samples, samples[1:]):
        moved = curr.speed > prev.speed if is_rising else curr.speed < prev.speed
        if moved:
            return FlightPoint(prev.index, prev.altitude)

    return FlightPoint(samples[0].index, samples[0].altitude)
