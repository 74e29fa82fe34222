from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

import numpy as np

from .windows import BoundedBuffer


class Peak(Enum):
    POSITIVE_PEAK = "PositivePeak"
    STABLE = "Stable"
    NEGATIVE_PEAK = "NegativePeak"


@dataclass(frozen=True)
class PeakStats:
    value: float
    peak: Peak
    mean: float     # baseline mean the value was compared against
    std: float      # baseline population std-dev


class PeakDetector:
    """
    Smoothed z-score peak detection.

    A value is a peak when it sits more than `threshold` standard deviations
    away from the mean of the last `lag` baseline values. Peaks enter the
    baseline damped by `influence`, so a single shock does not drag the mean
    along with it.

    Args:
        lag: Baseline window size (samples), >= 1
        threshold: Z-score at which a value is flagged, > 0
        influence: Weight of a peak value in the baseline, in [0, 1]
    """

    def __init__(self, lag: int, threshold: float, influence: float):
        if lag < 1:
            raise ValueError(f"lag must be >= 1, got {lag}")
        if threshold <= 0:
            raise ValueError(f"threshold must be > 0, got {threshold}")
        if not 0.0 <= influence <= 1.0:
            raise ValueError(f"influence must be within [0, 1], got {influence}")
        self.lag = lag
        self.threshold = threshold
        self.influence = influence

    def detect_stats(self, values: Iterable[float]) -> Iterator[PeakStats]:
        """One PeakStats per input value, same order. Each call starts from an empty baseline."""
        baseline: BoundedBuffer[float] = BoundedBuffer(self.lag)

        for i, value in enumerate(values):
            value = float(value)
            if i < self.lag:
                # warming up
                arr = baseline.to_array()
                mean = float(np.mean(arr)) if len(arr) else 0.0
                std = float(np.std(arr)) if len(arr) else 0.0
                baseline = baseline.enqueue(value)
                yield PeakStats(value, Peak.STABLE, mean, std)
                continue

            arr = baseline.to_array()
            mean = float(np.mean(arr))
            std = float(np.std(arr))    # population std-dev
            distance = abs(value - mean)
            # flat baseline: anything different from the mean is a peak
            is_peak = distance > self.threshold * std if std > 0 else value != mean

            if is_peak:
                peak = Peak.POSITIVE_PEAK if value > mean else Peak.NEGATIVE_PEAK
                pushed = self.influence * value + (1.0 - self.influence) * baseline.newest()
            else:
                peak = Peak.STABLE
                pushed = value

            baseline = baseline.enqueue(pushed)
            yield PeakStats(value, peak, mean, std)

    def detect(self, values: Iterable[float]) -> Iterator[tuple[float, Peak]]:
        for s in self.detect_stats(values):
            yield s.value, s.peak


def find_shocks(values: Iterable[float], lag: int, threshold: float, influence: float) -> list[int]:
    """Indices of every positive or negative peak in `values`."""
    detector = PeakDetector(lag, threshold, influence)
    return [i for i, (_, p) in enumerate(detector.detect(values)) if p is not Peak.STABLE]
