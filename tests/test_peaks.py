"""Tests for the smoothed z-score peak detector in peaks.py"""

import pytest

from jump_debrief.peaks import Peak, PeakDetector, find_shocks

SIGNAL = [
    1, 1, 1.1, 1, 0.9, 1, 1, 1.1, 1, 0.9, 1, 1.1, 1, 1, 0.9, 1, 1, 1.1, 1, 1,
    1, 1, 1.1, 0.9, 1, 1.1, 1, 1, 0.9, 1, 1.1, 1, 1, 1.1, 1, 0.8, 0.9, 1, 1.2, 0.9,
    1, 1, 1.1, 1.2, 1, 1.5, 1, 3, 2, 5, 3, 2, 1, 1, 1, 0.9, 1, 1, 3, 2.6,
    4, 3, 3.2, 2, 1, 1, 0.8, 4, 4, 2, 2.5, 1, 1, 1,
]

# Positions of 1.5, 3 and 5 in SIGNAL
EXPECTED_PEAKS = {45, 47, 49}


@pytest.fixture
def detector():
    return PeakDetector(lag=30, threshold=5.0, influence=0.5)


class TestPeakDetector:
    """Tests for PeakDetector.detect / detect_stats."""

    def test_reference_signal(self, detector):
        """Only the jumps to 1.5, 3 and 5 are flagged, all as positive peaks."""
        result = list(detector.detect(SIGNAL))
        expected = [
            (float(v), Peak.POSITIVE_PEAK if i in EXPECTED_PEAKS else Peak.STABLE)
            for i, v in enumerate(SIGNAL)
        ]
        assert result == expected

    def test_same_length_and_order(self, detector):
        """One output per input, values passed through."""
        result = list(detector.detect(SIGNAL))
        assert len(result) == len(SIGNAL)
        assert [v for v, _ in result] == [float(v) for v in SIGNAL]

    def test_warmup_is_stable(self):
        """The first `lag` values are never classified."""
        d = PeakDetector(lag=5, threshold=1.0, influence=0.0)
        peaks = [p for _, p in d.detect([0, 0, 0, 0, 1000])]
        assert peaks == [Peak.STABLE] * 5

    def test_negative_peak(self):
        """A drop far below the baseline is a negative peak."""
        d = PeakDetector(lag=4, threshold=3.0, influence=0.0)
        peaks = [p for _, p in d.detect([10, 11, 10, 11, -50])]
        assert peaks[-1] is Peak.NEGATIVE_PEAK

    def test_flat_baseline_any_change_is_peak(self):
        """Zero std-dev: a value is a peak iff it differs from the mean."""
        d = PeakDetector(lag=3, threshold=5.0, influence=1.0)
        peaks = [p for _, p in d.detect([2, 2, 2, 2, 2.001])]
        assert peaks[3] is Peak.STABLE
        assert peaks[4] is Peak.POSITIVE_PEAK

    def test_influence_damps_baseline(self):
        """With influence 0 a peak never enters the baseline."""
        d = PeakDetector(lag=3, threshold=2.0, influence=0.0)
        stats = list(d.detect_stats([1, 1, 1, 100, 100]))
        assert stats[3].peak is Peak.POSITIVE_PEAK
        assert stats[4].peak is Peak.POSITIVE_PEAK
        assert stats[4].mean == pytest.approx(1.0)

    def test_stats_report_baseline(self, detector):
        """detect_stats exposes the mean and population std-dev used."""
        stats = list(detector.detect_stats(SIGNAL))
        assert stats[45].mean == pytest.approx(1.013333, abs=1e-5)
        assert stats[45].std == pytest.approx(0.084591, abs=1e-5)

    def test_restartable(self, detector):
        """Each call starts from an empty baseline."""
        first = list(detector.detect(SIGNAL))
        second = list(detector.detect(SIGNAL))
        assert first == second

    def test_lazy_over_unbounded_input(self):
        """Works on a generator and yields before the input ends."""
        import itertools

        d = PeakDetector(lag=3, threshold=3.0, influence=0.5)
        out = d.detect(itertools.cycle([1.0, 1.1, 0.9]))
        assert len(list(itertools.islice(out, 1000))) == 1000

    @pytest.mark.parametrize("lag, threshold, influence", [(0, 1.0, 0.5), (3, 0.0, 0.5), (3, 1.0, -0.1), (3, 1.0, 1.5)])
    def test_invalid_parameters(self, lag, threshold, influence):
        with pytest.raises(ValueError):
            PeakDetector(lag, threshold, influence)


class TestFindShocks:
    """Tests for the find_shocks helper."""

    def test_indices(self):
        assert set(find_shocks(SIGNAL, 30, 5.0, 0.5)) == EXPECTED_PEAKS
