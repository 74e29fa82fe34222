"""Tests for the analysis pipeline in analyze.py"""

from io import StringIO

from conftest import FLYSIGHT_HEADER
from jump_debrief.analyze import analyze
from jump_debrief.detect import final_events
from jump_debrief.formats import PHASE_COLUMN


class TestAnalyze:
    """Tests for analyze()."""

    def test_success(self, flysight_csv, jump_rows, config):
        """Reading the CSV finds the same events as the rows it was written from."""
        result, err = analyze(StringIO(flysight_csv), config, buffer_points=5)
        assert err is None
        assert result.events == final_events(jump_rows, config)
        assert len(result.outputs) == len(jump_rows)
        assert len(result.signals) == len(jump_rows)

    def test_annotated_table(self, flysight_csv, jump_rows, config):
        result, _ = analyze(StringIO(flysight_csv), config)
        assert list(result.annotated.columns) == FLYSIGHT_HEADER.split(",") + [PHASE_COLUMN]
        assert len(result.annotated) == len(jump_rows)
        assert result.annotated[PHASE_COLUMN].iloc[0] == "Before Takeoff"
        assert result.annotated[PHASE_COLUMN].iloc[-1] == "Landing"

    def test_cut_to_jump(self, flysight_csv, config):
        result, _ = analyze(StringIO(flysight_csv), config, buffer_points=5)
        ev = result.events
        assert len(result.cut) == (ev.landing.index + 5) - (ev.takeoff.index - 5) + 1
        assert result.cut["time"].iloc[0] == result.annotated["time"].iloc[ev.takeoff.index - 5]

    def test_unknown_format_is_an_error(self, config):
        result, err = analyze(StringIO("a,b,c\n1,2,3\n"), config)
        assert result is None
        assert "Unrecognised" in err

    def test_no_valid_rows(self, config):
        csv = FLYSIGHT_HEADER + "\nnot-a-time,46,7,x,0,0,0,0,0,0,0,0,3,9\n"
        result, err = analyze(StringIO(csv), config)
        assert result is None
        assert err == "No valid samples found in file."
