"""
Jump Debrief - Skydive Flight Phase Detector

A toolkit for finding takeoff, freefall, canopy deployment and landing
in skydiving GPS logs (FlySight, Airlog). Detection runs online, one
sample at a time, so every row of a log is annotated with the phase
known at that moment.
"""

from .domain import (
    DetectedEvents,
    DetectionConfig,
    FlightPhase,
    FlightPoint,
    GeoVector,
    InputRow,
    OutputRow,
    parse_params,
)
from .windows import BoundedBuffer, FocusWindow
from .kinematics import Kinematics, PointKinematics, VerticalSpeedSample, Windows
from .preprocess import despike, despike_stream
from .peaks import Peak, PeakDetector, PeakStats, find_shocks
from .inflection import find_inflection_point
from .detect import StreamState, detect_all, detect_phases, final_events, step
from .formats import FORMATS, load_flight
from .cutter import extract_jump_window
from .report import format_events, summary_table, write_summary
from .analyze import analyze
from .render import make_plot_figure

__all__ = [
    # Domain models
    "DetectedEvents",
    "DetectionConfig",
    "FlightPhase",
    "FlightPoint",
    "GeoVector",
    "InputRow",
    "OutputRow",
    "parse_params",
    # Windows
    "BoundedBuffer",
    "FocusWindow",
    # Kinematics
    "Kinematics",
    "PointKinematics",
    "VerticalSpeedSample",
    "Windows",
    # Preprocessing
    "despike",
    "despike_stream",
    # Peaks / backtracking
    "Peak",
    "PeakDetector",
    "PeakStats",
    "find_shocks",
    "find_inflection_point",
    # Detection
    "StreamState",
    "detect_all",
    "detect_phases",
    "final_events",
    "step",
    # Formats
    "FORMATS",
    "load_flight",
    # Post-processing
    "extract_jump_window",
    "format_events",
    "summary_table",
    "write_summary",
    # Pipeline
    "analyze",
    # Visualization
    "make_plot_figure",
]

__version__ = "0.1.0"
