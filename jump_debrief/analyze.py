"""Pipeline orchestration for a single jump log."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .domain import DetectedEvents, DetectionConfig, OutputRow
from .formats import CSVSource, Flight, load_flight, signals_frame
from .cutter import DEFAULT_BUFFER_POINTS, DEFAULT_MIN_RETAINED, extract_jump_window
from .detect import detect_phases


@dataclass(frozen=True)
class JumpAnalysis:
    flight: Flight
    outputs: list[OutputRow]
    events: DetectedEvents
    annotated: pd.DataFrame     # original columns + phase, every row
    cut: pd.DataFrame           # annotated, trimmed to the jump
    signals: pd.DataFrame       # numeric altitude / speeds, every row


def analyze(
    csv_source: CSVSource,
    config: DetectionConfig,
    fmt: str = "auto",
    buffer_points: int = DEFAULT_BUFFER_POINTS,
    min_retained: float = DEFAULT_MIN_RETAINED,
) -> tuple[Optional[JumpAnalysis], Optional[str]]:
    """
    Run complete jump analysis pipeline.

    Orchestrates the full analysis workflow:
    1. Load the CSV into canonical rows
    2. Detect phases sample by sample
    3. Annotate the original table with the phase
    4. Cut the table down to the jump

    Args:
        csv_source: Path or file-like object containing a jump CSV
        config: Detection configuration
        fmt: CSV format name, or "auto" to detect it from the header
        buffer_points: Rows kept before takeoff and after landing
        min_retained: Minimum fraction of rows the cut must keep

    Returns:
        Tuple of (result, error):
        - On success: (JumpAnalysis, None)
        - On failure: (None, error_message)
    """
    try:
        flight = load_flight(csv_source, fmt=fmt)
        if not flight.rows:
            return None, "No valid samples found in file."

        outputs = list(detect_phases(flight.rows, config))
        events = outputs[-1].events
        annotated = flight.fmt.encode(outputs, flight.columns)
        cut = extract_jump_window(annotated, events, buffer_points=buffer_points, min_retained=min_retained)

        return JumpAnalysis(
            flight=flight,
            outputs=outputs,
            events=events,
            annotated=annotated,
            cut=cut,
            signals=signals_frame(flight.rows),
        ), None

    except Exception as e:
        return None, str(e)
