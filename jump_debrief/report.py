"""Human-readable event report and the per-batch summary CSV."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from .domain import EVENT_SLOTS, DetectedEvents, FlightPoint

SUMMARY_COLUMNS = [
    "filename",
    "takeoff_pt", "takeoff_alt",
    "freefall_pt", "freefall_alt",
    "canopy_pt", "canopy_alt",
    "landing_pt", "landing_alt",
]


def _describe(point: Optional[FlightPoint]) -> str:
    if point is None:
        return "N/A"
    return f"point {point.index} at altitude {point.altitude:.2f}"


def format_events(events: DetectedEvents) -> str:
    lines = [f"  {slot.capitalize():<9} {_describe(getattr(events, slot))}" for slot in EVENT_SLOTS]
    lines.append(f"  Valid:    {'Yes' if events.is_valid else 'No'}")
    return "\n".join(lines)


def summary_row(filename: str, events: DetectedEvents) -> dict[str, str]:
    row = {"filename": filename}
    for slot in EVENT_SLOTS:
        point = getattr(events, slot)
        row[f"{slot}_pt"] = str(point.index) if point is not None else ""
        row[f"{slot}_alt"] = f"{point.altitude:.2f}" if point is not None else ""
    return row


def summary_table(results: Iterable[tuple[str, DetectedEvents]]) -> pd.DataFrame:
    """One line per processed file. Missing events are left blank."""
    return pd.DataFrame([summary_row(name, ev) for name, ev in results], columns=SUMMARY_COLUMNS)


def write_summary(path: Union[str, Path], results: Iterable[tuple[str, DetectedEvents]]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    summary_table(results).to_csv(path, index=False)
    return path
