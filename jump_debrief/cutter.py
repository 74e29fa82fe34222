"""Jump window extraction: drop the long ground recording before takeoff and after landing."""

from __future__ import annotations

import logging

import pandas as pd

from .domain import DetectedEvents

logger = logging.getLogger(__name__)


# Rows kept on each side of takeoff/landing
DEFAULT_BUFFER_POINTS = 500
# Below this fraction of retained rows the cut is considered suspicious
DEFAULT_MIN_RETAINED = 0.0


def jump_window_bounds(n_rows: int, events: DetectedEvents, buffer_points: int) -> tuple[int, int]:
    """First and last row (inclusive) to keep for a table of `n_rows`."""
    if buffer_points < 0:
        raise ValueError(f"buffer_points must be >= 0, got {buffer_points}")
    if n_rows == 0:
        return 0, -1

    start = events.takeoff.index - buffer_points if events.takeoff is not None else 0
    end = events.landing.index + buffer_points if events.landing is not None else n_rows - 1
    return max(start, 0), min(end, n_rows - 1)


def extract_jump_window(
    table: pd.DataFrame,
    events: DetectedEvents,
    buffer_points: int = DEFAULT_BUFFER_POINTS,
    min_retained: float = DEFAULT_MIN_RETAINED,
) -> pd.DataFrame:
    """
    Cut a flight table down to the jump.

    Keeps rows from `buffer_points` before takeoff up to `buffer_points` after
    landing. A missing takeoff keeps everything from the start, a missing
    landing keeps everything to the end.

    Args:
        table: One row per sample, row position == sample index
        events: Events detected on that table
        buffer_points: Rows kept on each side
        min_retained: If the cut keeps less than this fraction of the rows,
            the whole table is returned instead

    Returns:
        The cut table with a fresh index
    """
    if not 0.0 <= min_retained <= 1.0:
        raise ValueError(f"min_retained must be within [0, 1], got {min_retained}")

    start, end = jump_window_bounds(len(table), events, buffer_points)
    if len(table) == 0:
        return table.copy()

    kept = end - start + 1
    if kept / len(table) < min_retained:
        logger.info("Cut would keep %d of %d rows (< %.0f%%), keeping all", kept, len(table), min_retained * 100)
        cut = table.copy()
    else:
        cut = table.iloc[start:end + 1].copy()

    cut.reset_index(drop=True, inplace=True)
    return cut
