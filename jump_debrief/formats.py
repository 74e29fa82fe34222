"""Vendor CSV formats: reading into InputRow and writing annotated tables back out."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterable, Mapping, Union

import pandas as pd

from .domain import GeoVector, InputRow, OutputRow

logger = logging.getLogger(__name__)

CSVSource = Union[str, Path, IO[bytes], IO[str]]

PHASE_COLUMN = "phase"


# -----------------------------
# Adapters
# -----------------------------
class CsvFormat:
    """One vendor layout. Subclasses map a raw record (column -> text) to an InputRow."""

    name: str = ""
    time_column: str = "time"
    required_columns: tuple[str, ...] = ()
    numeric_columns: tuple[str, ...] = ()

    def to_input_row(self, record: Mapping[str, str]) -> InputRow:
        raise NotImplementedError

    def matches(self, columns: Iterable[str]) -> bool:
        return not self.missing_columns(columns)

    def missing_columns(self, columns: Iterable[str]) -> list[str]:
        present = set(columns)
        return [c for c in self.required_columns if c not in present]

    def encode(self, output_rows: Iterable[OutputRow], columns: list[str]) -> pd.DataFrame:
        """Original columns, untouched and in their original order, plus the detected phase."""
        records = []
        phases = []
        for row in output_rows:
            records.append(row.source)
            phases.append(row.phase.label)
        df = pd.DataFrame.from_records(records, columns=columns)
        df[PHASE_COLUMN] = phases
        return df


class FlySightFormat(CsvFormat):
    """FlySight GPS log. velD is positive down, so vertical speed is -velD."""

    name = "flysight"
    required_columns = ("time", "hMSL", "velN", "velE", "velD")
    numeric_columns = ("hMSL", "velN", "velE", "velD")

    def to_input_row(self, record: Mapping[str, str]) -> InputRow:
        return InputRow(
            time=parse_time(record["time"]),
            altitude=float(record["hMSL"]),
            velocity=GeoVector(
                north=float(record["velN"]),
                east=float(record["velE"]),
                vertical=-float(record["velD"]),
            ),
            source=dict(record),
        )


class AirlogFormat(CsvFormat):
    """Airlog logger. Horizontal speed comes as speed + heading (deg); sink is negative when descending."""

    name = "airlog"
    required_columns = ("time", "gpsAlt", "speed", "sink", "heading")
    numeric_columns = ("gpsAlt", "speed", "sink", "heading")

    def to_input_row(self, record: Mapping[str, str]) -> InputRow:
        speed = float(record["speed"])
        heading = math.radians(float(record["heading"]))
        return InputRow(
            time=parse_time(record["time"]),
            altitude=float(record["gpsAlt"]),
            velocity=GeoVector(
                north=speed * math.cos(heading),
                east=speed * math.sin(heading),
                vertical=float(record["sink"]),
            ),
            source=dict(record),
        )


FORMATS: dict[str, CsvFormat] = {
    f.name: f for f in (FlySightFormat(), AirlogFormat())
}


def parse_time(value: str):
    """Timezone-aware UTC datetime; zone-less timestamps are taken as UTC, as in the row filter."""
    ts = pd.Timestamp(value)
    ts = ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")
    return ts.to_pydatetime()


def detect_format(columns: Iterable[str]) -> CsvFormat:
    columns = list(columns)
    for fmt in FORMATS.values():
        if fmt.matches(columns):
            return fmt
    raise ValueError(f"Unrecognised CSV format. Expected one of {sorted(FORMATS)}. Found columns: {columns}")


def get_format(name: str, columns: Iterable[str]) -> CsvFormat:
    if name == "auto":
        return detect_format(columns)
    if name not in FORMATS:
        raise ValueError(f"Unknown format '{name}'. Expected 'auto' or one of {sorted(FORMATS)}")
    fmt = FORMATS[name]
    missing = fmt.missing_columns(columns)
    if missing:
        raise ValueError(f"Missing required {fmt.name} columns: {missing}. Found columns: {list(columns)}")
    return fmt


# -----------------------------
# Loading
# -----------------------------
@dataclass(frozen=True)
class Flight:
    table: pd.DataFrame     # valid rows, original text, original column order
    rows: list[InputRow]
    fmt: CsvFormat

    @property
    def columns(self) -> list[str]:
        return list(self.table.columns)


def load_flight(csv_source: CSVSource, fmt: str = "auto") -> Flight:
    """
    Read a vendor CSV into canonical rows.

    Rows whose timestamp or numeric fields do not parse are dropped here and
    never reach detection. FlySight's units line (second line of the file) is
    one of those.

    Args:
        csv_source: Path or file-like object
        fmt: "auto", "flysight" or "airlog"

    Returns:
        Flight with the kept raw table and one InputRow per kept line
    """
    df = pd.read_csv(csv_source, dtype=str, keep_default_na=False, skipinitialspace=True)
    df.columns = [c.strip() for c in df.columns]

    adapter = get_format(fmt, df.columns)

    # Coerce once, vectorized, just to find the bad lines
    checks = [pd.to_numeric(df[c], errors="coerce") for c in adapter.numeric_columns]
    times = pd.to_datetime(df[adapter.time_column], errors="coerce", utc=True, format="ISO8601")
    valid = times.notna()
    for col in checks:
        valid &= col.notna()

    # FlySight units line: every non-empty field looks like "(m/s)"
    is_units_row = df.apply(lambda col: col.eq("") | col.str.startswith("(")).all(axis=1)
    dropped = int((~valid & ~is_units_row).sum())
    if dropped:
        logger.warning("Dropped %d of %d rows that could not be parsed as %s", dropped, len(df), adapter.name)

    table = df.loc[valid].reset_index(drop=True)
    rows = [adapter.to_input_row(record) for record in table.to_dict("records")]
    return Flight(table=table, rows=rows, fmt=adapter)


def signals_frame(rows: Iterable[InputRow]) -> pd.DataFrame:
    """Numeric view of the canonical rows, one line per sample (for charts and previews)."""
    return pd.DataFrame(
        [
            {
                "time": r.time,
                "altitude": r.altitude,
                "north_speed": r.velocity.north,
                "east_speed": r.velocity.east,
                "vertical_speed": r.velocity.vertical,
                "horizontal_speed": r.velocity.horizontal,
            }
            for r in rows
        ],
        columns=["time", "altitude", "north_speed", "east_speed", "vertical_speed", "horizontal_speed"],
    )
