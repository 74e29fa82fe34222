"""Shared fixtures: a synthetic 1 Hz jump and helpers to write it as vendor CSV."""

from datetime import datetime, timedelta, timezone

import pytest

from jump_debrief.domain import DetectionConfig, GeoVector, InputRow

T0 = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
GROUND_ALT = 100.0

FLYSIGHT_HEADER = "time,lat,lon,hMSL,velN,velE,velD,hAcc,vAcc,sAcc,heading,cAcc,gpsFix,numSV"
FLYSIGHT_UNITS = ",(deg),(deg),(m),(m/s),(m/s),(m/s),(m),(m),(m/s),(deg),(deg),,"


def make_row(i: int, altitude: float, north: float, vertical: float, east: float = 0.0) -> InputRow:
    return InputRow(
        time=T0 + timedelta(seconds=i),
        altitude=altitude,
        velocity=GeoVector(north, east, vertical),
        source={"i": i},
    )


def jump_profile() -> list[tuple[float, float]]:
    """(horizontal, vertical) speed per second for a whole jump."""
    profile = [(0.0, 0.0)] * 20                                # on the ground
    profile += [(h, 0.0) for h in (10.0, 20.0, 30.0, 40.0)]    # takeoff roll
    profile += [(40.0, 5.0)]

    alt = GROUND_ALT + 5.0
    while alt < 4000.0:                                        # climb
        profile.append((40.0, 10.0))
        alt += 10.0
    profile += [(40.0, 5.0)] + [(40.0, 0.0)] * 10              # jump run

    profile += [(20.0, v) for v in (-10.0, -20.0, -30.0, -40.0, -50.0)]   # exit
    profile += [(20.0, -50.0)] * 60                            # freefall
    alt += 5.0 - 150.0 - 3000.0

    profile += [(10.0, v) for v in (-40.0, -30.0, -20.0, -10.0, -5.0)]    # deployment
    alt -= 105.0
    while alt > 110.0:                                         # under canopy
        profile.append((10.0, -5.0))
        alt -= 5.0
    profile += [(0.0, -2.0)] + [(0.0, 0.0)] * 40               # landed
    return profile


def build_jump() -> list[InputRow]:
    rows = []
    alt = GROUND_ALT
    for i, (h, v) in enumerate(jump_profile()):
        if i > 0:
            alt += v
        rows.append(make_row(i, alt, h, v))
    return rows


def to_flysight_csv(rows: list[InputRow]) -> str:
    lines = [FLYSIGHT_HEADER, FLYSIGHT_UNITS]
    for r in rows:
        ts = r.time.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-4] + "Z"
        lines.append(
            f"{ts},46.0,7.0,{r.altitude:.3f},{r.velocity.north:.2f},{r.velocity.east:.2f},"
            f"{-r.velocity.vertical:.2f},5.0,8.0,0.5,0.0,1.0,3,9"
        )
    return "\n".join(lines) + "\n"


@pytest.fixture
def config() -> DetectionConfig:
    return DetectionConfig()


@pytest.fixture
def jump_rows() -> list[InputRow]:
    return build_jump()


@pytest.fixture
def flysight_csv(jump_rows) -> str:
    return to_flysight_csv(jump_rows)
