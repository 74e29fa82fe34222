from __future__ import annotations
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .domain import EVENT_SLOTS, DetectedEvents, DetectionConfig
from .peaks import find_shocks


EVENT_COLORS = {
    "takeoff": "tab:green",
    "freefall": "tab:red",
    "canopy": "tab:blue",
    "landing": "tab:purple",
}


def make_plot_figure(
    signals: pd.DataFrame,
    events: DetectedEvents,
    config: DetectionConfig,
):
    """Altitude and vertical speed against sample index, with event and shock markers."""
    idx = np.arange(len(signals))
    alt = signals["altitude"].to_numpy(float)
    vz = signals["vertical_speed"].to_numpy(float)
    hz = signals["horizontal_speed"].to_numpy(float)

    # Same smoothing the detector applies: median of the new value and the window before it
    vz_s = (
        pd.Series(vz)
        .rolling(config.smoothing_window_size + 1, min_periods=1)
        .median()
        .to_numpy()
    )

    fig, (ax_alt, ax_vz, ax_hz) = plt.subplots(
        nrows=3,
        ncols=1,
        figsize=(14, 10),
        sharex=True,
        gridspec_kw={"height_ratios": [1.4, 1.2, 1.0]},
    )

    # --- Altitude ---
    ax_alt.plot(idx, alt, linewidth=2.0, label="Altitude (m)")
    ax_alt.set_ylabel("Altitude (m)")
    ax_alt.grid(True, alpha=0.2)

    # --- Vertical speed ---
    ax_vz.plot(idx, vz, linewidth=1.0, alpha=0.5, label="Vertical speed (m/s)")
    ax_vz.plot(idx, vz_s, linewidth=2.0, label="Smoothed (m/s)")
    ax_vz.axhline(-config.freefall_descent_rate, linestyle=":", linewidth=1.2, label="Freefall rate")
    ax_vz.axhline(-config.canopy_descent_rate_max, linestyle="--", linewidth=1.2, label="Canopy max rate")
    ax_vz.set_ylabel("Vertical (m/s)")
    ax_vz.grid(True, alpha=0.2)

    shocks = find_shocks(vz, config.peak_lag, config.peak_threshold, config.peak_influence)
    if shocks:
        ax_vz.scatter(shocks, vz[shocks], marker="x", color="black", zorder=3, label="Shock")
    ax_vz.legend(loc="upper right")

    # --- Horizontal speed ---
    ax_hz.plot(idx, hz, linewidth=2.0, label="Horizontal speed (m/s)")
    ax_hz.axhline(config.takeoff_speed_threshold, linestyle=":", linewidth=1.2, label="Takeoff speed")
    ax_hz.set_ylabel("Horizontal (m/s)")
    ax_hz.set_xlabel("Sample")
    ax_hz.grid(True, alpha=0.2)
    ax_hz.legend(loc="upper right")

    # --- Events on every axis, labelled on the altitude one ---
    for slot in EVENT_SLOTS:
        point = getattr(events, slot)
        if point is None:
            continue
        color = EVENT_COLORS[slot]
        for ax in (ax_alt, ax_vz, ax_hz):
            ax.axvline(point.index, color=color, linewidth=1.2, alpha=0.7)
        ax_alt.annotate(
            f"{slot.capitalize()}\n{point.altitude:.0f} m",
            xy=(point.index, point.altitude),
            xytext=(5, 10),
            textcoords="offset points",
            color=color,
        )
    ax_alt.legend(loc="upper right")

    status = "valid" if events.is_valid else "no freefall"
    fig.suptitle(f"Jump Signals - {config.name} ({status})", y=0.995)
    fig.tight_layout(rect=(0.0, 0.0, 1.0, 0.98))
    return fig
