import streamlit as st
import pandas as pd

from jump_debrief.domain import DetectionConfig
from jump_debrief.analyze import analyze
from jump_debrief.formats import FORMATS
from jump_debrief.render import make_plot_figure

# -----------------------------
# Preset configs
# -----------------------------
PRESET_CONFIGS: dict[str, DetectionConfig] = {
    "FlySight 5 Hz (default)": DetectionConfig(),
    "High DZ (field 1500 m MSL)": DetectionConfig(
        name="High DZ (field 1500 m MSL)",
        takeoff_max_altitude=2100.0,
        freefall_min_altitude_absolute=2100.0,
    ),
    "Noisy logger (more smoothing)": DetectionConfig(
        name="Noisy logger (more smoothing)",
        smoothing_window_size=9,
        landing_stability_window_size=15,
        acceleration_clip=12.0,
    ),
}

# Fields exposed in the editor: (label, step)
EDITABLE_FIELDS: dict[str, tuple[str, float]] = {
    "takeoff_speed_threshold": ("Takeoff speed (m/s)", 1.0),
    "takeoff_climb_rate": ("Takeoff climb rate (m/s)", 0.5),
    "takeoff_max_altitude": ("Takeoff max altitude (m)", 50.0),
    "freefall_descent_rate": ("Freefall descent rate (m/s)", 1.0),
    "freefall_accel_threshold": ("Freefall speed drop per sample (m/s)", 0.5),
    "freefall_min_altitude_above": ("Freefall min height above takeoff (m)", 50.0),
    "canopy_descent_rate_max": ("Canopy max descent rate (m/s)", 1.0),
    "landing_speed_max": ("Landing max speed (m/s)", 0.5),
    "landing_stability_threshold": ("Landing stability std-dev (m/s)", 0.1),
    "landing_altitude_tolerance": ("Landing altitude tolerance (m)", 50.0),
    "acceleration_clip": ("Despike clip (m/s)", 1.0),
}


# -----------------------------
# Streamlit page setup
# -----------------------------
st.set_page_config(page_title="Jump Debrief", layout="wide")
st.title("🪂 Jump Debrief — Flight Phase Detector")
st.write("Upload a FlySight or Airlog CSV and get takeoff, exit, deployment and landing points.")


# -----------------------------
# Session-state helper
# -----------------------------
def _load_config_into_state(c: DetectionConfig) -> None:
    st.session_state["c_name"] = c.name
    for field_name in EDITABLE_FIELDS:
        st.session_state[f"c_{field_name}"] = float(getattr(c, field_name))


# -----------------------------
# Sidebar: format + config selection/edit
# -----------------------------
with st.sidebar:
    st.header("Settings")

    fmt = st.selectbox("CSV format", options=["auto", *sorted(FORMATS)], index=0)
    buffer_points = st.number_input("Rows kept around the jump", min_value=0, value=500, step=50)

    st.divider()
    st.header("Detection config")

    config_name = st.selectbox("Preset", options=list(PRESET_CONFIGS.keys()), index=0)
    preset = PRESET_CONFIGS[config_name]

    # Initialize state on first run or when preset changes
    if st.session_state.get("selected_config_name") != config_name:
        st.session_state["selected_config_name"] = config_name
        _load_config_into_state(preset)

    edit = st.checkbox("Edit config", value=False)
    if st.button("Reset to preset"):
        _load_config_into_state(preset)

    if edit:
        st.subheader("Edit values")
        st.text_input("Config name", key="c_name")
        for field_name, (label, step) in EDITABLE_FIELDS.items():
            st.number_input(label, step=step, key=f"c_{field_name}")
    else:
        st.subheader("Preset values (read-only)")
        st.write({"name": preset.name, **{f: getattr(preset, f) for f in EDITABLE_FIELDS}})


# Build the config object AFTER sidebar widgets exist
if edit:
    overrides = {f: st.session_state[f"c_{f}"] for f in EDITABLE_FIELDS}
    overrides["name"] = st.session_state["c_name"]
    try:
        config = preset.with_overrides(overrides)
    except ValueError as e:
        st.error(f"Invalid config: {e}")
        st.stop()
else:
    config = preset

st.caption(f"Active config: **{config.name}**")


# -----------------------------
# Upload + preview
# -----------------------------
uploaded = st.file_uploader("Upload CSV", type=["csv"])

if uploaded is None:
    st.info("Upload a CSV to begin.")
    st.stop()

uploaded.seek(0)
df_preview = pd.read_csv(uploaded, nrows=20, dtype=str)
st.subheader("Raw preview (as uploaded)")
st.dataframe(df_preview, use_container_width=True)
uploaded.seek(0)


# -----------------------------
# Run analysis
# -----------------------------
result, err = analyze(uploaded, config, fmt=fmt, buffer_points=int(buffer_points))

if err or result is None:
    st.error(err or "Analysis failed (no result returned).")
    st.stop()

events = result.events


# -----------------------------
# Display results
# -----------------------------
col1, col2, col3 = st.columns([1, 1, 1])
col1.metric("Result", "Valid jump" if events.is_valid else "No freefall")
col2.metric("Samples", f"{len(result.annotated)}")
col3.metric("Format", result.flight.fmt.name)

st.subheader("Detected events")
df_events = pd.DataFrame(
    [
        {
            "event": slot,
            "sample": point.index if point is not None else None,
            "altitude_m": round(point.altitude, 2) if point is not None else None,
        }
        for slot, point in (
            ("takeoff", events.takeoff),
            ("freefall", events.freefall),
            ("canopy", events.canopy),
            ("landing", events.landing),
        )
    ]
)
st.dataframe(df_events, use_container_width=True)

st.subheader("Jump plot")
fig = make_plot_figure(result.signals, events, config)
st.pyplot(fig, clear_figure=True)

st.subheader("Cut jump")
st.download_button(
    "Download CSV",
    data=result.cut.to_csv(index=False).encode("utf-8"),
    file_name=f"{uploaded.name.rsplit('.', 1)[0]}_jump.csv",
    mime="text/csv",
)
