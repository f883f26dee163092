import time
from dataclasses import replace
from pathlib import Path

import streamlit as st
from streamlit.components.v1 import html

from precipwiz.config import CLIP_QUANTILES, YEAR_MAX, YEAR_MIN, YEAR_STEP, Settings
from precipwiz.errors import TopologyError
from precipwiz.frames import build_frame
from precipwiz.logging_setup import setup_logging
from precipwiz.world import load_world

PLAY_DELAY_S = 0.6

GUIDE_MD = """
**PrecipWiz** shows how much rain and snow fell across the globe, year by year, from 1954 to 2014.

- Each coloured square is one grid cell; colours run from dark blue (dry) through green and yellow to dark red (wet).
- Every year shows a **5-year trailing window**: the value for 1980 summarises 1976–1980, which smooths out single odd years.
- Extreme cells are **clamped** to the 1st–99th percentile so a handful of outliers don't wash out the map; the legend marks clamped ends with ≤ / ≥.
- **Hover** a cell for its exact value and coordinates. Press **Play** to animate through the years.

Source files follow `processed/pr_by_year/pr_<year>_win5.csv` (`lat`, `lon`, `pr_total_mm`).
"""

setup_logging()
st.set_page_config(page_title="PrecipWiz", page_icon="🌧️", layout="wide", initial_sidebar_state="collapsed")
st.markdown("""
<style>
#MainMenu, footer { display:none !important; }
.block-container { padding-top:1rem !important; max-width:1400px !important; }
[data-testid="stIFrame"] { border:none !important; }
</style>
""", unsafe_allow_html=True)

BASE_SETTINGS = Settings.from_env()


@st.cache_resource(show_spinner=False)
def world_features(url: str, timeout: float):
    return load_world(url, timeout)


class FrameFailed(Exception):
    def __init__(self, payload):
        super().__init__(payload["error"])
        self.payload = payload


@st.cache_data(ttl=3600, show_spinner=False, max_entries=64)
def cached_frame(year: int, data_dir: str, pixel_ratio: float, clip):
    settings = replace(BASE_SETTINGS, data_dir=Path(data_dir), pixel_ratio=pixel_ratio, clip=clip)
    try:
        features = world_features(settings.world_url, settings.http_timeout)
    except TopologyError:
        # build_frame retries the load, logs it and renders the error view
        features = None
    payload = build_frame(year, settings, features).payload()
    if not payload["ok"]:
        # exceptions are not cached: a failed year is tried again on the next run
        raise FrameFailed(payload)
    return payload


def frame_for(year: int, data_dir: str, pixel_ratio: float, clip):
    try:
        return cached_frame(year, data_dir, pixel_ratio, clip)
    except FrameFailed as e:
        return e.payload


if "year" not in st.session_state:
    st.session_state.year = YEAR_MIN
# the slider owns "year" once drawn; playback hands the next year over here
if "next_year" in st.session_state:
    st.session_state.year = st.session_state.pop("next_year")
if "playing" not in st.session_state:
    st.session_state.playing = False

with st.expander("Guide", expanded=False):
    st.markdown(GUIDE_MD)

c_slider, c_play, c_opts = st.columns([6, 1, 2])
with c_slider:
    st.slider("Year", min_value=YEAR_MIN, max_value=YEAR_MAX, step=YEAR_STEP, key="year")
with c_play:
    st.write("")
    if st.button("Pause" if st.session_state.playing else "Play", use_container_width=True):
        st.session_state.playing = not st.session_state.playing
        st.rerun()
with c_opts:
    hi_dpi = st.toggle("High-DPI", value=BASE_SETTINGS.pixel_ratio > 1)
    clamp = st.toggle("Clamp outliers", value=BASE_SETTINGS.clip is not None)

year = int(st.session_state.year)
ratio = max(BASE_SETTINGS.pixel_ratio, 2.0) if hi_dpi else 1.0
clip = (BASE_SETTINGS.clip or CLIP_QUANTILES) if clamp else None

frame = frame_for(year, str(BASE_SETTINGS.data_dir), ratio, clip)
html(frame["html"], height=BASE_SETTINGS.height + 20, scrolling=False)
if frame["ok"]:
    lo, hi = frame["domain"]
    st.caption(f"{year}: {frame['rows']} rows, {frame['cells']} cells, colour range {lo:.1f}–{hi:.1f} mm")

if st.session_state.playing:
    time.sleep(PLAY_DELAY_S)
    nxt = year + YEAR_STEP
    if nxt > YEAR_MAX:
        st.session_state.playing = False
    else:
        st.session_state.next_year = nxt
    st.rerun()
