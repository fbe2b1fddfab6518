"""
Layout helpers for the Streamlit application (page setup and sidebar).
"""

from __future__ import annotations

from typing import List

import streamlit as st

from dashlab.config import CANDIDATE_COUNTIES, DEFAULT_SELECTION
from dashlab.data.pipeline import Selection


def setup_page() -> None:
    """Set Streamlit page configuration."""
    st.set_page_config(
        page_title="COVID-19 U.S. Dashboard",
        layout="wide",
        page_icon=":chart_with_upwards_trend:",
    )


def _county_input(label: str, key: str, options: List[str], default: str) -> str:
    """Drop-down over the candidate list with a free-text override underneath."""
    index = options.index(default) if default in options else 0
    choice = st.sidebar.selectbox(label, options=options, index=index, key=f"{key}_choice")
    typed = st.sidebar.text_input(
        f"…or type a county for {label.lower()}",
        value="",
        key=f"{key}_typed",
        placeholder="e.g. Los Angeles",
        help="County names are matched exactly, including capitalisation.",
    )
    return typed.strip() or choice


def sidebar_selection_ui(options: List[str] = CANDIDATE_COUNTIES) -> Selection:
    """
    Render the highlight controls and return the selected county pair.
    """
    st.sidebar.title("COVID-19 U.S. Dashboard")
    st.sidebar.header("Add counties to highlight:")
    st.sidebar.caption(
        "Pick from the list of populous U.S. counties or type a name. "
        "Your choices are highlighted in the line plots."
    )
    first = _county_input("Select County 1", "dl_county_1", options, DEFAULT_SELECTION[0])
    second = _county_input("Select County 2", "dl_county_2", options, DEFAULT_SELECTION[1])
    return Selection.of(first, second)


def sidebar_notes() -> None:
    st.sidebar.markdown("---")
    st.sidebar.subheader("Note:")
    st.sidebar.caption(
        "Data comes from the New York Times COVID-19 repository. "
        "The first load downloads several large files and can take a minute."
    )
