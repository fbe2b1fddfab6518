from __future__ import annotations

from typing import Optional

import pandas as pd
import streamlit as st

from dashlab.data.pipeline import DerivedViews


def primary_region(df: pd.DataFrame, county: str) -> Optional[str]:
    """Region id of the county called ``county`` with the most cases.

    County names repeat across states (Houston, Baltimore, ...); the largest
    one is the default for single-region charts.
    """
    matches = df[df["county"] == county]
    if matches.empty:
        return None
    return str(matches.groupby("region_id")["cases"].max().idxmax())


def region_caption(df: pd.DataFrame, county: str, region_id: str) -> Optional[str]:
    matches = df[df["county"] == county]
    count = matches["region_id"].nunique()
    if count <= 1:
        return None
    state = matches.loc[matches["region_id"] == region_id, "state"].iloc[0]
    return f"{count} counties are named {county}; showing the one in {state} (most confirmed cases)."


def show_missing_selections(views: DerivedViews) -> None:
    for name in views.missing_selections:
        st.info(f"No data for selection: {name!r} never passed 100 confirmed cases or is not in the dataset.")
