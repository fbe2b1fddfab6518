"""
Derivation helpers that turn raw county observations into the reshaped
views consumed by every chart.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

import numpy as np
import pandas as pd

from dashlab.config import HIGHLIGHT_COLORS, OTHER_COLOR, OTHER_LABEL
from dashlab.log import logger


def _growth(current: pd.Series, prior: pd.Series) -> pd.Series:
    prior = prior.astype("float64")
    prior = prior.where(prior != 0)
    return (current.astype("float64") - prior) / prior


def derive_series(df: pd.DataFrame, threshold: int) -> pd.DataFrame:
    """
    Keep rows whose cumulative case count exceeds ``threshold`` and add, per
    region in date order, the day index, prior-day counts, growth ratios and
    daily new counts.
    """
    columns = list(df.columns) + [
        "day_index",
        "lag_cases",
        "lag_deaths",
        "cases_growth",
        "deaths_growth",
        "new_cases",
        "new_deaths",
    ]
    if df.empty:
        return pd.DataFrame(columns=columns)

    working = df[df["cases"] > threshold].sort_values(["region_id", "date"], kind="mergesort").copy()
    grouped = working.groupby("region_id", sort=False)

    working["day_index"] = grouped.cumcount() + 1
    working["lag_cases"] = grouped["cases"].shift(1)
    working["lag_deaths"] = grouped["deaths"].shift(1)
    working["cases_growth"] = _growth(working["cases"], working["lag_cases"])
    working["deaths_growth"] = _growth(working["deaths"], working["lag_deaths"])
    working["new_cases"] = working["cases"] - working["lag_cases"]
    working["new_deaths"] = working["deaths"] - working["lag_deaths"]

    return working.reset_index(drop=True)


def _format_count(value: Any) -> str:
    if value is None or pd.isna(value):
        return "–"
    return f"{int(value):,}"


def label_regions(df: pd.DataFrame, selection: Tuple[str, str]) -> pd.DataFrame:
    """Label each row with its county name when selected, ``Other`` otherwise, and add hover text."""
    labelled = df.copy()
    highlighted = list(dict.fromkeys(selection))
    if labelled.empty:
        labelled["county_label"] = pd.Series(dtype=object)
        labelled["hover_text"] = pd.Series(dtype=object)
        return labelled

    labelled["county_label"] = np.where(labelled["county"].isin(highlighted), labelled["county"], OTHER_LABEL)
    labelled["hover_text"] = [
        f"{county}, {state}<br>Date: {date:%B %d}<br>{_format_count(cases)} confirmed cases<br>{_format_count(deaths)} deaths"
        for county, state, date, cases, deaths in zip(
            labelled["county"], labelled["state"], labelled["date"], labelled["cases"], labelled["deaths"]
        )
    ]
    return labelled


def build_color_map(selection: Tuple[str, str]) -> Dict[str, str]:
    """Color per highlighted county plus the fallback ``Other`` color."""
    color_map: Dict[str, str] = {}
    for name, color in zip(selection, HIGHLIGHT_COLORS):
        color_map.setdefault(name, color)
    color_map[OTHER_LABEL] = OTHER_COLOR
    return color_map


def latest_snapshot(
    observations: pd.DataFrame,
    names: pd.DataFrame,
    boundaries: pd.DataFrame,
) -> Tuple[pd.DataFrame, List[Mapping[str, Any]]]:
    """
    Join the latest-date observation of every county to its name and boundary
    vertices.

    Returns the vertex-level snapshot and the observation records whose code
    has no entry in the name listing.
    """
    if observations.empty:
        return pd.DataFrame(), []

    latest_date = observations["date"].max()
    latest = observations[(observations["date"] == latest_date) & observations["fips"].notna()]
    latest = latest[["fips", "county", "state", "cases", "deaths"]].rename(columns={"county": "reported_county"})

    unmatched = latest[~latest["fips"].isin(names["fips"])]
    mismatches = unmatched[["fips", "reported_county", "state"]].to_dict("records")
    if mismatches:
        logger.warning("{} latest observations have no county name in the FIPS listing", len(mismatches))

    snapshot = (
        names.merge(boundaries, on="fips", how="inner")
        .merge(latest, on="fips", how="left")
    )
    snapshot["cases"] = snapshot["cases"].fillna(0)
    snapshot["deaths"] = snapshot["deaths"].fillna(0)
    snapshot["date"] = latest_date
    snapshot = snapshot.sort_values(["fips", "group", "ring", "order"]).reset_index(drop=True)
    return snapshot, mismatches


def plot_width_bound(
    spread: pd.DataFrame,
    rule: str = "longest",
    reference_region: str = "New York City",
    padding: int = 3,
) -> int:
    """
    Upper bound of the day-index axis.

    ``longest`` uses the most distinct observation dates of any region;
    ``reference`` uses the named region's count and falls back to ``longest``
    when that region is not in the data.
    """
    if spread.empty:
        return padding
    per_region = spread.groupby("region_id")["date"].nunique()
    longest = int(per_region.max())
    if rule == "longest":
        return longest + padding
    if rule != "reference":
        raise ValueError(f"Unknown axis bound rule: {rule!r}")

    reference_dates = spread.loc[spread["county"] == reference_region, "date"].nunique()
    if reference_dates == 0:
        logger.warning("Reference region {!r} absent from data; using longest-running region", reference_region)
        return longest + padding
    return int(reference_dates) + padding
