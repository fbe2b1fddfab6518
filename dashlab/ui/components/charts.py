"""
Plotly chart builders and renderers for the dashboard.

Builders are pure functions of the derived views and return figures; the
render helpers are the only place that hands a figure to Streamlit.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np
import pandas as pd
import plotly.graph_objects as go
import streamlit as st
from plotly.subplots import make_subplots

from dashlab.config import OTHER_COLOR, OTHER_LABEL


DEFAULT_TEMPLATE = "plotly_white"
COUNT_TICKS = [1, 100, 1000, 10000, 100000]
GROWTH_RANGE = (0.0, 1.25)
GROWTH_TICKS = [0.0, 0.25, 0.5, 0.75, 1.0, 1.25]
DAY_TICK_STEP = 7
SMOOTHING_COLOR = "#FF2B4F"
DAILY_BAR_COLORS = {"New Cases": "#003399", "New Deaths": "#8c564b"}
MAP_COLOR_SCALE = [[0.0, "white"], [1.0, "#f2161d"]]
MAP_LEGEND_TICKS = [1, 20, 400, 8000, 160000]


def _configure_layout(
    fig: go.Figure,
    title: Optional[str] = None,
    xaxis_title: Optional[str] = None,
    yaxis_title: Optional[str] = None,
    legend_title: Optional[str] = None,
) -> go.Figure:
    fig.update_layout(
        template=DEFAULT_TEMPLATE,
        title=title,
        legend_title=legend_title,
        hovermode="closest",
        margin=dict(l=40, r=20, t=60, b=40),
    )
    if xaxis_title:
        fig.update_xaxes(title=xaxis_title)
    if yaxis_title:
        fig.update_yaxes(title=yaxis_title)
    fig.update_xaxes(showgrid=False)
    fig.update_yaxes(showgrid=True, zeroline=True)
    return fig


def render_plotly(fig: go.Figure) -> None:
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def render_static(fig: go.Figure) -> None:
    """Render a non-interactive figure at the pixel size set on its layout."""
    st.plotly_chart(fig, use_container_width=False, config={"staticPlot": True})


def _segments(df: pd.DataFrame, x: str, y: str) -> Dict[str, List]:
    """Concatenate per-region series into one trace, separated by gaps."""
    xs: List = []
    ys: List = []
    texts: List = []
    for _, region in df.groupby("region_id", sort=False):
        region = region.sort_values(x)
        xs.extend(region[x].tolist() + [None])
        ys.extend(region[y].tolist() + [None])
        texts.extend(region["hover_text"].tolist() + [None])
    return {"x": xs, "y": ys, "hovertext": texts}


def comparison_line_chart(
    spread: pd.DataFrame,
    y: str,
    color_map: Dict[str, str],
    max_x: int,
    yaxis_title: str,
    title: Optional[str] = None,
    axis: str = "count",
) -> go.Figure:
    """
    One line per county over days since the spread threshold was crossed.

    ``axis`` is ``count`` for a logarithmic count axis or ``growth`` for a
    fixed 0-125% growth axis.
    """
    fig = go.Figure()
    others = spread[spread["county_label"] == OTHER_LABEL]
    if not others.empty:
        fig.add_trace(
            go.Scattergl(
                mode="lines",
                name=OTHER_LABEL,
                line=dict(color=color_map.get(OTHER_LABEL, OTHER_COLOR), width=1),
                opacity=0.25,
                hoverinfo="text",
                connectgaps=False,
                **_segments(others, "day_index", y),
            )
        )

    latest_date = spread["date"].max() if not spread.empty else None
    for label, color in color_map.items():
        if label == OTHER_LABEL:
            continue
        selected = spread[spread["county_label"] == label]
        if selected.empty:
            continue
        fig.add_trace(
            go.Scatter(
                mode="lines",
                name=label,
                line=dict(color=color, width=2.5),
                hoverinfo="text",
                connectgaps=False,
                **_segments(selected, "day_index", y),
            )
        )
        latest = selected[selected["date"] == latest_date]
        if not latest.empty:
            fig.add_trace(
                go.Scatter(
                    x=latest["day_index"],
                    y=latest[y],
                    mode="markers",
                    marker=dict(color=color, size=8),
                    hovertext=latest["hover_text"],
                    hoverinfo="text",
                    showlegend=False,
                    name=label,
                )
            )

    fig = _configure_layout(
        fig,
        title=title,
        xaxis_title="Days since 100th Recorded Case",
        yaxis_title=yaxis_title,
        legend_title="County",
    )
    fig.update_xaxes(range=[0, max_x], tick0=0, dtick=DAY_TICK_STEP)
    if axis == "count":
        fig.update_yaxes(type="log", tickvals=COUNT_TICKS, ticktext=[str(v) for v in COUNT_TICKS])
    elif axis == "growth":
        fig.update_yaxes(range=list(GROWTH_RANGE), tickvals=GROWTH_TICKS, tickformat=".0%")
    else:
        raise ValueError(f"Unknown axis kind: {axis!r}")
    return fig


def growth_line_chart(
    spread: pd.DataFrame,
    y: str,
    color_map: Dict[str, str],
    max_x: int,
    yaxis_title: str,
    title: Optional[str] = None,
) -> go.Figure:
    return comparison_line_chart(spread, y, color_map, max_x, yaxis_title, title=title, axis="growth")


def daily_counts_chart(region_history: pd.DataFrame, county: str, window: int = 7) -> go.Figure:
    """Daily new cases and deaths as bars with a moving-average trend line."""
    metrics = [("New Cases", "new_cases"), ("New Deaths", "new_deaths")]
    fig = make_subplots(
        rows=2,
        cols=1,
        shared_xaxes=True,
        vertical_spacing=0.08,
        subplot_titles=[label for label, _ in metrics],
    )
    working = region_history.sort_values("date")
    hover = [
        f"{date:%B %d}<br>Total confirmed cases: {cases:,.0f}<br>New cases: {new_cases:,.0f}"
        f"<br>Total deaths: {deaths:,.0f}<br>New deaths: {new_deaths:,.0f}"
        for date, cases, new_cases, deaths, new_deaths in zip(
            working["date"],
            working["cases"],
            working["new_cases"].fillna(0),
            working["deaths"].fillna(0),
            working["new_deaths"].fillna(0),
        )
    ]
    for row, (label, column) in enumerate(metrics, start=1):
        fig.add_trace(
            go.Bar(
                x=working["date"],
                y=working[column],
                name=label,
                marker=dict(color=DAILY_BAR_COLORS[label], line=dict(color="white", width=0.5)),
                opacity=0.6,
                hovertext=hover,
                hoverinfo="text",
                showlegend=False,
            ),
            row=row,
            col=1,
        )
        trend = working[column].rolling(window=window, min_periods=1).mean()
        fig.add_trace(
            go.Scatter(
                x=working["date"],
                y=trend,
                mode="lines",
                name=f"{window}-day MA",
                line=dict(color=SMOOTHING_COLOR),
                hoverinfo="skip",
                showlegend=row == 1,
            ),
            row=row,
            col=1,
        )
    fig = _configure_layout(fig, title=f"COVID-19, Daily Counts: {county}")
    fig.update_yaxes(matches=None)
    return fig


def _feature_collection(snapshot: pd.DataFrame) -> Dict:
    features = []
    for fips, county in snapshot.groupby("fips", sort=False):
        polygons = []
        for _, piece in county.groupby("group", sort=False):
            rings = [
                list(zip(ring["long"].tolist(), ring["lat"].tolist()))
                for _, ring in piece.sort_values(["ring", "order"]).groupby("ring", sort=True)
            ]
            polygons.append(rings)
        features.append(
            {
                "type": "Feature",
                "id": fips,
                "geometry": {"type": "MultiPolygon", "coordinates": polygons},
            }
        )
    return {"type": "FeatureCollection", "features": features}


def county_map_chart(snapshot: pd.DataFrame, width: int = 1200, height: int = 1000) -> go.Figure:
    """Choropleth of total confirmed cases on a log color scale."""
    regions = snapshot.drop_duplicates("fips")
    z = np.log10(regions["cases"].clip(lower=1).astype("float64"))
    states = regions["state"].fillna("") if "state" in regions else pd.Series("", index=regions.index)
    hover = [
        f"{county}, {state}<br>Confirmed cases: {cases:,.0f}" if state else f"{county}<br>Confirmed cases: {cases:,.0f}"
        for county, state, cases in zip(regions["county"], states, regions["cases"])
    ]
    fig = go.Figure(
        go.Choropleth(
            geojson=_feature_collection(snapshot),
            locations=regions["fips"],
            z=z,
            featureidkey="id",
            colorscale=MAP_COLOR_SCALE,
            zmin=0,
            zmax=max(float(z.max()) if len(z) else 0.0, np.log10(MAP_LEGEND_TICKS[-1])),
            marker_line_width=0,
            hovertext=hover,
            hoverinfo="text",
            colorbar=dict(
                title="Total Confirmed Cases",
                orientation="h",
                tickvals=[np.log10(v) for v in MAP_LEGEND_TICKS],
                ticktext=[f"{v:,}" for v in MAP_LEGEND_TICKS],
            ),
        )
    )
    latest = snapshot["date"].max() if "date" in snapshot and not snapshot.empty else None
    title = "COVID-19 Spread: Confirmed Cases"
    if latest is not None and pd.notna(latest):
        title = f"{title}, {latest:%Y-%m-%d}"
    fig.update_layout(
        title=title,
        template=DEFAULT_TEMPLATE,
        width=width,
        height=height,
        margin=dict(l=0, r=0, t=60, b=0),
        geo=dict(scope="usa", showlakes=False, showframe=False),
    )
    return fig
