from __future__ import annotations

import streamlit as st

from dashlab.ui.components.charts import daily_counts_chart, render_plotly
from dashlab.ui.components.formatting import format_number
from dashlab.ui.components.tables import render_table
from dashlab.ui.pages.context import PageContext
from dashlab.ui.pages.helpers import primary_region, region_caption

RECENT_DAYS = 14


def render(context: PageContext) -> None:
    st.subheader("Summary")
    views = context.views
    county = views.selection.first
    history = views.history

    region_id = primary_region(history, county)
    if region_id is None:
        st.info(f"No data for selection: {county!r} has no confirmed cases in the dataset.")
        return

    region = history[history["region_id"] == region_id]
    latest = region.sort_values("date").iloc[-1]

    col_cases, col_deaths, col_date = st.columns(3)
    col_cases.metric("Total confirmed cases", format_number(latest["cases"]), format_number(latest["new_cases"]))
    col_deaths.metric("Total deaths", format_number(latest["deaths"]), format_number(latest["new_deaths"]))
    col_date.metric("Latest report", f"{latest['date']:%B %d, %Y}")

    render_plotly(daily_counts_chart(region, county))

    recent = region.sort_values("date", ascending=False).head(RECENT_DAYS)
    with st.expander(f"Last {RECENT_DAYS} reported days"):
        render_table(
            recent[["date", "cases", "new_cases", "cases_growth", "deaths", "new_deaths"]].assign(
                date=recent["date"].dt.strftime("%Y-%m-%d")
            ),
            column_config={
                "cases": {"type": "number"},
                "new_cases": {"type": "number"},
                "cases_growth": {"type": "percent", "decimals": 1},
                "deaths": {"type": "number"},
                "new_deaths": {"type": "number"},
            },
            height=420,
            export_file_name=f"{county.lower().replace(' ', '_')}_daily.csv",
        )
    caption = region_caption(history, county, region_id)
    if caption:
        st.caption(caption)
    st.caption("Bars show daily new counts since the first confirmed case; the line is a 7-day moving average.")
