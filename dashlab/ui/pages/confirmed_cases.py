from __future__ import annotations

import streamlit as st

from dashlab.ui.components.charts import comparison_line_chart, growth_line_chart, render_plotly
from dashlab.ui.pages.context import PageContext
from dashlab.ui.pages.helpers import show_missing_selections


def render(context: PageContext) -> None:
    views = context.views
    show_missing_selections(views)

    st.markdown("### Total Number of Cases:")
    render_plotly(
        comparison_line_chart(
            views.spread,
            y="cases",
            color_map=views.color_map,
            max_x=views.max_x,
            yaxis_title="# Confirmed Cases",
        )
    )

    st.markdown("### Growth in Cases:")
    render_plotly(
        growth_line_chart(
            views.spread,
            y="cases_growth",
            color_map=views.color_map,
            max_x=views.max_x,
            yaxis_title="Growth in Total Confirmed Cases",
        )
    )
    st.caption("Day-over-day growth of cumulative cases; values above 125% are clipped by the axis.")
