from __future__ import annotations

import streamlit as st

from dashlab.ui.components.charts import comparison_line_chart, growth_line_chart, render_plotly
from dashlab.ui.pages.context import PageContext
from dashlab.ui.pages.helpers import show_missing_selections


def render(context: PageContext) -> None:
    views = context.views
    show_missing_selections(views)

    st.markdown("### Total Number of Deaths:")
    render_plotly(
        comparison_line_chart(
            views.spread,
            y="deaths",
            color_map=views.color_map,
            max_x=views.max_x,
            yaxis_title="# Deaths",
        )
    )

    st.markdown("### Growth in Deaths:")
    render_plotly(
        growth_line_chart(
            views.spread,
            y="deaths_growth",
            color_map=views.color_map,
            max_x=views.max_x,
            yaxis_title="Growth in Total Deaths",
        )
    )
    st.caption("Growth is undefined while a county has no recorded deaths, so those days are left blank.")
