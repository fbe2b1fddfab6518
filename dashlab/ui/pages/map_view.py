from __future__ import annotations

import pandas as pd
import streamlit as st

from dashlab.ui.components.charts import county_map_chart, render_static
from dashlab.ui.components.tables import render_table
from dashlab.ui.pages.context import PageContext

MAP_WIDTH = 1200
MAP_HEIGHT = 1000


def render(context: PageContext) -> None:
    st.subheader("Map View")
    views = context.views
    if views.snapshot.empty:
        st.info("No county boundaries matched the latest observations.")
        return

    render_static(county_map_chart(views.snapshot, width=MAP_WIDTH, height=MAP_HEIGHT))

    if views.join_mismatch is not None:
        with st.expander(f"{len(views.join_mismatch.records)} reported counties could not be placed on the map"):
            render_table(pd.DataFrame(views.join_mismatch.records), export_file_name="unmatched_counties.csv")
