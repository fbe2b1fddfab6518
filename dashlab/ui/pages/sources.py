from __future__ import annotations

import pandas as pd
import streamlit as st

from dashlab.ui.components.formatting import format_age, format_timestamp
from dashlab.ui.components.tables import render_table
from dashlab.ui.pages.context import PageContext


def _source_table(context: PageContext) -> pd.DataFrame:
    cache = context.cache
    records = []
    for label, url in context.settings.source_urls().items():
        fetched_at = cache.fetched_at(url)
        if url in cache.stale_urls:
            status = "Stale (last refresh failed)"
        elif cache.is_fresh(url):
            status = "Fresh"
        else:
            status = "Expired"
        records.append(
            {
                "Source": label,
                "URL": url,
                "Fetched": format_timestamp(fetched_at),
                "Age": format_age(fetched_at),
                "Status": status,
            }
        )
    return pd.DataFrame(records)


def render(context: PageContext) -> None:
    st.subheader("Sources")
    st.markdown(
        "County case and death counts come from the New York Times "
        "[COVID-19 data repository](https://github.com/nytimes/covid-19-data). "
        "County names come from the FCC FIPS code listing and boundaries from "
        "the plotly county GeoJSON."
    )
    render_table(_source_table(context), height=160)
    ttl_minutes = int(context.settings.cache_ttl_seconds // 60)
    st.caption(
        f"Sources are downloaded at most once every {ttl_minutes} minutes. "
        "Use Refresh Data in the sidebar to download them again now."
    )
