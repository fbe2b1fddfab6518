"""
Reusable helpers for rendering data tables with consistent configuration.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import pandas as pd
import streamlit as st

from dashlab.ui.components.formatting import format_number, format_percent


def render_table(
    df: pd.DataFrame,
    column_config: Optional[Dict[str, Dict[str, Any]]] = None,
    height: int = 300,
    export_file_name: Optional[str] = None,
    empty_message: str = "No rows to display.",
) -> None:
    if df.empty:
        st.info(empty_message)
        return

    formatted_df = df.copy()
    if column_config:
        for column, config in column_config.items():
            if column not in formatted_df.columns:
                continue
            fmt_type = config.get("type")
            decimals = int(config.get("decimals", 0))
            if fmt_type == "percent":
                formatted_df[column] = formatted_df[column].apply(
                    lambda v: format_percent(v, decimals=decimals)
                )
            elif fmt_type == "number":
                formatted_df[column] = formatted_df[column].apply(
                    lambda v: format_number(v, decimals=decimals)
                )

    st.dataframe(
        formatted_df,
        use_container_width=True,
        height=height,
        hide_index=True,
    )

    if export_file_name:
        csv_bytes = df.to_csv(index=False).encode("utf-8")
        st.download_button(
            "Download CSV",
            data=csv_bytes,
            file_name=export_file_name,
            mime="text/csv",
        )
