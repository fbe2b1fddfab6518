import streamlit as st

from dashlab.config import TABS, load_settings
from dashlab.data.pipeline import DashboardPipeline, describe_failure
from dashlab.data.sources import get_source_cache
from dashlab.log import configure_logging
from dashlab.ui.layout import setup_page, sidebar_notes, sidebar_selection_ui
from dashlab.ui.pages import (
    summary,
    map_view,
    confirmed_cases,
    fatalities,
    sources,
)
from dashlab.ui.pages.context import PageContext


PAGE_RENDERERS = {
    "summary": summary.render,
    "map_view": map_view.render,
    "confirmed_cases": confirmed_cases.render,
    "fatalities": fatalities.render,
    "sources": sources.render,
}


def _session_pipeline(settings) -> DashboardPipeline:
    pipeline = st.session_state.get("dl_pipeline")
    if pipeline is None:
        pipeline = DashboardPipeline(get_source_cache(), settings)
        st.session_state["dl_pipeline"] = pipeline
    return pipeline


def main() -> None:
    setup_page()
    settings = load_settings()
    configure_logging(settings.log_level)

    pipeline = _session_pipeline(settings)
    selection = sidebar_selection_ui()

    if st.sidebar.button("🔄 Refresh Data"):
        pipeline.refresh()
    sidebar_notes()

    with st.spinner("Preparing county data…"):
        result = pipeline.run(selection)

    if result.stale:
        # A newer selection superseded this run; Streamlit reruns with it
        st.stop()

    if not result.ok:
        failure = describe_failure(result.error)
        st.error(f"**{failure['title']}**\n\n{failure['detail']}")
        return

    cache = get_source_cache()
    if cache.stale_urls:
        st.warning("Some sources could not be refreshed; showing the last downloaded copy.")

    context = PageContext(views=result.views, settings=settings, cache=cache)

    tab_labels = [tab.label for tab in TABS]
    streamlit_tabs = st.tabs(tab_labels)

    for streamlit_tab, tab_config in zip(streamlit_tabs, TABS):
        renderer = PAGE_RENDERERS.get(tab_config.key)
        if renderer is None:
            continue
        with streamlit_tab:
            renderer(context)


if __name__ == "__main__":
    main()
