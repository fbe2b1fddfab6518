"""Tests for the plotly figure builders."""

import pytest

from dashlab.config import OTHER_COLOR, OTHER_LABEL
from dashlab.data.enrichment import build_color_map, derive_series, label_regions, latest_snapshot
from dashlab.ui.components.charts import (
    COUNT_TICKS,
    comparison_line_chart,
    county_map_chart,
    daily_counts_chart,
    growth_line_chart,
)

SELECTION = ("New York City", "Houston")


@pytest.fixture
def spread(observations):
    return label_regions(derive_series(observations, 100), SELECTION)


@pytest.fixture
def color_map():
    return build_color_map(SELECTION)


class TestComparisonLineChart:
    def test_count_axis_is_logarithmic(self, spread, color_map):
        fig = comparison_line_chart(spread, "cases", color_map, max_x=7, yaxis_title="Confirmed Cases")
        assert fig.layout.yaxis.type == "log"
        assert list(fig.layout.yaxis.tickvals) == COUNT_TICKS
        assert list(fig.layout.xaxis.range) == [0, 7]
        assert fig.layout.xaxis.title.text == "Days since 100th Recorded Case"

    def test_growth_axis_is_fixed(self, spread, color_map):
        fig = growth_line_chart(spread, "cases_growth", color_map, max_x=5, yaxis_title="Growth")
        assert list(fig.layout.yaxis.range) == [0.0, 1.25]
        assert fig.layout.yaxis.tickformat == ".0%"
        assert list(fig.layout.xaxis.range) == [0, 5]

    def test_traces_follow_color_map(self, spread, color_map):
        fig = comparison_line_chart(spread, "cases", color_map, max_x=7, yaxis_title="Cases")
        lines = [trace for trace in fig.data if trace.mode == "lines"]
        assert [trace.name for trace in lines] == [OTHER_LABEL, "New York City", "Houston"]
        assert lines[0].line.color == OTHER_COLOR
        assert lines[1].line.color == color_map["New York City"]
        assert lines[2].line.color == color_map["Houston"]

    def test_other_regions_are_separated_by_gaps(self, spread, color_map):
        fig = comparison_line_chart(spread, "cases", color_map, max_x=7, yaxis_title="Cases")
        other = fig.data[0]
        # X, Baltimore and Orphan: one gap after each region
        assert list(other.x).count(None) == 3

    def test_latest_point_is_marked_for_highlights(self, spread, color_map):
        fig = comparison_line_chart(spread, "cases", color_map, max_x=7, yaxis_title="Cases")
        markers = [trace for trace in fig.data if trace.mode == "markers"]
        assert {trace.name for trace in markers} == {"New York City", "Houston"}
        assert all(trace.showlegend is False for trace in markers)

    def test_missing_highlight_is_skipped(self, observations):
        selection = ("Napa", "Houston")
        spread = label_regions(derive_series(observations, 100), selection)
        fig = comparison_line_chart(spread, "cases", build_color_map(selection), max_x=7, yaxis_title="Cases")
        assert "Napa" not in {trace.name for trace in fig.data}

    def test_unknown_axis(self, spread, color_map):
        with pytest.raises(ValueError):
            comparison_line_chart(spread, "cases", color_map, max_x=7, yaxis_title="Cases", axis="linear")


def test_daily_counts_chart(observations):
    history = derive_series(observations, 1)
    houston = history[history["county"] == "Houston"]
    fig = daily_counts_chart(houston, "Houston")
    assert len(fig.data) == 4
    assert [trace.type for trace in fig.data] == ["bar", "scatter", "bar", "scatter"]
    assert fig.layout.title.text == "COVID-19, Daily Counts: Houston"


class TestCountyMapChart:
    def test_static_size_and_locations(self, observations, names, boundaries):
        snapshot, _ = latest_snapshot(observations, names, boundaries)
        fig = county_map_chart(snapshot)
        assert fig.layout.width == 1200
        assert fig.layout.height == 1000
        assert sorted(fig.data[0].locations) == ["01001", "02261", "24005", "48225"]
        assert fig.layout.geo.scope == "usa"
        assert fig.layout.title.text.endswith("2020-03-04")

    def test_geojson_rebuilt_from_vertices(self, observations, names, boundaries):
        snapshot, _ = latest_snapshot(observations, names, boundaries)
        geojson = county_map_chart(snapshot).data[0].geojson
        features = {feature["id"]: feature for feature in geojson["features"]}
        assert len(features) == 4
        assert len(features["01001"]["geometry"]["coordinates"]) == 2
        assert len(features["48225"]["geometry"]["coordinates"][0][0]) == 5

    def test_zero_counts_map_to_bottom_of_scale(self, observations, names, boundaries):
        snapshot, _ = latest_snapshot(observations, names, boundaries)
        trace = county_map_chart(snapshot).data[0]
        by_code = dict(zip(trace.locations, trace.z))
        assert by_code["02261"] == 0
        assert by_code["01001"] == pytest.approx(2.4771, abs=1e-3)
