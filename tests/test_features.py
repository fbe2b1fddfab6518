"""Tests for the metascore feature table."""

import numpy as np
import pandas as pd
import pytest

from dashlab.config import Settings
from dashlab.data.errors import ParseFailure
from dashlab.data.sources import SourceCache
from dashlab.modeling.features import (
    build_feature_table,
    load_feature_table,
    split_features,
    summarise_players,
)

from conftest import FakeClock, RecordingFetcher


@pytest.fixture
def games():
    return pd.DataFrame(
        {
            "gamename": ["A", "A", "B", "C", "D", "E"],
            "avg": [10.0, 30.0, 5.0, 7.0, 9.0, 11.0],
            "peak": [50, 80, 9, 12, 20, 30],
        }
    )


@pytest.fixture
def video_games():
    return pd.DataFrame(
        {
            "game": ["A", "B", "C", "D", "E"],
            "release_date": ["Jul 2, 2015", "Jan 10, 2018", "Mar 3, 2012", "not a date", "Nov 1, 2016"],
            "price": [10.0, np.nan, 30.0, 99.0, np.nan],
            "developer": ["Studio", "Studio", "Other", "Other", None],
            "average_playtime": [100, 20, 30, 10, 5],
            "median_playtime": [90, 15, 25, 10, np.nan],
            "metascore": [80, 60, 70, 90, 50],
        }
    )


def test_summarise_players(games):
    summary = summarise_players(games).set_index("game")
    assert summary.loc["A", "avg"] == pytest.approx(20.0)
    assert summary.loc["A", "peak"] == 80


class TestBuildFeatureTable:
    def test_keeps_only_eligible_rows(self, games, video_games):
        table = build_feature_table(games, video_games)
        # D has no parseable release date and E no median playtime
        assert sorted(table["game"]) == ["A", "B", "C"]

    def test_price_imputed_with_mean_of_eligible_rows(self, games, video_games):
        table = build_feature_table(games, video_games).set_index("game")
        assert table.loc["B", "price"] == pytest.approx(20.0)
        assert table["price"].notna().all()

    def test_developer_aggregates_use_all_scored_titles(self, games, video_games):
        table = build_feature_table(games, video_games).set_index("game")
        assert table.loc["A", "dev_size"] == 2
        assert table.loc["A", "dev_avg"] == pytest.approx(70.0)
        # D is ineligible but still counts toward its developer's record
        assert table.loc["C", "dev_size"] == 2
        assert table.loc["C", "dev_avg"] == pytest.approx(80.0)

    def test_titles_without_metascore_are_dropped(self, games, video_games):
        video_games.loc[video_games["game"] == "A", "metascore"] = np.nan
        table = build_feature_table(games, video_games)
        assert "A" not in set(table["game"])
        assert table.set_index("game").loc["B", "dev_size"] == 1

    def test_release_date_is_parsed(self, games, video_games):
        table = build_feature_table(games, video_games).set_index("game")
        assert table.loc["A", "release_date"] == pd.Timestamp("2015-07-02")


def test_split_is_deterministic_for_a_seed():
    df = pd.DataFrame({"game": [f"g{i}" for i in range(40)], "metascore": range(40)})
    train_a, test_a = split_features(df, seed=123)
    train_b, test_b = split_features(df, seed=123)
    assert len(train_a) == 30
    assert len(test_a) == 10
    assert test_a["game"].tolist() == test_b["game"].tolist()
    assert set(train_a["game"]).isdisjoint(test_a["game"])


class TestLoadFeatureTable:
    def test_reads_both_sources_through_cache(self, games, video_games):
        settings = Settings(retry_attempts=0)
        fetcher = RecordingFetcher(
            {
                settings.games_url: games.to_csv(index=False),
                settings.video_games_url: video_games.to_csv(index=False),
            }
        )
        cache = SourceCache(ttl_seconds=60, fetcher=fetcher, clock=FakeClock())
        table = load_feature_table(cache, settings)
        assert sorted(table["game"]) == ["A", "B", "C"]
        assert fetcher.calls == [settings.games_url, settings.video_games_url]

    def test_missing_column(self, games, video_games):
        settings = Settings(retry_attempts=0)
        fetcher = RecordingFetcher(
            {
                settings.games_url: games.drop(columns=["peak"]).to_csv(index=False),
                settings.video_games_url: video_games.to_csv(index=False),
            }
        )
        cache = SourceCache(ttl_seconds=60, fetcher=fetcher, clock=FakeClock())
        with pytest.raises(ParseFailure):
            load_feature_table(cache, settings)
