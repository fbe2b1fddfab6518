"""
Feature table for predicting a game's critic score (metascore) from player
counts, release date, price, playtime and developer track record.
"""

from __future__ import annotations

import io
from typing import List, Tuple

import pandas as pd
from sklearn.model_selection import train_test_split

from dashlab.config import Settings
from dashlab.data.errors import ParseFailure
from dashlab.data.sources import SourceCache
from dashlab.log import logger

TARGET = "metascore"
RELEASE_DATE_FORMAT = "%b %d, %Y"

GAMES_COLUMNS: List[str] = ["gamename", "avg", "peak"]
VIDEO_GAMES_COLUMNS: List[str] = [
    "game",
    "release_date",
    "price",
    "developer",
    "average_playtime",
    "median_playtime",
    "metascore",
]


def _read_csv(text: str, source: str, required: List[str]) -> pd.DataFrame:
    try:
        df = pd.read_csv(io.StringIO(text))
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise ParseFailure(source, f"unreadable CSV: {exc}") from exc
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ParseFailure(source, f"missing columns {missing}", record=list(df.columns))
    return df


def summarise_players(games: pd.DataFrame) -> pd.DataFrame:
    """Mean and peak concurrent players per title across all monthly rows."""
    return (
        games.groupby("gamename")
        .agg(avg=("avg", "mean"), peak=("peak", "max"))
        .reset_index()
        .rename(columns={"gamename": "game"})
    )


def build_feature_table(games: pd.DataFrame, video_games: pd.DataFrame) -> pd.DataFrame:
    """
    Join player statistics to the game catalogue and add developer aggregates.

    Only rows with a metascore, a release date and a median playtime are kept
    (training-eligible rows); missing prices are replaced by the mean price
    of those rows.
    """
    combined = summarise_players(games).merge(video_games, on="game", how="left")
    combined["release_date"] = pd.to_datetime(
        combined["release_date"], format=RELEASE_DATE_FORMAT, errors="coerce"
    )
    for col in ("price", "average_playtime", "median_playtime", TARGET):
        combined[col] = pd.to_numeric(combined[col], errors="coerce")
    combined = combined[combined[TARGET].notna()]

    developers = (
        combined.groupby("developer", dropna=False)
        .agg(dev_size=("game", "size"), dev_avg=(TARGET, "mean"))
        .reset_index()
    )
    combined = combined.merge(developers, on="developer", how="left")

    eligible = combined[combined["release_date"].notna() & combined["median_playtime"].notna()].copy()
    price_mean = eligible["price"].mean()
    imputed = int(eligible["price"].isna().sum())
    eligible["price"] = eligible["price"].fillna(price_mean)

    logger.info(
        "Feature table: {} titles ({} dropped as ineligible, {} prices imputed with mean {:.2f})",
        len(eligible),
        len(combined) - len(eligible),
        imputed,
        price_mean if pd.notna(price_mean) else float("nan"),
    )
    return eligible.reset_index(drop=True)


def load_feature_table(cache: SourceCache, settings: Settings) -> pd.DataFrame:
    games = _read_csv(cache.get(settings.games_url), "player counts", GAMES_COLUMNS)
    video_games = _read_csv(cache.get(settings.video_games_url), "video game catalogue", VIDEO_GAMES_COLUMNS)
    return build_feature_table(games, video_games)


def split_features(
    df: pd.DataFrame,
    test_size: float = 0.25,
    seed: int = 123,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Deterministic train/test split for a given seed."""
    train, test = train_test_split(df, test_size=test_size, random_state=seed)
    logger.info("Split {} rows into {} train / {} test (seed={})", len(df), len(train), len(test), seed)
    return train, test
