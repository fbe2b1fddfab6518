"""
Application-wide configuration constants and helper utilities.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, List, Optional

import streamlit as st
from dotenv import load_dotenv

# Ensure .env loaded for local dev (non-override)
load_dotenv()


@dataclass(frozen=True)
class TabConfig:
    key: str
    label: str


# Ordered tab definitions for the dashboard
TABS: List[TabConfig] = [
    TabConfig("summary", "Summary"),
    TabConfig("map_view", "Map View"),
    TabConfig("confirmed_cases", "Confirmed Cases"),
    TabConfig("fatalities", "Fatalities"),
    TabConfig("sources", "Sources"),
]

# Most populous / most asked-for counties offered in the sidebar
CANDIDATE_COUNTIES: List[str] = [
    "New York City",
    "Napa",
    "New London",
    "Baltimore",
    "Austin",
    "Houston",
]
DEFAULT_SELECTION = ("New York City", "Houston")

OTHER_LABEL = "Other"
HIGHLIGHT_COLORS = ("#003399", "#FF2B4F")
OTHER_COLOR = "darkgrey"

SPREAD_THRESHOLD = 100
HISTORY_THRESHOLD = 1

AXIS_BOUND_RULES = ("longest", "reference")

COUNTIES_URL = "https://github.com/nytimes/covid-19-data/raw/master/us-counties.csv"
FIPS_NAMES_URL = "https://transition.fcc.gov/oet/info/maps/census/fips/fips.txt"
FIPS_NAMES_SKIP_LINES = 72
BOUNDARIES_URL = "https://raw.githubusercontent.com/plotly/datasets/master/geojson-counties-fips.json"

VIDEO_GAMES_URL = (
    "https://raw.githubusercontent.com/rfordatascience/tidytuesday/master/data/2019/2019-07-30/video_games.csv"
)
GAMES_URL = "https://raw.githubusercontent.com/rfordatascience/tidytuesday/master/data/2021/2021-03-16/games.csv"


def get_setting(name: str, default: Optional[str] = None) -> Optional[str]:
    """Try env first, then st.secrets (if available)."""
    val = os.getenv(name)
    if val:
        return val
    try:
        sec = getattr(st, "secrets", None)
        if sec:
            v = sec.get(name)  # type: ignore[index]
            return str(v) if v is not None else default
    except Exception:
        # st.secrets raises when no secrets.toml exists outside a configured project
        pass
    return default


def _float_setting(name: str, default: float) -> float:
    raw = get_setting(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Setting {name} must be numeric, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    counties_url: str = COUNTIES_URL
    fips_names_url: str = FIPS_NAMES_URL
    boundaries_url: str = BOUNDARIES_URL
    video_games_url: str = VIDEO_GAMES_URL
    games_url: str = GAMES_URL
    cache_ttl_seconds: float = 3600.0
    retry_attempts: int = 3
    retry_delay: float = 1.0
    retry_backoff: float = 2.0
    retry_max_delay: float = 30.0
    request_timeout: float = 60.0
    log_level: str = "INFO"
    axis_bound_rule: str = "longest"
    axis_reference_region: str = "New York City"
    report_path: str = "reports/model_comparison.html"
    random_seed: int = 123

    def __post_init__(self) -> None:
        if self.axis_bound_rule not in AXIS_BOUND_RULES:
            raise ValueError(
                f"axis_bound_rule must be one of {AXIS_BOUND_RULES}, got {self.axis_bound_rule!r}"
            )
        if self.retry_attempts < 0:
            raise ValueError("retry_attempts must be >= 0")

    def source_urls(self) -> Dict[str, str]:
        return {
            "County time series": self.counties_url,
            "FIPS code listing": self.fips_names_url,
            "County boundaries": self.boundaries_url,
        }


def load_settings() -> Settings:
    """Resolve settings from env / st.secrets with the dataclass defaults as fallback."""
    defaults = Settings()
    return Settings(
        counties_url=get_setting("DASHLAB_COUNTIES_URL", defaults.counties_url),
        fips_names_url=get_setting("DASHLAB_FIPS_NAMES_URL", defaults.fips_names_url),
        boundaries_url=get_setting("DASHLAB_BOUNDARIES_URL", defaults.boundaries_url),
        video_games_url=get_setting("DASHLAB_VIDEO_GAMES_URL", defaults.video_games_url),
        games_url=get_setting("DASHLAB_GAMES_URL", defaults.games_url),
        cache_ttl_seconds=_float_setting("DASHLAB_CACHE_TTL_SECONDS", defaults.cache_ttl_seconds),
        retry_attempts=int(_float_setting("DASHLAB_RETRY_ATTEMPTS", defaults.retry_attempts)),
        retry_delay=_float_setting("DASHLAB_RETRY_DELAY", defaults.retry_delay),
        retry_backoff=_float_setting("DASHLAB_RETRY_BACKOFF", defaults.retry_backoff),
        retry_max_delay=_float_setting("DASHLAB_RETRY_MAX_DELAY", defaults.retry_max_delay),
        request_timeout=_float_setting("DASHLAB_REQUEST_TIMEOUT", defaults.request_timeout),
        log_level=(get_setting("DASHLAB_LOG_LEVEL", defaults.log_level) or defaults.log_level).upper(),
        axis_bound_rule=get_setting("DASHLAB_AXIS_BOUND_RULE", defaults.axis_bound_rule) or defaults.axis_bound_rule,
        axis_reference_region=get_setting("DASHLAB_AXIS_REFERENCE_REGION", defaults.axis_reference_region)
        or defaults.axis_reference_region,
        report_path=get_setting("DASHLAB_REPORT_PATH", defaults.report_path) or defaults.report_path,
        random_seed=int(_float_setting("DASHLAB_RANDOM_SEED", defaults.random_seed)),
    )
