import json
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
import pytest

from dashlab.config import Settings
from dashlab.data.loader import parse_boundaries, parse_observations, parse_region_names
from dashlab.data.sources import SourceCache

# (county, state, fips, cases, deaths)
Series = Tuple[str, str, Optional[str], Sequence[int], Sequence[int]]

DEFAULT_SERIES: List[Series] = [
    ("X", "Somestate", "01001", [1, 5, 150, 300], [0, 0, 1, 2]),
    ("New York City", "New York", None, [120, 240, 480, 960], [0, 2, 4, 8]),
    ("Houston", "Texas", "48225", [50, 101, 202, 303], [0, 0, 0, 3]),
    ("Baltimore", "Maryland", "24005", [200, 220, 242, 266], [1, 1, 2, 2]),
    ("Orphan", "Nowhere", "99999", [500, 600, 700, 800], [5, 6, 7, 8]),
]


def observations_csv(series: Iterable[Series] = DEFAULT_SERIES, start: str = "2020-03-01") -> str:
    first_day = pd.Timestamp(start)
    lines = ["date,county,state,fips,cases,deaths"]
    for county, state, fips, cases, deaths in series:
        for offset, (case_count, death_count) in enumerate(zip(cases, deaths)):
            day = (first_day + pd.Timedelta(days=offset)).strftime("%Y-%m-%d")
            lines.append(f"{day},{county},{state},{fips or ''},{case_count},{death_count}")
    return "\n".join(lines) + "\n"


def fips_listing(entries: Iterable[Tuple[str, str]], header_lines: int = 72) -> str:
    header = [f"header line {i}" for i in range(header_lines)]
    body = [f"      {code}        {name}" for code, name in entries]
    return "\n".join(header + body) + "\n"


DEFAULT_NAMES = [
    ("01000", "Somestate"),
    ("01001", "X County"),
    ("48225", "Houston County"),
    ("24005", "Baltimore County"),
    ("02261", "Valdez-Cordova Census Area"),
]


def square(x: float, y: float, size: float = 1.0) -> List[List[float]]:
    return [[x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y]]


def boundaries_geojson(fips_codes: Iterable[str] = ("01001", "48225", "24005", "02261")) -> str:
    features = []
    for index, code in enumerate(fips_codes):
        if index == 0:
            geometry = {
                "type": "MultiPolygon",
                "coordinates": [[square(-90, 30)], [square(-88, 30, 0.5)]],
            }
        else:
            geometry = {"type": "Polygon", "coordinates": [square(-100 + index, 35)]}
        features.append({"type": "Feature", "id": code, "properties": {}, "geometry": geometry})
    return json.dumps({"type": "FeatureCollection", "features": features})


@pytest.fixture
def observations() -> pd.DataFrame:
    return parse_observations(observations_csv())


@pytest.fixture
def names() -> pd.DataFrame:
    return parse_region_names(fips_listing(DEFAULT_NAMES))


@pytest.fixture
def boundaries() -> pd.DataFrame:
    return parse_boundaries(boundaries_geojson())


class FakeClock:
    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingFetcher:
    """Serves canned payloads by URL; a payload may be an exception to raise."""

    def __init__(self, payloads: Dict[str, object]):
        self.payloads = dict(payloads)
        self.calls: List[str] = []

    def __call__(self, url: str) -> str:
        self.calls.append(url)
        payload = self.payloads[url]
        if isinstance(payload, BaseException):
            raise payload
        return payload


@pytest.fixture
def settings() -> Settings:
    return Settings(cache_ttl_seconds=600, retry_attempts=0)


@pytest.fixture
def source_payloads(settings) -> Dict[str, object]:
    return {
        settings.counties_url: observations_csv(),
        settings.fips_names_url: fips_listing(DEFAULT_NAMES),
        settings.boundaries_url: boundaries_geojson(),
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetcher(source_payloads) -> RecordingFetcher:
    return RecordingFetcher(source_payloads)


@pytest.fixture
def cache(fetcher, clock, settings) -> SourceCache:
    return SourceCache(ttl_seconds=settings.cache_ttl_seconds, fetcher=fetcher, clock=clock)
