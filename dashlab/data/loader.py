"""
Parsers for the county time series, the fixed-width FIPS listing and the
county boundary polygons, plus cache-backed loaders for each.
"""

from __future__ import annotations

import io
import json
import re
from typing import Any, Dict, List

import pandas as pd

from dashlab.config import FIPS_NAMES_SKIP_LINES, Settings
from dashlab.data.errors import ParseFailure
from dashlab.data.sources import SourceCache
from dashlab.log import logger

OBSERVATION_COLUMNS: List[str] = ["date", "county", "state", "fips", "cases", "deaths"]

FIPS_LINE = re.compile(r"^\s*(\d{5})\s+(\S.*?)\s*$")
NAME_DESIGNATORS = re.compile(r"\b(?:County|Parish|Borough|Census Area|Census|Area)\b")


def _first_bad_record(df: pd.DataFrame, mask: pd.Series) -> Dict[str, Any]:
    return df.loc[mask[mask].index[0]].to_dict()


def _normalize_fips(series: pd.Series) -> pd.Series:
    cleaned = series.astype("string").str.strip().replace("", pd.NA).str.zfill(5)
    return cleaned.astype(object).where(cleaned.notna(), None)


def parse_observations(text: str) -> pd.DataFrame:
    """Parse the county/date/cases/deaths CSV into a typed observation frame."""
    try:
        raw = pd.read_csv(io.StringIO(text), dtype={"fips": str, "county": str, "state": str})
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise ParseFailure("county time series", f"unreadable CSV: {exc}") from exc

    missing = [col for col in OBSERVATION_COLUMNS if col not in raw.columns]
    if missing:
        raise ParseFailure("county time series", f"missing columns {missing}", record=list(raw.columns))

    df = raw[OBSERVATION_COLUMNS].copy()

    df["date"] = pd.to_datetime(raw["date"], format="%Y-%m-%d", errors="coerce")
    bad_dates = df["date"].isna()
    if bad_dates.any():
        raise ParseFailure("county time series", "unparseable date", record=_first_bad_record(raw, bad_dates))

    df["cases"] = pd.to_numeric(raw["cases"], errors="coerce")
    bad_cases = df["cases"].isna()
    if bad_cases.any():
        raise ParseFailure("county time series", "missing or non-numeric case count", record=_first_bad_record(raw, bad_cases))

    # Deaths may be blank for some territories; only reject values that are present but unparseable
    df["deaths"] = pd.to_numeric(raw["deaths"], errors="coerce")
    bad_deaths = df["deaths"].isna() & raw["deaths"].notna()
    if bad_deaths.any():
        raise ParseFailure("county time series", "non-numeric death count", record=_first_bad_record(raw, bad_deaths))

    df["fips"] = _normalize_fips(raw["fips"])
    df["region_id"] = df["fips"].fillna(df["county"].astype(str) + "|" + df["state"].astype(str))

    logger.info(
        "Parsed {} observations across {} regions ({} to {})",
        len(df),
        df["region_id"].nunique(),
        df["date"].min().date() if not df.empty else None,
        df["date"].max().date() if not df.empty else None,
    )
    return df


def clean_region_name(name: str) -> str:
    return re.sub(r"\s+", " ", NAME_DESIGNATORS.sub("", name)).strip()


def parse_region_names(text: str, skip_lines: int = FIPS_NAMES_SKIP_LINES) -> pd.DataFrame:
    """Parse the fixed-width FIPS listing into ``fips, county`` rows.

    Lines before ``skip_lines`` are the header and the state section. Lines
    that start with a digit must split into a code and a name; anything else
    (blank lines, notes) is ignored.
    """
    records = []
    for line in text.splitlines()[skip_lines:]:
        if not line.strip() or not line.strip()[0].isdigit():
            continue
        match = FIPS_LINE.match(line)
        if match is None:
            raise ParseFailure("FIPS code listing", "line does not split into code and name", record=line)
        code, name = match.groups()
        if code.endswith("000"):
            # State-level rows
            continue
        records.append({"fips": code, "county": clean_region_name(name)})

    if not records:
        raise ParseFailure("FIPS code listing", f"no county codes found after skipping {skip_lines} lines")

    names = pd.DataFrame.from_records(records).drop_duplicates(subset="fips", keep="first")
    logger.info("Parsed {} county names from FIPS listing", len(names))
    return names


def _rings(geometry: Dict[str, Any]) -> List[List[List[List[float]]]]:
    geo_type = geometry.get("type")
    coordinates = geometry.get("coordinates")
    if geo_type == "Polygon":
        return [coordinates]
    if geo_type == "MultiPolygon":
        return list(coordinates)
    raise ParseFailure("county boundaries", f"unsupported geometry type {geo_type!r}", record=geometry.get("type"))


def parse_boundaries(text: str) -> pd.DataFrame:
    """Flatten a county GeoJSON FeatureCollection into one row per polygon vertex."""
    try:
        collection = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseFailure("county boundaries", f"invalid JSON: {exc}") from exc

    features = collection.get("features") if isinstance(collection, dict) else None
    if not features:
        raise ParseFailure("county boundaries", "no features in collection")

    fips_col: List[str] = []
    long_col: List[float] = []
    lat_col: List[float] = []
    group_col: List[str] = []
    ring_col: List[int] = []
    order_col: List[int] = []

    for feature in features:
        fips = feature.get("id") or (feature.get("properties") or {}).get("GEO_ID", "")[-5:]
        geometry = feature.get("geometry")
        if not fips or not geometry:
            raise ParseFailure("county boundaries", "feature without id or geometry", record=feature.get("properties"))
        fips = str(fips).zfill(5)
        for piece, polygon in enumerate(_rings(geometry)):
            group = f"{fips}.{piece + 1}"
            for ring_index, ring in enumerate(polygon):
                for order, point in enumerate(ring):
                    fips_col.append(fips)
                    long_col.append(float(point[0]))
                    lat_col.append(float(point[1]))
                    group_col.append(group)
                    ring_col.append(ring_index)
                    order_col.append(order)

    boundaries = pd.DataFrame(
        {
            "fips": fips_col,
            "long": long_col,
            "lat": lat_col,
            "group": group_col,
            "ring": ring_col,
            "order": order_col,
        }
    )
    logger.info("Parsed {} boundary vertices for {} counties", len(boundaries), boundaries["fips"].nunique())
    return boundaries


def load_observations(cache: SourceCache, settings: Settings) -> pd.DataFrame:
    return parse_observations(cache.get(settings.counties_url))


def load_region_names(cache: SourceCache, settings: Settings) -> pd.DataFrame:
    return parse_region_names(cache.get(settings.fips_names_url))


def load_boundaries(cache: SourceCache, settings: Settings) -> pd.DataFrame:
    return parse_boundaries(cache.get(settings.boundaries_url))
