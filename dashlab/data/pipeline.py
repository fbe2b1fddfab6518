"""
Memoized data-preparation pipeline behind the dashboard.

The pipeline recomputes every derived view whenever the highlight selection
changes and serves the memoized result to all charts within the same run.
Failures come back as typed results instead of exceptions.
"""

from __future__ import annotations

import itertools
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from dashlab.config import HISTORY_THRESHOLD, SPREAD_THRESHOLD, Settings
from dashlab.data.enrichment import (
    build_color_map,
    derive_series,
    label_regions,
    latest_snapshot,
    plot_width_bound,
)
from dashlab.data.errors import DataError, EmptyResult, JoinMismatch
from dashlab.data.loader import load_boundaries, load_observations, load_region_names
from dashlab.data.sources import SourceCache
from dashlab.log import logger

# Memoized selections kept per session; each entry holds full-size frames
MEMO_SIZE = 4


@dataclass(frozen=True)
class Selection:
    first: str
    second: str

    @classmethod
    def of(cls, first: str, second: str) -> "Selection":
        return cls(first=(first or "").strip(), second=(second or "").strip())

    def as_tuple(self) -> Tuple[str, str]:
        return (self.first, self.second)


@dataclass
class DerivedViews:
    spread: pd.DataFrame
    history: pd.DataFrame
    color_map: Dict[str, str]
    snapshot: pd.DataFrame
    max_x: int
    selection: Selection
    missing_selections: List[str] = field(default_factory=list)
    join_mismatch: Optional[JoinMismatch] = None


@dataclass
class PipelineResult:
    views: Optional[DerivedViews] = None
    error: Optional[DataError] = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.views is not None

    @classmethod
    def success(cls, views: DerivedViews) -> "PipelineResult":
        return cls(views=views)

    @classmethod
    def failure(cls, error: DataError) -> "PipelineResult":
        return cls(error=error)


class DashboardPipeline:
    """Session-local pipeline over a shared source cache."""

    def __init__(self, cache: SourceCache, settings: Settings, memo_size: int = MEMO_SIZE):
        if memo_size < 1:
            raise ValueError("memo_size must be >= 1")
        self._cache = cache
        self._settings = settings
        self._memo_size = memo_size
        self._memo: OrderedDict[Selection, PipelineResult] = OrderedDict()
        self._tickets = itertools.count(1)
        self._latest_ticket = 0
        self._lock = threading.Lock()
        self.computations = 0

    @property
    def source_urls(self) -> List[str]:
        return [
            self._settings.counties_url,
            self._settings.fips_names_url,
            self._settings.boundaries_url,
        ]

    def invalidate(self) -> None:
        with self._lock:
            self._memo.clear()

    def refresh(self) -> None:
        """Force a re-fetch of every source on the next run."""
        self._cache.refresh()
        self.invalidate()

    def run(self, selection: Selection) -> PipelineResult:
        with self._lock:
            if self._memo and not self._cache.all_fresh(self.source_urls):
                logger.info("Sources expired; dropping {} memoized result(s)", len(self._memo))
                self._memo.clear()
            cached = self._memo.get(selection)
            if cached is not None:
                self._memo.move_to_end(selection)
                return cached
            ticket = next(self._tickets)
            self._latest_ticket = ticket

        result = self._compute(selection)

        with self._lock:
            if ticket != self._latest_ticket:
                # A newer selection arrived while this one was computing
                logger.debug("Discarding result for superseded selection {}", selection.as_tuple())
                result.stale = True
                return result
            if result.ok:
                self._memo[selection] = result
                while len(self._memo) > self._memo_size:
                    evicted, _ = self._memo.popitem(last=False)
                    logger.debug("Evicting memoized result for {}", evicted.as_tuple())
        return result

    def _compute(self, selection: Selection) -> PipelineResult:
        self.computations += 1
        logger.info("Recomputing derived views for selection {}", selection.as_tuple())
        try:
            return PipelineResult.success(self._build_views(selection))
        except DataError as exc:
            logger.error("Pipeline failed ({}): {}", exc.kind, exc)
            return PipelineResult.failure(exc)

    def _build_views(self, selection: Selection) -> DerivedViews:
        observations = load_observations(self._cache, self._settings)
        names = load_region_names(self._cache, self._settings)
        boundaries = load_boundaries(self._cache, self._settings)
        return build_views(observations, names, boundaries, selection, self._settings)


def build_views(
    observations: pd.DataFrame,
    names: pd.DataFrame,
    boundaries: pd.DataFrame,
    selection: Selection,
    settings: Settings,
) -> DerivedViews:
    """Derive every chart view from already-parsed sources."""
    pair = selection.as_tuple()

    spread = derive_series(observations, SPREAD_THRESHOLD)
    if spread.empty:
        raise EmptyResult(f"No county has more than {SPREAD_THRESHOLD} confirmed cases", pair)
    spread = label_regions(spread, pair)

    history = derive_series(observations, HISTORY_THRESHOLD)

    snapshot, mismatch_records = latest_snapshot(observations, names, boundaries)
    if snapshot.empty or not (snapshot["cases"] > 0).any():
        raise JoinMismatch("No latest observation matched a county boundary", mismatch_records)
    join_mismatch = (
        JoinMismatch("Observations without a county name in the FIPS listing", mismatch_records)
        if mismatch_records
        else None
    )

    known = set(spread["county"])
    missing = [name for name in dict.fromkeys(pair) if name not in known]
    if missing:
        logger.info("No data for selection(s) {}", missing)

    max_x = plot_width_bound(
        spread,
        rule=settings.axis_bound_rule,
        reference_region=settings.axis_reference_region,
    )

    return DerivedViews(
        spread=spread,
        history=history,
        color_map=build_color_map(pair),
        snapshot=snapshot,
        max_x=max_x,
        selection=selection,
        missing_selections=missing,
        join_mismatch=join_mismatch,
    )


def describe_failure(error: DataError) -> Mapping[str, Any]:
    """User-facing summary of a failure result."""
    titles = {
        "network_failure": "Could not download the source data",
        "parse_failure": "A source file could not be read",
        "join_mismatch": "Counties could not be matched to map boundaries",
        "empty_result": "No data to display",
    }
    return {"title": titles.get(error.kind, "Data preparation failed"), "detail": str(error), "kind": error.kind}
