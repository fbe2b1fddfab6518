"""
Remote source fetching with retry/backoff and a URL-keyed freshness cache.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Set

import requests
import streamlit as st

from dashlab.config import Settings, load_settings
from dashlab.data.errors import NetworkFailure
from dashlab.log import logger


def fetch_text(
    url: str,
    session: Optional[requests.Session] = None,
    attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    max_delay: float = 30.0,
    timeout: float = 60.0,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """GET ``url`` and return the body, retrying with exponential backoff.

    ``attempts`` counts retries after the first try. Raises NetworkFailure
    once every attempt has failed.
    """
    if attempts < 0:
        raise ValueError("attempts must be >= 0")
    http = session or requests.Session()
    current_delay = delay
    attempt = 0
    while True:
        try:
            response = http.get(url, timeout=timeout)
            response.raise_for_status()
            return response.text
        except requests.RequestException as exc:
            attempt += 1
            if attempt > attempts:
                logger.error("Fetching {} failed after {} attempt(s): {}", url, attempt, exc)
                raise NetworkFailure(url, attempt, exc) from exc
            wait_time = min(current_delay, max_delay)
            logger.warning(
                "Retrying {} in {:.2f}s (attempt {}/{}): {}",
                url,
                wait_time,
                attempt,
                attempts,
                exc,
            )
            sleep(wait_time)
            current_delay = min(current_delay * backoff, max_delay)


@dataclass
class _Entry:
    payload: str
    fetched_at: float
    checked_at: float
    expired: bool = False


class SourceCache:
    """Cache of raw source payloads keyed by URL.

    Entries older than ``ttl_seconds`` are re-fetched on the next ``get``.
    When a re-fetch fails the previous payload is served instead and the URL
    is recorded in ``stale_urls``.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        fetcher: Optional[Callable[[str], str]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._fetcher = fetcher or fetch_text
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.RLock()
        self._url_locks: Dict[str, threading.RLock] = {}
        self.stale_urls: Set[str] = set()

    def is_fresh(self, url: str) -> bool:
        with self._lock:
            entry = self._entries.get(url)
            if entry is None or entry.expired:
                return False
            return (self._clock() - entry.checked_at) < self.ttl_seconds

    def all_fresh(self, urls: Iterable[str]) -> bool:
        return all(self.is_fresh(url) for url in urls)

    def fetched_at(self, url: str) -> Optional[float]:
        with self._lock:
            entry = self._entries.get(url)
            return entry.fetched_at if entry else None

    def _url_lock(self, url: str) -> threading.RLock:
        with self._lock:
            return self._url_locks.setdefault(url, threading.RLock())

    def get(self, url: str) -> str:
        # The shared lock is never held across a download; the per-URL lock
        # keeps concurrent callers from fetching the same source twice.
        with self._url_lock(url):
            with self._lock:
                if self.is_fresh(url):
                    return self._entries[url].payload
                previous = self._entries.get(url)
            try:
                logger.info("Fetching {}", url)
                payload = self._fetcher(url)
            except NetworkFailure:
                if previous is None:
                    raise
                logger.warning(
                    "Serving stale copy of {} fetched at {}",
                    url,
                    time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(previous.fetched_at)),
                )
                with self._lock:
                    self.stale_urls.add(url)
                    previous.checked_at = self._clock()
                    previous.expired = False
                return previous.payload
            with self._lock:
                now = self._clock()
                self._entries[url] = _Entry(payload=payload, fetched_at=now, checked_at=now)
                self.stale_urls.discard(url)
            return payload

    def refresh(self) -> None:
        """Expire every entry; payloads are kept as a fallback for failed re-fetches."""
        with self._lock:
            for entry in self._entries.values():
                entry.expired = True
            logger.info("Source cache refresh requested ({} entries expired)", len(self._entries))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.stale_urls.clear()


def build_source_cache(settings: Settings) -> SourceCache:
    session = requests.Session()

    def _fetch(url: str) -> str:
        return fetch_text(
            url,
            session=session,
            attempts=settings.retry_attempts,
            delay=settings.retry_delay,
            backoff=settings.retry_backoff,
            max_delay=settings.retry_max_delay,
            timeout=settings.request_timeout,
        )

    return SourceCache(ttl_seconds=settings.cache_ttl_seconds, fetcher=_fetch)


@st.cache_resource(show_spinner=False)
def get_source_cache() -> SourceCache:
    """Process-wide source cache shared by every dashboard session."""
    return build_source_cache(load_settings())
