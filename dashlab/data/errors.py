"""
Error taxonomy for fetching, parsing and joining the remote datasets.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence


class DataError(Exception):
    """Base class for every failure raised while preparing dashboard data."""

    kind = "data_error"


class NetworkFailure(DataError):
    kind = "network_failure"

    def __init__(self, url: str, attempts: int, cause: Optional[BaseException] = None):
        self.url = url
        self.attempts = attempts
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Fetching {url} failed after {attempts} attempt(s){detail}")


class ParseFailure(DataError):
    kind = "parse_failure"

    def __init__(self, source: str, message: str, record: Any = None):
        self.source = source
        self.record = record
        text = f"{source}: {message}"
        if record is not None:
            text += f" (record: {record!r})"
        super().__init__(text)


class JoinMismatch(DataError):
    kind = "join_mismatch"

    def __init__(self, message: str, records: Sequence[Mapping[str, Any]] = ()):
        self.records: List[Mapping[str, Any]] = list(records)
        preview = ", ".join(repr(dict(r)) for r in self.records[:3])
        more = f" and {len(self.records) - 3} more" if len(self.records) > 3 else ""
        text = message if not self.records else f"{message}: {preview}{more}"
        super().__init__(text)


class EmptyResult(DataError):
    kind = "empty_result"

    def __init__(self, message: str, selection: Sequence[str] = ()):
        self.selection = list(selection)
        super().__init__(message)
