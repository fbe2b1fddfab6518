from __future__ import annotations

from dataclasses import dataclass

from dashlab.config import Settings
from dashlab.data.pipeline import DerivedViews
from dashlab.data.sources import SourceCache


@dataclass
class PageContext:
    views: DerivedViews
    settings: Settings
    cache: SourceCache
