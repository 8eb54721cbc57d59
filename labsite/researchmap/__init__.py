"""researchmap WebAPI access, snapshot storage and record normalization."""

from __future__ import annotations

__all__ = [
    "AsyncResearchmapClient",
    "CacheSnapshot",
    "MalformedResponseError",
    "NormalizedItem",
    "RemoteFetchError",
    "ResearchmapClient",
    "ResearchmapError",
    "load_cached_snapshot",
    "normalize_items",
    "refresh_cache",
]

from .client import (
    AsyncResearchmapClient,
    MalformedResponseError,
    RemoteFetchError,
    ResearchmapClient,
    ResearchmapError,
)
from .models import CacheSnapshot, NormalizedItem
from .normalizer import normalize_items
from .store import load_cached_snapshot
from .sync import refresh_cache
