"""Chooses between the cached and the live snapshot and tracks the status line."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from .config_loader import SiteConfig
from .rendering import Sections
from .researchmap.models import SECTION_TYPES, CacheSnapshot
from .researchmap.normalizer import normalize_items
from .researchmap.store import load_cached_snapshot

LOGGER = logging.getLogger("labsite.site_state")

STATUS_FETCHING = "fetching…"
STATUS_LIVE_FAILED = "live fetch failed (using cache)"


class LiveSource(Protocol):
    async def fetch(self, *, force: bool = False) -> CacheSnapshot:
        ...


def cache_status(snapshot: CacheSnapshot) -> str:
    return f"cache: {snapshot.fetched_at}" if snapshot.fetched_at else "cache: (none)"


def live_status(snapshot: CacheSnapshot) -> str:
    return f"live: {snapshot.fetched_at}"


class SiteBootstrapper:
    """Holds the working dataset for the running site.

    Starts from the cached snapshot. A background live fetch replaces it only
    when it succeeds with at least one item; a forced refresh replaces it on
    any success. Failures never blank what is already shown, and a result is
    dropped when a newer forced refresh has started since it was requested.
    """

    def __init__(
        self,
        config: SiteConfig,
        cached: CacheSnapshot,
        *,
        live_source: LiveSource | None = None,
    ) -> None:
        self.config = config
        self.cached = cached
        self.snapshot = cached
        self.live_source = live_source
        self.status = cache_status(cached)
        self._generation = 0

    @classmethod
    def from_cache_dir(
        cls,
        config: SiteConfig,
        directory: Path,
        *,
        live_source: LiveSource | None = None,
    ) -> "SiteBootstrapper":
        cached = load_cached_snapshot(directory, config.researchmap.types)
        return cls(config, cached, live_source=live_source)

    @property
    def source(self) -> str:
        return "cache" if self.snapshot is self.cached else "live"

    async def try_live(self) -> bool:
        """Best-effort live fetch on startup; keeps the cache on any failure."""
        if self.live_source is None:
            return False
        generation = self._generation
        try:
            live = await self.live_source.fetch()
        except Exception as exc:  # noqa: BLE001 - cache remains authoritative
            LOGGER.warning("Live fetch failed, keeping cached data: %s", exc)
            return False
        if not live.items_total:
            LOGGER.info("Live fetch returned no items, keeping cached data")
            return False
        if generation != self._generation:
            LOGGER.info("Discarding startup live fetch superseded by a forced refresh")
            return False
        self.snapshot = live
        self.status = live_status(live)
        return True

    async def force_refresh(self) -> bool:
        if self.live_source is None:
            self.status = STATUS_LIVE_FAILED
            return False
        self._generation += 1
        generation = self._generation
        self.status = STATUS_FETCHING
        try:
            live = await self.live_source.fetch(force=True)
        except Exception as exc:  # noqa: BLE001 - surfaced through the status line
            LOGGER.error("Forced live fetch failed: %s", exc)
            if generation == self._generation:
                self.status = STATUS_LIVE_FAILED
            return False
        if generation != self._generation:
            LOGGER.info("Discarding forced refresh superseded by a newer one")
            return False
        self.snapshot = live
        self.status = live_status(live)
        return True

    def sections(self) -> Sections:
        prefer = self.config.ui.language
        normalized = {
            section: normalize_items(self.snapshot.records_for(record_type), record_type, prefer=prefer)
            for section, record_type in SECTION_TYPES.items()
        }
        return Sections(**normalized)
