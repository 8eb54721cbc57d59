"""Live researchmap fetches for the running site."""

from __future__ import annotations

import logging

import httpx
import orjson

from .cache_manager import CacheManager
from .config_loader import SiteConfig
from .researchmap.client import AsyncResearchmapClient, ResearchmapClientConfig
from .researchmap.models import CacheSnapshot, SnapshotMeta, utc_timestamp

LOGGER = logging.getLogger("labsite.live")

LIVE_SOURCE = "live"


class LiveFetcher:
    """Fetches a fresh snapshot from the API, reusing a recent one unless forced."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        cache: CacheManager | None = None,
        session: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.cache = cache
        self._session = session

    @property
    def cache_key(self) -> str:
        rm = self.config.researchmap
        return f"live:{rm.base_url}:{rm.permalink}:{','.join(rm.types)}"

    async def fetch(self, *, force: bool = False) -> CacheSnapshot:
        permalink = self.config.researchmap.require_permalink()

        if self.cache and not force:
            cached = self.cache.get(self.cache_key)
            if cached is not None:
                LOGGER.debug("Reusing live snapshot from %s", self.cache.directory)
                return CacheSnapshot.from_json_dict(orjson.loads(cached))

        client_config = ResearchmapClientConfig(
            base_url=self.config.researchmap.base_url,
            request_timeout=self.config.live.request_timeout,
        )
        fetched_at = utc_timestamp()
        types = list(self.config.researchmap.types)
        records: dict[str, list] = {}
        async with AsyncResearchmapClient(config=client_config, session=self._session) as client:
            for record_type in types:
                records[record_type] = await client.fetch_all_items(permalink, record_type)

        snapshot = CacheSnapshot(
            records=records,
            meta=SnapshotMeta(
                fetched_at=fetched_at,
                permalink=permalink,
                base_url=self.config.researchmap.base_url,
                types=types,
                items_total=sum(len(items) for items in records.values()),
                source=LIVE_SOURCE,
            ),
        )
        if self.cache:
            self.cache.set(self.cache_key, orjson.dumps(snapshot.to_json_dict()))
        return snapshot
