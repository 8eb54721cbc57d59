"""Disk cache for live researchmap snapshots."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from diskcache import Cache


class CacheManager:
    """Disk-backed cache with a configurable TTL in seconds."""

    def __init__(self, directory: Path, ttl_seconds: float = 600, enabled: bool = True) -> None:
        self.directory = directory
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled
        self._cache: Optional[Cache] = None

    @property
    def cache(self) -> Cache:
        if self._cache is None:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._cache = Cache(str(self.directory))
        return self._cache

    def get(self, key: str) -> Any:
        if not self.enabled or self.ttl_seconds <= 0:
            return None
        return self.cache.get(key)

    def set(self, key: str, value: Any) -> None:
        if not self.enabled or self.ttl_seconds <= 0:
            return
        self.cache.set(key, value, expire=self.ttl_seconds)

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
            self._cache = None
