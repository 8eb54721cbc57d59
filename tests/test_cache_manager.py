from __future__ import annotations

from pathlib import Path

from labsite.cache_manager import CacheManager


def test_round_trip_survives_reopen(tmp_path: Path) -> None:
    cache = CacheManager(tmp_path / "cache", ttl_seconds=60)
    cache.set("key", b"value")
    assert cache.get("key") == b"value"
    cache.close()
    assert cache.get("key") == b"value"
    cache.close()


def test_zero_ttl_never_stores(tmp_path: Path) -> None:
    cache = CacheManager(tmp_path / "cache", ttl_seconds=0)
    cache.set("key", b"value")
    assert cache.get("key") is None


def test_disabled_cache_never_stores(tmp_path: Path) -> None:
    cache = CacheManager(tmp_path / "cache", enabled=False)
    cache.set("key", b"value")
    assert cache.get("key") is None
    assert not (tmp_path / "cache").exists()
