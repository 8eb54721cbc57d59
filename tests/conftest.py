from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from labsite.main import create_app
from labsite.researchmap.models import CacheSnapshot, SnapshotMeta


def make_paper(title: str, year: str, *, authors: list[str] | None = None, venue: str = "Journal") -> dict[str, Any]:
    return {
        "paper_title": {"ja": title, "en": f"{title} (en)"},
        "authors": {"ja": [{"name": name} for name in (authors or ["山田 太郎"])]},
        "publication_name": {"en": venue},
        "publication_date": f"{year}-04-01",
        "identifiers": {"doi": [f"10.1000/{title.lower().replace(' ', '-')}"]},
        "see_also": [{"@id": f"https://example.org/{title.lower().replace(' ', '-')}", "label": "url"}],
    }


def write_site(
    root: Path,
    *,
    papers: list[dict[str, Any]] | None = None,
    talks: list[dict[str, Any]] | None = None,
    projects: list[dict[str, Any]] | None = None,
    fetched_at: str = "2024-05-01T00:00:00.000Z",
    max_items: int = 50,
) -> Path:
    config = {
        "lab": {
            "name_ja": "テスト研究室",
            "name_en": "Test Lab",
            "tagline": "Testing things",
            "affiliation": "Test University",
            "email": "lab@example.org",
            "social": {"researchmap": "https://researchmap.jp/test", "github": "https://github.com/test-lab"},
        },
        "researchmap": {
            "permalink": "test",
            "baseUrl": "https://api.researchmap.test",
            "types": ["published_papers", "presentations", "research_projects"],
        },
        "ui": {"maxItemsPerSection": max_items},
        "cache": {"directory": "data/researchmap", "liveCacheDirectory": "data/cache/live"},
        "live": {"enabled": False},
    }
    config_path = root / "site.config.json"
    config_path.write_text(json.dumps(config, ensure_ascii=False), encoding="utf-8")

    cache_dir = root / "data" / "researchmap"
    cache_dir.mkdir(parents=True, exist_ok=True)
    payloads = {
        "published_papers": papers or [],
        "presentations": talks or [],
        "research_projects": projects or [],
    }
    for record_type, items in payloads.items():
        (cache_dir / f"{record_type}.json").write_text(json.dumps(items, ensure_ascii=False), encoding="utf-8")
    meta = {
        "fetchedAt": fetched_at,
        "permalink": "test",
        "baseUrl": "https://api.researchmap.test",
        "types": list(payloads),
        "itemsTotal": sum(len(items) for items in payloads.values()),
        "source": "cache-refresh",
    }
    (cache_dir / "meta.json").write_text(json.dumps(meta), encoding="utf-8")
    return config_path


def live_snapshot(papers: list[dict[str, Any]], fetched_at: str = "2024-06-01T12:00:00.000Z") -> CacheSnapshot:
    return CacheSnapshot(
        records={"published_papers": papers, "presentations": [], "research_projects": []},
        meta=SnapshotMeta(
            fetched_at=fetched_at,
            permalink="test",
            base_url="https://api.researchmap.test",
            types=["published_papers", "presentations", "research_projects"],
            items_total=len(papers),
            source="live",
        ),
    )


class StubLiveSource:
    """Returns a fixed snapshot or raises, recording each call."""

    def __init__(self, snapshot: CacheSnapshot | None = None, error: Exception | None = None) -> None:
        self.snapshot = snapshot
        self.error = error
        self.calls: list[bool] = []

    async def fetch(self, *, force: bool = False) -> CacheSnapshot:
        self.calls.append(force)
        if self.error is not None:
            raise self.error
        assert self.snapshot is not None
        return self.snapshot


async def _client_for(app: FastAPI) -> AsyncClient:
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://testserver", timeout=10.0)


@pytest.fixture
def five_papers() -> list[dict[str, Any]]:
    return [
        make_paper("Graph Learning", "2023", authors=["Ada Lovelace"]),
        make_paper("Social Networks", "2022"),
        make_paper("Survey Methods", "2021"),
        make_paper("Agent Models", "2023"),
        make_paper("Causal Inference", "2020"),
    ]


@pytest_asyncio.fixture
async def site_client(tmp_path, five_papers):
    config_path = write_site(
        tmp_path,
        papers=five_papers,
        talks=[{"presentation_title": {"en": "Keynote"}, "event": {"ja": "学会"}, "publication_date": "2024-02-02"}],
        projects=[
            {
                "research_project_title": {"ja": "科研費プロジェクト"},
                "from_date": "2021-04",
                "to_date": "2025-03",
                "research_project_owner_role": "Principal investigator",
                "description": {"en": "Studying things."},
            }
        ],
        max_items=2,
    )
    stub = StubLiveSource(error=RuntimeError("offline"))
    app = create_app(config_path=config_path, live_source=stub)
    client = await _client_for(app)
    client.app = app  # type: ignore[attr-defined]
    try:
        yield client
    finally:
        await client.aclose()
