"""Data models for researchmap snapshots and normalized items."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

PUBLICATIONS = "published_papers"
PRESENTATIONS = "presentations"
RESEARCH_PROJECTS = "research_projects"


def utc_timestamp() -> str:
    """Return the current UTC time as `YYYY-MM-DDTHH:MM:SS.mmmZ`."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# Page section -> researchmap achievement type.
SECTION_TYPES: dict[str, str] = {
    "publications": PUBLICATIONS,
    "talks": PRESENTATIONS,
    "projects": RESEARCH_PROJECTS,
}


@dataclass(slots=True)
class NormalizedItem:
    """Canonical shape shared by every rendered record. Fields are never None."""

    title: str = ""
    authors: str = ""
    venue: str = ""
    year: str = ""
    url: str = ""
    doi: str = ""
    role: str = ""
    from_: str = ""
    to: str = ""
    summary: str = ""

    @property
    def doi_url(self) -> str:
        if not self.doi:
            return ""
        return f"https://doi.org/{quote(self.doi, safe='')}"

    def haystack(self) -> str:
        return f"{self.title} {self.venue} {self.year} {self.authors}".lower()

    def to_json_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "authors": self.authors,
            "venue": self.venue,
            "year": self.year,
            "url": self.url,
            "doi": self.doi,
            "role": self.role,
            "from": self.from_,
            "to": self.to,
            "summary": self.summary,
        }


@dataclass(slots=True)
class SnapshotMeta:
    fetched_at: str
    permalink: str
    base_url: str
    types: list[str]
    items_total: int
    source: str

    @classmethod
    def from_payload(cls, payload: Any) -> "SnapshotMeta | None":
        if not isinstance(payload, dict):
            return None
        types = payload.get("types")
        try:
            items_total = int(payload.get("itemsTotal") or 0)
        except (TypeError, ValueError):
            items_total = 0
        return cls(
            fetched_at=str(payload.get("fetchedAt") or ""),
            permalink=str(payload.get("permalink") or ""),
            base_url=str(payload.get("baseUrl") or ""),
            types=[str(t) for t in types] if isinstance(types, list) else [],
            items_total=items_total,
            source=str(payload.get("source") or ""),
        )

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "fetchedAt": self.fetched_at,
            "permalink": self.permalink,
            "baseUrl": self.base_url,
            "types": list(self.types),
            "itemsTotal": self.items_total,
            "source": self.source,
        }


@dataclass(slots=True)
class CacheSnapshot:
    """Raw records keyed by achievement type plus the fetch metadata."""

    records: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    meta: SnapshotMeta | None = None

    @property
    def items_total(self) -> int:
        return self.meta.items_total if self.meta else 0

    @property
    def fetched_at(self) -> str:
        return self.meta.fetched_at if self.meta else ""

    def records_for(self, record_type: str) -> list[dict[str, Any]]:
        return self.records.get(record_type, [])

    def to_json_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {key: list(value) for key, value in self.records.items()}
        payload["meta"] = self.meta.to_json_dict() if self.meta else None
        return payload

    @classmethod
    def from_json_dict(cls, payload: dict[str, Any]) -> "CacheSnapshot":
        records = {
            key: [item for item in value if isinstance(item, dict)]
            for key, value in payload.items()
            if key != "meta" and isinstance(value, list)
        }
        return cls(records=records, meta=SnapshotMeta.from_payload(payload.get("meta")))
