"""JSON exports of the filtered section views."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import orjson

from .researchmap.models import NormalizedItem
from .researchmap.store import write_json


def export_payload(items: Iterable[NormalizedItem]) -> list[dict[str, str]]:
    return [item.to_json_dict() for item in items]


def export_bytes(items: Iterable[NormalizedItem]) -> bytes:
    """Serialize the full, untruncated filtered list as an indented JSON array."""
    return orjson.dumps(export_payload(items), option=orjson.OPT_INDENT_2)


class SectionExporter:
    """Writes one export file per section, replacing the previous one."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, section: str) -> Path:
        return self.base_dir / f"{section}.json"

    def export(self, section: str, items: Iterable[NormalizedItem]) -> Path:
        path = self.path_for(section)
        write_json(path, export_payload(items))
        return path
