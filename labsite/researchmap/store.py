"""Reading and writing the on-disk researchmap snapshot."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable

import orjson

from .models import SECTION_TYPES, CacheSnapshot, SnapshotMeta

LOGGER = logging.getLogger("researchmap.store")

META_FILENAME = "meta.json"


def write_json(path: Path, payload: Any) -> None:
    """Replace `path` with `payload` serialized as indented JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = orjson.dumps(payload, option=orjson.OPT_INDENT_2)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _read_json(path: Path) -> Any:
    try:
        return orjson.loads(path.read_bytes())
    except FileNotFoundError:
        return None
    except orjson.JSONDecodeError as exc:
        LOGGER.warning("Ignoring unreadable cache file %s: %s", path, exc)
        return None


def load_cached_snapshot(directory: Path, types: Iterable[str] | None = None) -> CacheSnapshot:
    """Load `{type}.json` files and `meta.json`; missing files read as empty."""
    meta = SnapshotMeta.from_payload(_read_json(directory / META_FILENAME))
    wanted = list(types) if types is not None else []
    for record_type in (*SECTION_TYPES.values(), *(meta.types if meta else [])):
        if record_type not in wanted:
            wanted.append(record_type)

    records: dict[str, list[dict[str, Any]]] = {}
    for record_type in wanted:
        payload = _read_json(directory / f"{record_type}.json")
        if isinstance(payload, list):
            records[record_type] = [item for item in payload if isinstance(item, dict)]
        else:
            records[record_type] = []
    return CacheSnapshot(records=records, meta=meta)
