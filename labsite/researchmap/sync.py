"""Command-line interface for refreshing the researchmap cache files."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from labsite.config_loader import (
    DEFAULT_CONFIG_PATH,
    ConfigurationError,
    SiteConfig,
    load_site_config,
    resolve_path,
)

from .client import ResearchmapClient, ResearchmapClientConfig, ResearchmapError
from .models import SnapshotMeta, utc_timestamp
from .store import META_FILENAME, write_json

LOGGER = logging.getLogger("researchmap.sync")

REFRESH_SOURCE = "cache-refresh"

EXIT_OK = 0
EXIT_FETCH_FAILED = 1
EXIT_CONFIG_ERROR = 2


@dataclass(slots=True)
class RefreshStats:
    counts: dict[str, int] = field(default_factory=dict)
    meta: SnapshotMeta | None = None

    @property
    def items_total(self) -> int:
        return sum(self.counts.values())


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetch researchmap achievements and write the JSON cache used by the site."
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to site.config.json.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for {type}.json and meta.json (default: cache.directory from the config).",
    )
    parser.add_argument(
        "--page-size",
        type=positive_int,
        default=1000,
        help="Number of items requested per page (default: 1000).",
    )
    parser.add_argument(
        "--max-items",
        type=positive_int,
        default=5000,
        help="Stop paginating a type once more than this many items were read.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity.",
    )
    return parser


def refresh_cache(
    *,
    config: SiteConfig,
    output_dir: Path,
    client_config: ResearchmapClientConfig | None = None,
    session: httpx.Client | None = None,
) -> RefreshStats:
    """Fetch every configured type, one after the other, and rewrite the cache.

    Any failure propagates before `meta.json` is written.
    """
    permalink = config.researchmap.require_permalink()
    base_url = config.researchmap.base_url
    types = list(config.researchmap.types)
    client_config = client_config or ResearchmapClientConfig(
        base_url=base_url,
        request_timeout=config.live.request_timeout,
    )

    output_dir.mkdir(parents=True, exist_ok=True)
    fetched_at = utc_timestamp()
    stats = RefreshStats()

    with ResearchmapClient(config=client_config, session=session) as client:
        for record_type in types:
            items = client.fetch_all_items(permalink, record_type)
            write_json(output_dir / f"{record_type}.json", items)
            stats.counts[record_type] = len(items)
            LOGGER.info("%s: %s", record_type, len(items))

    stats.meta = SnapshotMeta(
        fetched_at=fetched_at,
        permalink=permalink,
        base_url=base_url,
        types=types,
        items_total=stats.items_total,
        source=REFRESH_SOURCE,
    )
    write_json(output_dir / META_FILENAME, stats.meta.to_json_dict())
    LOGGER.info("Done. total=%s", stats.items_total)
    return stats


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_site_config(args.config)
        config.researchmap.require_permalink()
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return EXIT_CONFIG_ERROR

    output_dir = args.output_dir or resolve_path(config.cache.directory, args.config.resolve().parent)
    client_config = ResearchmapClientConfig(
        base_url=config.researchmap.base_url,
        page_size=args.page_size,
        max_items=args.max_items,
        request_timeout=config.live.request_timeout,
    )

    try:
        refresh_cache(config=config, output_dir=output_dir, client_config=client_config)
    except (ResearchmapError, httpx.HTTPError) as exc:
        LOGGER.error("Cache refresh failed: %s", exc)
        return EXIT_FETCH_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
