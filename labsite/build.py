"""Command-line interface for rendering the site into static files."""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
import sys
from pathlib import Path

from .config_loader import DEFAULT_CONFIG_PATH, ConfigurationError, load_site_config, resolve_path
from .exporter import SectionExporter
from .main import APP_ROOT, build_live_source
from .rendering import FilterState, render_page
from .site_state import SiteBootstrapper

LOGGER = logging.getLogger("labsite.build")

EXPORTS_DIRNAME = "exports"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render the lab site into a directory of static files.")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to site.config.json.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("site"),
        help="Directory receiving index.html, exports/ and static/.",
    )
    parser.add_argument(
        "--live",
        action="store_true",
        help="Attempt a live researchmap fetch before rendering; the cache is kept on failure.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity.",
    )
    return parser


def build_site(site: SiteBootstrapper, output_dir: Path) -> Path:
    """Write `index.html`, one export per section and the stylesheet."""
    output_dir.mkdir(parents=True, exist_ok=True)
    sections = site.sections()

    exporter = SectionExporter(output_dir / EXPORTS_DIRNAME)
    export_urls: dict[str, str] = {}
    for name in ("publications", "talks", "projects"):
        path = exporter.export(name, getattr(sections, name))
        export_urls[name] = path.relative_to(output_dir).as_posix()

    html = render_page(
        lab=site.config.lab,
        sections=sections,
        filter_state=FilterState(),
        status=site.status,
        max_items=site.config.ui.max_items_per_section,
        export_urls=export_urls,
        theme=site.config.ui.default_theme,
        static_prefix="static",
        interactive=False,
    )
    index_path = output_dir / "index.html"
    index_path.write_text(html, encoding="utf-8")
    shutil.copytree(APP_ROOT / "static", output_dir / "static", dirs_exist_ok=True)
    LOGGER.info("Wrote %s (%s)", index_path, site.status)
    return index_path


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_site_config(args.config)
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return 2

    root = args.config.resolve().parent
    live_source = build_live_source(config, root) if args.live else None
    site = SiteBootstrapper.from_cache_dir(
        config,
        resolve_path(config.cache.directory, root),
        live_source=live_source,
    )
    if live_source is not None:
        asyncio.run(site.try_live())

    build_site(site, args.output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
