"""FastAPI entry point for the lab site."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from . import routes
from .cache_manager import CacheManager
from .config_loader import DEFAULT_CONFIG_PATH, SiteConfig, load_site_config, resolve_path
from .live import LiveFetcher
from .site_state import LiveSource, SiteBootstrapper

LOGGER = logging.getLogger(__name__)


APP_ROOT = Path(__file__).resolve().parent


def build_live_source(config: SiteConfig, root: Path) -> LiveSource | None:
    if not config.live.enabled or not config.researchmap.permalink:
        return None
    cache = CacheManager(
        directory=resolve_path(config.cache.live_cache_directory, root),
        ttl_seconds=config.cache.live_ttl_minutes * 60,
        enabled=config.cache.enabled,
    )
    return LiveFetcher(config, cache=cache)


def create_app(
    *,
    config_path: Path | None = None,
    cache_dir: Path | None = None,
    live_source: LiveSource | None = None,
) -> FastAPI:
    site_config = load_site_config(config_path)
    root = (config_path or DEFAULT_CONFIG_PATH).resolve().parent
    cache_dir = cache_dir or resolve_path(site_config.cache.directory, root)
    if live_source is None:
        live_source = build_live_source(site_config, root)

    app = FastAPI(
        title=site_config.lab.display_name,
        description="Publications, talks and projects from researchmap.",
        version="0.1.0",
    )

    site = SiteBootstrapper.from_cache_dir(site_config, cache_dir, live_source=live_source)
    LOGGER.info("Loaded cached snapshot (%s)", site.status)

    app.state.config = site_config
    app.state.site = site
    app.state.live_task = None

    app.include_router(routes.router)
    app.mount("/static", StaticFiles(directory=APP_ROOT / "static"), name="static")

    @app.on_event("startup")
    async def start_live_fetch() -> None:
        app.state.live_task = asyncio.create_task(site.try_live())

    @app.on_event("shutdown")
    async def stop_live_fetch() -> None:
        task = app.state.live_task
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        LOGGER.info("Cancelled pending startup live fetch")

    return app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the lab site.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to site.config.json.")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1).")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000).")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:  # pragma: no cover - starts a server
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    uvicorn.run(create_app(config_path=args.config), host=args.host, port=args.port)


if __name__ == "__main__":  # pragma: no cover
    main()
