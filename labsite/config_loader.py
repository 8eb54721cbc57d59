"""Utilities for loading the site configuration file."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson
from pydantic import BaseModel, Field, ValidationError


DEFAULT_CONFIG_PATH = Path("site.config.json")
DEFAULT_BASE_URL = "https://api.researchmap.jp"


class ConfigurationError(ValueError):
    """Raised when the site configuration is missing or invalid."""


class _ConfigModel(BaseModel):
    model_config = {"populate_by_name": True, "frozen": True, "extra": "ignore"}


class SocialLinks(_ConfigModel):
    researchmap: str = ""
    github: str = ""
    scholar: str = ""


class LabConfig(_ConfigModel):
    name_ja: str = ""
    name_en: str = ""
    tagline: str = ""
    affiliation: str = ""
    email: str = ""
    social: SocialLinks = Field(default_factory=SocialLinks)

    @property
    def display_name(self) -> str:
        return self.name_ja or self.name_en or "Lab"

    @property
    def footer_name(self) -> str:
        return self.name_en or self.name_ja or "Lab"


class ResearchmapConfig(_ConfigModel):
    permalink: str | None = None
    base_url: str = Field(alias="baseUrl", default=DEFAULT_BASE_URL)
    types: tuple[str, ...] = ("published_papers",)

    def require_permalink(self) -> str:
        if not self.permalink:
            raise ConfigurationError("site.config.json: researchmap.permalink is required")
        return self.permalink


class UIConfig(_ConfigModel):
    max_items_per_section: int = Field(alias="maxItemsPerSection", default=50, ge=0)
    language: str = "ja"
    default_theme: str = Field(alias="defaultTheme", default="dark")


class CacheConfig(_ConfigModel):
    enabled: bool = True
    directory: str = "data/researchmap"
    live_cache_directory: str = Field(alias="liveCacheDirectory", default="data/cache/live")
    live_ttl_minutes: float = Field(alias="liveTtlMinutes", default=10.0, ge=0)


class LiveConfig(_ConfigModel):
    enabled: bool = True
    request_timeout: float = Field(alias="requestTimeout", default=30.0)


class SiteConfig(_ConfigModel):
    lab: LabConfig = Field(default_factory=LabConfig)
    researchmap: ResearchmapConfig = Field(default_factory=ResearchmapConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    live: LiveConfig = Field(default_factory=LiveConfig)


def _load_json(path: Path) -> Any:
    try:
        return orjson.loads(path.read_bytes())
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file not found: {path}") from exc
    except orjson.JSONDecodeError as exc:
        raise ConfigurationError(f"{path.name} is not valid JSON: {exc}") from exc


def load_site_config(path: Path | None = None) -> SiteConfig:
    """Return site config from `site.config.json` as a validated model."""
    target = path or DEFAULT_CONFIG_PATH
    data = _load_json(target)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{target.name} must contain a JSON object.")
    try:
        return SiteConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"{target.name} is invalid: {exc}") from exc


def resolve_path(value: str | Path, root: Path) -> Path:
    """Resolve `value` against the directory holding the config file."""
    candidate = Path(value)
    if candidate.is_absolute():
        return candidate
    return (root / candidate).resolve()
