from __future__ import annotations

from pathlib import Path

import pytest

from labsite.config_loader import ConfigurationError, SiteConfig, load_site_config, resolve_path

from conftest import write_site


def test_load_site_config_reads_aliases(tmp_path: Path) -> None:
    config = load_site_config(write_site(tmp_path, max_items=7))
    assert config.ui.max_items_per_section == 7
    assert config.researchmap.base_url == "https://api.researchmap.test"
    assert config.researchmap.types == ("published_papers", "presentations", "research_projects")
    assert config.lab.display_name == "テスト研究室"
    assert config.lab.footer_name == "Test Lab"
    assert config.live.enabled is False


def test_defaults_for_minimal_config(tmp_path: Path) -> None:
    path = tmp_path / "site.config.json"
    path.write_text('{"researchmap": {"permalink": "someone"}}', encoding="utf-8")
    config = load_site_config(path)
    assert config.researchmap.base_url == "https://api.researchmap.jp"
    assert config.researchmap.types == ("published_papers",)
    assert config.ui.max_items_per_section == 50
    assert config.lab.display_name == "Lab"
    assert config.cache.live_ttl_minutes == 10.0


def test_lab_name_fallbacks() -> None:
    config = SiteConfig.model_validate({"lab": {"name_en": "English Only"}})
    assert config.lab.display_name == "English Only"
    assert config.lab.footer_name == "English Only"


@pytest.mark.parametrize(
    "content",
    ["{not json", "[1, 2]", '{"ui": {"maxItemsPerSection": "many"}}'],
)
def test_invalid_config_raises_configuration_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "site.config.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_site_config(path)


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_site_config(tmp_path / "absent.json")


def test_require_permalink() -> None:
    with pytest.raises(ConfigurationError):
        SiteConfig().researchmap.require_permalink()
    assert SiteConfig.model_validate({"researchmap": {"permalink": "p"}}).researchmap.require_permalink() == "p"


def test_resolve_path(tmp_path: Path) -> None:
    assert resolve_path("data/x", tmp_path) == (tmp_path / "data" / "x").resolve()
    assert resolve_path(tmp_path / "abs", Path("/elsewhere")) == tmp_path / "abs"
