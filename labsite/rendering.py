"""Filtering and HTML rendering of the publication, talk and project sections."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .config_loader import LabConfig
from .researchmap.models import NormalizedItem

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
DEFAULT_MAX_ITEMS = 50
SOCIAL_PLACEHOLDER = "(set in site.config.json)"
DEFAULT_RESEARCHMAP_URL = "https://researchmap.jp/"


@dataclass(frozen=True, slots=True)
class FilterState:
    query: str = ""
    year: str = ""


@dataclass(slots=True)
class FilterResult:
    """Every item passing the filter. `count` ignores display truncation."""

    items: list[NormalizedItem] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def count_label(self) -> str:
        return f"{self.count} items"

    def visible(self, max_items: int) -> list[NormalizedItem]:
        return self.items[: max(0, max_items)]


@dataclass(slots=True)
class Sections:
    publications: list[NormalizedItem] = field(default_factory=list)
    talks: list[NormalizedItem] = field(default_factory=list)
    projects: list[NormalizedItem] = field(default_factory=list)


def matches(item: NormalizedItem, state: FilterState) -> bool:
    if state.year and item.year != state.year:
        return False
    query = state.query.strip().lower()
    if not query:
        return True
    return query in item.haystack()


def filter_items(items: Iterable[NormalizedItem], state: FilterState) -> FilterResult:
    """Case-insensitive substring search plus exact year match, recomputed in full."""
    return FilterResult(items=[item for item in items if matches(item, state)])


def year_options(items: Iterable[NormalizedItem]) -> list[str]:
    return sorted({item.year for item in items if item.year}, reverse=True)


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


ENV = _environment()


def render_publications(result: FilterResult, max_items: int) -> str:
    template = ENV.get_template("publications.html")
    return template.render(items=result.visible(max_items))


def render_talks(items: Sequence[NormalizedItem], max_items: int) -> str:
    template = ENV.get_template("talks.html")
    return template.render(items=list(items)[: max(0, max_items)])


def render_projects(items: Sequence[NormalizedItem], max_items: int) -> str:
    template = ENV.get_template("projects.html")
    return template.render(items=list(items)[: max(0, max_items)])


def lab_context(lab: LabConfig) -> dict[str, str]:
    social = lab.social
    researchmap_url = social.researchmap or DEFAULT_RESEARCHMAP_URL
    return {
        "name": lab.display_name,
        "footer_name": lab.footer_name,
        "tagline": lab.tagline,
        "affiliation": lab.affiliation,
        "email": lab.email,
        "email_href": f"mailto:{lab.email}" if lab.email else "#",
        "researchmap_url": researchmap_url,
        "github_href": social.github or "#",
        "github_label": social.github or SOCIAL_PLACEHOLDER,
        "scholar_href": social.scholar or "#",
        "scholar_label": social.scholar or SOCIAL_PLACEHOLDER,
    }


def render_page(
    *,
    lab: LabConfig,
    sections: Sections,
    filter_state: FilterState,
    status: str,
    max_items: int,
    export_urls: Mapping[str, str],
    theme: str = "dark",
    static_prefix: str = "/static",
    interactive: bool = True,
) -> str:
    """Render the full page; `max_items` caps each section's rows."""
    result = filter_items(sections.publications, filter_state)
    template = ENV.get_template("index.html")
    return template.render(
        lab=lab_context(lab),
        year_now=str(datetime.now().year),
        theme=theme,
        status=status,
        static_prefix=static_prefix,
        interactive=interactive,
        filter_state=filter_state,
        years=year_options(sections.publications),
        counts={
            "publications": len(sections.publications),
            "talks": len(sections.talks),
            "projects": len(sections.projects),
        },
        pub_count_label=result.count_label,
        export_urls=export_urls,
        publications_html=render_publications(result, max_items),
        talks_html=render_talks(sections.talks, max_items),
        projects_html=render_projects(sections.projects, max_items),
    )
