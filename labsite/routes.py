"""HTTP routes for the lab site."""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from pydantic import BaseModel, Field

from .exporter import export_bytes, export_payload
from .rendering import FilterState, filter_items, render_page, year_options
from .researchmap.models import SECTION_TYPES
from .site_state import SiteBootstrapper

router = APIRouter()
logger = logging.getLogger(__name__)

THEME_COOKIE = "theme"
THEME_COOKIE_MAX_AGE = 365 * 24 * 60 * 60


# --------------------------------------------------------------------------- #
# Pydantic schemas
# --------------------------------------------------------------------------- #


class PublicationsResponse(BaseModel):
    count: int
    count_label: str = Field(alias="countLabel")
    years: list[str]
    items: list[dict[str, str]]


class StatusResponse(BaseModel):
    status: str
    source: str
    fetched_at: str = Field(alias="fetchedAt")
    counts: dict[str, int]


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _site(request: Request) -> SiteBootstrapper:
    return request.app.state.site


def _filter_state(q: str | None, year: str | None) -> FilterState:
    return FilterState(query=q or "", year=year or "")


def _current_theme(request: Request) -> str:
    default = request.app.state.config.ui.default_theme
    theme = request.cookies.get(THEME_COOKIE, default)
    return "light" if theme == "light" else "dark"


def _export_urls(filter_state: FilterState) -> dict[str, str]:
    query = urlencode({"q": filter_state.query, "year": filter_state.year})
    return {
        "publications": f"/export/publications.json?{query}",
        "talks": "/export/talks.json",
        "projects": "/export/projects.json",
    }


# --------------------------------------------------------------------------- #
# Routes
# --------------------------------------------------------------------------- #


@router.get("/", response_class=HTMLResponse)
async def index(request: Request, q: str | None = None, year: str | None = None) -> HTMLResponse:
    site = _site(request)
    filter_state = _filter_state(q, year)
    html = render_page(
        lab=site.config.lab,
        sections=site.sections(),
        filter_state=filter_state,
        status=site.status,
        max_items=site.config.ui.max_items_per_section,
        export_urls=_export_urls(filter_state),
        theme=_current_theme(request),
    )
    return HTMLResponse(html)


@router.get("/api/publications", response_model=PublicationsResponse)
async def list_publications(
    request: Request, q: str | None = None, year: str | None = None
) -> PublicationsResponse:
    site = _site(request)
    publications = site.sections().publications
    result = filter_items(publications, _filter_state(q, year))
    return PublicationsResponse(
        count=result.count,
        countLabel=result.count_label,
        years=year_options(publications),
        items=export_payload(result.visible(site.config.ui.max_items_per_section)),
    )


@router.get("/export/{section}.json")
async def export_section(
    request: Request, section: str, q: str | None = None, year: str | None = None
) -> Response:
    if section not in SECTION_TYPES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown section: {section}")
    sections = _site(request).sections()
    items = getattr(sections, section)
    if section == "publications":
        items = filter_items(items, _filter_state(q, year)).items
    return Response(
        content=export_bytes(items),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{section}.json"'},
    )


@router.post("/refresh")
async def refresh(request: Request) -> RedirectResponse:
    site = _site(request)
    refreshed = await site.force_refresh()
    if not refreshed:
        logger.info("Refresh failed; still serving %s data", site.source)
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/status", response_model=StatusResponse)
async def get_status(request: Request) -> StatusResponse:
    site = _site(request)
    sections = site.sections()
    return StatusResponse(
        status=site.status,
        source=site.source,
        fetchedAt=site.snapshot.fetched_at,
        counts={
            "publications": len(sections.publications),
            "talks": len(sections.talks),
            "projects": len(sections.projects),
        },
    )


@router.post("/theme")
async def toggle_theme(request: Request) -> RedirectResponse:
    theme = "dark" if _current_theme(request) == "light" else "light"
    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(THEME_COOKIE, theme, max_age=THEME_COOKIE_MAX_AGE, samesite="lax")
    return response
