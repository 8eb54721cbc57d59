"""Normalization of researchmap achievement payloads into `NormalizedItem`s.

Every achievement type maps through a `FieldSpec`: an ordered tuple of
candidate keys per output field. Unknown types fall through to
`DEFAULT_SPEC`. Each extractor is total, so a record missing any or all of its
fields degrades to empty strings instead of raising.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

from .models import PRESENTATIONS, PUBLICATIONS, RESEARCH_PROJECTS, NormalizedItem

PREFERRED_LANGUAGE = "ja"
FALLBACK_LANGUAGES = ("en", "ja")
AUTHOR_SEPARATOR = ", "

_LEADING_YEAR = re.compile(r"^\d{4}")


@dataclass(frozen=True, slots=True)
class FieldSpec:
    title: tuple[str, ...]
    authors: tuple[str, ...]
    venue: tuple[str, ...]
    date: tuple[str, ...]
    project_fields: bool = False


FIELD_TABLE: dict[str, FieldSpec] = {
    PUBLICATIONS: FieldSpec(
        title=("paper_title", "title"),
        authors=("authors",),
        venue=("publication_name", "publisher"),
        date=("publication_date", "date"),
    ),
    PRESENTATIONS: FieldSpec(
        title=("presentation_title", "title"),
        authors=("presenters", "authors"),
        venue=("event", "venue"),
        date=("publication_date", "from_event_date", "date"),
    ),
    RESEARCH_PROJECTS: FieldSpec(
        title=("research_project_title", "title"),
        authors=("investigators", "authors"),
        venue=("offer_organization", "system_name", "institution"),
        date=("from_date", "publication_date"),
        project_fields=True,
    ),
}

DEFAULT_SPEC = FieldSpec(
    title=("title", "name"),
    authors=("authors", "presenters", "investigators"),
    venue=("venue", "publication_name", "event"),
    date=("publication_date", "date", "from_date"),
)

PROJECT_ROLE_KEYS = ("research_project_owner_role", "role")
PROJECT_SUMMARY_KEYS = ("description", "summary")


def _pick_localized(value: Any, prefer: str) -> Any:
    """Return the raw entry of a language map, or the value itself otherwise."""
    if not isinstance(value, dict):
        return value
    for lang in (prefer, *FALLBACK_LANGUAGES):
        candidate = value.get(lang)
        if candidate:
            return candidate
    # first non-empty entry, so {"fr": "", "de": "D"} gives "D"
    for candidate in value.values():
        if candidate:
            return candidate
    return None


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def select_localized_text(value: Any, prefer: str = PREFERRED_LANGUAGE) -> str:
    """Resolve a plain or language-keyed string to display text."""
    if isinstance(value, str):
        return value
    return _as_text(_pick_localized(value, prefer))


def join_people(value: Any, prefer: str = PREFERRED_LANGUAGE) -> str:
    """Flatten an author/presenter field into a display string."""
    if isinstance(value, str):
        return value
    people = _pick_localized(value, prefer)
    if isinstance(people, str):
        return people
    if not isinstance(people, list):
        return ""
    names: list[str] = []
    for person in people:
        if isinstance(person, dict):
            name = select_localized_text(person.get("name") or person.get("full_name"), prefer)
        else:
            name = select_localized_text(person, prefer)
        if name:
            names.append(name)
    return AUTHOR_SEPARATOR.join(names)


def year_from_date(value: Any) -> str:
    """Return the leading four digits of a date-like value, or an empty string."""
    text = _as_text(value)
    match = _LEADING_YEAR.match(text)
    return match.group(0) if match else ""


def _first_text(record: dict[str, Any], keys: Iterable[str], prefer: str) -> str:
    for key in keys:
        text = select_localized_text(record.get(key), prefer)
        if text:
            return text
    return ""


def _first_people(record: dict[str, Any], keys: Iterable[str], prefer: str) -> str:
    for key in keys:
        people = join_people(record.get(key), prefer)
        if people:
            return people
    return ""


def _first_year(record: dict[str, Any], keys: Iterable[str]) -> str:
    for key in keys:
        year = year_from_date(record.get(key))
        if year:
            return year
    return ""


def extract_url(record: dict[str, Any]) -> str:
    see_also = record.get("see_also")
    if isinstance(see_also, list):
        for entry in see_also:
            if isinstance(entry, dict):
                link = entry.get("@id") or entry.get("url")
                if isinstance(link, str) and link:
                    return link
    for key in ("url", "@id"):
        link = record.get(key)
        if isinstance(link, str) and link:
            return link
    return ""


def extract_doi(record: dict[str, Any]) -> str:
    identifiers = record.get("identifiers")
    if isinstance(identifiers, dict):
        doi = identifiers.get("doi")
        if isinstance(doi, list):
            for candidate in doi:
                if isinstance(candidate, str) and candidate:
                    return candidate
        elif isinstance(doi, str) and doi:
            return doi
    doi = record.get("doi")
    return doi if isinstance(doi, str) else ""


def normalize_record(
    record: Any,
    record_type: str,
    *,
    prefer: str = PREFERRED_LANGUAGE,
) -> NormalizedItem:
    payload = record if isinstance(record, dict) else {}
    spec = FIELD_TABLE.get(record_type, DEFAULT_SPEC)

    item = NormalizedItem(
        title=_first_text(payload, spec.title, prefer),
        authors=_first_people(payload, spec.authors, prefer),
        venue=_first_text(payload, spec.venue, prefer),
        year=_first_year(payload, spec.date),
        url=extract_url(payload),
        doi=extract_doi(payload),
    )
    if spec.project_fields:
        item.role = _first_text(payload, PROJECT_ROLE_KEYS, prefer)
        item.from_ = _as_text(payload.get("from_date"))
        item.to = _as_text(payload.get("to_date"))
        item.summary = _first_text(payload, PROJECT_SUMMARY_KEYS, prefer)
    return item


def normalize_items(
    records: Any,
    record_type: str,
    *,
    prefer: str = PREFERRED_LANGUAGE,
) -> list[NormalizedItem]:
    """Map raw records to normalized items, preserving input order."""
    if not isinstance(records, (list, tuple)):
        return []
    return [normalize_record(record, record_type, prefer=prefer) for record in records]
