from __future__ import annotations

from bs4 import BeautifulSoup

from labsite.config_loader import LabConfig
from labsite.rendering import (
    FilterState,
    Sections,
    filter_items,
    render_page,
    render_projects,
    render_publications,
    year_options,
)
from labsite.researchmap.models import NormalizedItem


def _items() -> list[NormalizedItem]:
    return [
        NormalizedItem(title="Graph Learning", authors="Ada Lovelace", venue="ML Journal", year="2023"),
        NormalizedItem(title="Social Networks", authors="Grace Hopper", venue="Sociology Review", year="2022"),
        NormalizedItem(title="Undated Note", authors="", venue="", year=""),
        NormalizedItem(title="Survey Methods", authors="Alan Turing", venue="Stats", year="2023"),
    ]


def test_filter_by_query_is_case_insensitive_substring() -> None:
    result = filter_items(_items(), FilterState(query="  GRAPH "))
    assert [item.title for item in result.items] == ["Graph Learning"]


def test_query_matching_only_authors_includes_item() -> None:
    result = filter_items(_items(), FilterState(query="hopper"))
    assert [item.title for item in result.items] == ["Social Networks"]


def test_query_matches_year_and_venue() -> None:
    assert filter_items(_items(), FilterState(query="2022")).count == 1
    assert filter_items(_items(), FilterState(query="stats")).count == 1


def test_year_filter_combines_with_query() -> None:
    assert filter_items(_items(), FilterState(year="2023")).count == 2
    result = filter_items(_items(), FilterState(query="survey", year="2023"))
    assert [item.title for item in result.items] == ["Survey Methods"]
    assert filter_items(_items(), FilterState(query="survey", year="2022")).count == 0


def test_empty_filter_passes_everything() -> None:
    result = filter_items(_items(), FilterState())
    assert result.count == 4
    assert result.count_label == "4 items"


def test_filter_is_pure_and_count_ignores_truncation() -> None:
    items = _items()
    state = FilterState(query="a")
    first = filter_items(items, state)
    second = filter_items(items, state)
    assert first.items == second.items
    assert first.count == second.count == len(first.items)
    assert len(first.visible(1)) == 1
    assert first.count == len(first.items)
    assert first.visible(0) == []


def test_year_options_sorted_descending_without_blanks() -> None:
    assert year_options(_items()) == ["2023", "2022"]


def test_render_publications_truncates_and_escapes() -> None:
    items = [
        NormalizedItem(title="<script>alert(1)</script>", url="https://example.org/a?x=1&y=2", doi="10.1/x"),
        NormalizedItem(title=""),
        NormalizedItem(title="Third"),
    ]
    html = render_publications(filter_items(items, FilterState()), max_items=2)
    soup = BeautifulSoup(html, "html.parser")
    rows = soup.find_all("li")
    assert len(rows) == 2
    assert "<script>" not in html
    assert rows[0].strong.get_text() == "<script>alert(1)</script>"
    links = {a.get_text(): a["href"] for a in rows[0].find_all("a")}
    assert links == {"link": "https://example.org/a?x=1&y=2", "doi": "https://doi.org/10.1%2Fx"}
    assert rows[1].strong.get_text() == "(no title)"


def test_render_projects_shows_period_role_and_summary() -> None:
    project = NormalizedItem(
        title="Grant",
        role="PI",
        from_="2021-04",
        to="2025-03",
        summary="Studying things.",
        url="https://example.org/grant",
    )
    soup = BeautifulSoup(render_projects([project], max_items=5), "html.parser")
    card = soup.find("div", class_="card")
    assert card.h3.get_text() == "Grant"
    assert "PI · 2021-04 – 2025-03" in card.get_text()
    assert card.find("a")["href"] == "https://example.org/grant"
    assert card.find("p").get_text() == "Studying things."


def test_render_page_reports_full_count_with_truncated_rows() -> None:
    sections = Sections(publications=_items(), talks=[], projects=[])
    html = render_page(
        lab=LabConfig(name_en="Test Lab", email="lab@example.org"),
        sections=sections,
        filter_state=FilterState(year="2023"),
        status="cache: (none)",
        max_items=1,
        export_urls={"publications": "/export/publications.json", "talks": "t.json", "projects": "p.json"},
    )
    soup = BeautifulSoup(html, "html.parser")
    assert soup.find(id="pubCount").get_text() == "2 items"
    assert len(soup.find(id="pubList").find_all("li")) == 1
    assert soup.find(id="labName").get_text() == "Test Lab"
    assert soup.find(id="labEmail")["href"] == "mailto:lab@example.org"
    assert soup.find(id="labGithub").get_text() == "(set in site.config.json)"
    assert soup.find(id="dataStatus").get_text() == "cache: (none)"
    assert soup.find(id="mPapers").get_text() == "4"
    options = [option["value"] for option in soup.find(id="yearFilter").find_all("option")]
    assert options == ["", "2023", "2022"]
    assert soup.find(id="yearFilter").find("option", selected=True)["value"] == "2023"
