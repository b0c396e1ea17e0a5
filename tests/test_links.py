"""Tests for link extraction."""

from __future__ import annotations

from bs4 import BeautifulSoup

from docgraph.index.backlinks import BacklinkIndex
from docgraph.ingestion.links import extract_links, extract_rendered_links
from docgraph.models import Link


class TestExtractLinks:
    """Test extract_links on markdown bodies."""

    def test_empty_body(self) -> None:
        """No body, no links."""
        assert extract_links("/p.md", "") == {}

    def test_document_link(self) -> None:
        """Rooted .md targets are document links."""
        links = extract_links("/p.md", "See [x](/x.md).")

        assert links == {"/x.md": Link(href="/x.md", is_markdown=True)}

    def test_directory_link_points_at_index(self) -> None:
        """Directory targets resolve to their index document."""
        links = extract_links("/p.md", "[notes](/notes/)")

        assert list(links) == ["/notes/index.md"]
        assert links["/notes/index.md"].is_markdown

    def test_rooted_asset_link(self) -> None:
        """Other rooted targets are plain same-origin links."""
        link = extract_links("/p.md", "[pdf](/files/a.pdf)")["/files/a.pdf"]

        assert link.is_markdown is False
        assert link.is_external is False
        assert link.is_image is False

    def test_external_link(self) -> None:
        """Absolute URLs are external, never documents."""
        link = extract_links("/p.md", "[ext](https://example.com/a.md)")["https://example.com/a.md"]

        assert link.is_external is True
        assert link.is_markdown is False

    def test_protocol_relative_is_not_a_document(self) -> None:
        """Protocol-relative URLs never become document links."""
        links = extract_links("/p.md", "[cdn](//cdn.test/a.md)")

        assert links["//cdn.test/a.md"].is_markdown is False

    def test_image_is_never_a_document(self) -> None:
        """Images are classified as images even with a .md target."""
        links = extract_links("/p.md", "![pic](/img/a.png) ![odd](/weird.md)")

        assert links["/img/a.png"] == Link(href="/img/a.png", is_image=True)
        assert links["/weird.md"].is_markdown is False
        assert links["/weird.md"].is_image is True

    def test_self_reference_dropped(self) -> None:
        """Links to the current document are ignored."""
        assert extract_links("/p.md", "[me](/p.md)") == {}

    def test_first_occurrence_wins(self) -> None:
        """Duplicate keys keep the first link."""
        links = extract_links("/p.md", "[a](/notes/) [b](/notes/index.md) [c](/c.md)")

        assert list(links) == ["/notes/index.md", "/c.md"]

    def test_links_in_code_are_ignored(self) -> None:
        """Code spans and fenced blocks hide link syntax."""
        body = "Use `[x](/x.md)` inline.\n\n```\n[y](/y.md)\n```\n\n[z](/z.md)"

        assert list(extract_links("/p.md", body)) == ["/z.md"]

    def test_links_produced_by_expressions(self) -> None:
        """Inline expressions are expanded before scanning."""
        body = "$$ join('', '[gen](', '/gen.md', ')') $$"

        assert list(extract_links("/p.md", body)) == ["/gen.md"]

    def test_backlinks_recorded_once(self) -> None:
        """Re-extracting the same document is idempotent."""
        backlinks = BacklinkIndex()
        body = "[x](/x.md) ![i](/i.png) [e](https://e.test/x.md)"

        extract_links("/p.md", body, backlinks)
        extract_links("/p.md", body, backlinks)

        assert backlinks.get("/x.md") == ["/p.md"]
        assert "/i.png" not in backlinks
        assert "https://e.test/x.md" not in backlinks


class TestExtractRenderedLinks:
    """Test extract_rendered_links on rendered pages."""

    def test_hash_links_are_rewritten(self) -> None:
        """Hash-routed anchors point at static files afterwards."""
        soup = BeautifulSoup('<a href="#/a.md">A</a><a href="#/notes/">N</a>', "html.parser")

        found = extract_rendered_links(soup, "/index.md")

        assert found == ["/a.md", "/notes/index.md"]
        hrefs = [anchor["href"] for anchor in soup.find_all("a")]
        assert hrefs == ["/a.html", "/notes/index.html"]

    def test_static_links_are_mapped_back(self) -> None:
        """Static .html anchors map to their documents."""
        soup = BeautifulSoup('<a href="/b.html">B</a>', "html.parser")

        assert extract_rendered_links(soup, "/index.md") == ["/b.md"]

    def test_other_links_ignored(self) -> None:
        """External, asset and in-page anchors are skipped."""
        html = (
            '<a href="https://x.test/c.md">X</a><a href="#/search.md?tag=a">T</a>'
            '<a href="#top">Top</a><a href="/file.pdf">F</a><a>none</a>'
        )
        soup = BeautifulSoup(html, "html.parser")

        assert extract_rendered_links(soup, "/index.md") == []

    def test_self_and_duplicates_dropped(self) -> None:
        """The current page and repeated targets are listed once at most."""
        soup = BeautifulSoup(
            '<a href="#/index.md">I</a><a href="#/a.md">A</a><a href="/a.html">A</a>', "html.parser"
        )

        assert extract_rendered_links(soup, "/index.md") == ["/a.md"]
