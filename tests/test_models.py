"""Tests for data models."""

from __future__ import annotations

import dataclasses

import pytest

from docgraph.models import CrawlResult, Document, FlagSet, Link


def _document(**kwargs) -> Document:
    links = {
        "/a.md": Link("/a.md", is_markdown=True),
        "https://x.test": Link("https://x.test", is_external=True),
        "/b.md": Link("/b.md", is_markdown=True),
        "/i.png": Link("/i.png", is_image=True),
    }
    return Document(path="/p.md", body="text", flags=FlagSet(title="P"), links=links, **kwargs)


class TestDocument:
    """Test Document helpers."""

    def test_document_links_in_order(self) -> None:
        assert _document().document_links() == ["/a.md", "/b.md"]

    def test_error_document_has_no_document_links(self) -> None:
        assert _document(is_error=True).document_links() == []

    def test_is_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            _document().body = "changed"  # type: ignore[misc]

    def test_to_dict(self) -> None:
        payload = _document().to_dict()

        assert payload["path"] == "/p.md"
        assert payload["flags"]["title"] == "P"
        assert payload["flags"]["dates"] == {"times": [], "start_date": None, "end_date": None}
        assert payload["links"]["/a.md"] == {
            "href": "/a.md",
            "is_external": False,
            "is_markdown": True,
            "is_image": False,
        }


class TestCrawlResult:
    def test_to_dict(self) -> None:
        document = _document()
        result = CrawlResult(documents={"/p.md": document}, backlinks={"/a.md": ["/p.md"]})

        payload = result.to_dict()

        assert list(payload) == ["files", "backlinks"]
        assert payload["files"]["/p.md"]["body"] == "text"
        assert payload["backlinks"] == {"/a.md": ["/p.md"]}
