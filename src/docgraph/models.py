"""Core DocGraph data models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True, frozen=True)
class DateRange:
    """Dates derived from ``@updated`` flags and the document path.

    ``times`` holds millisecond timestamps, deduplicated and ascending.
    """

    times: List[int] = field(default_factory=list)
    start_date: Optional[str] = None
    end_date: Optional[str] = None


@dataclass(slots=True, frozen=True)
class FlagSet:
    """Metadata declared at the top of a document."""

    title: str = ""
    tags: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    cover: Optional[str] = None
    dates: DateRange = field(default_factory=DateRange)
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Link:
    """Outgoing reference found in a document body."""

    href: str
    is_external: bool = False
    is_markdown: bool = False
    is_image: bool = False


@dataclass(slots=True, frozen=True)
class Document:
    """A fetched and parsed document, or an error placeholder."""

    path: str
    body: str
    flags: FlagSet
    links: Dict[str, Link] = field(default_factory=dict)
    is_error: bool = False

    def document_links(self) -> List[str]:
        """Paths of the documents this one links to, in discovery order."""
        if self.is_error:
            return []
        return [link.href for link in self.links.values() if link.is_markdown]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ExtractedPage:
    """Rendered markup of a page paired with the document paths it links to."""

    path: str
    markup: str
    links: List[str] = field(default_factory=list)


@dataclass(slots=True)
class CrawlResult:
    """Snapshot of the explored graph."""

    documents: Dict[str, Document]
    backlinks: Dict[str, List[str]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": {path: document.to_dict() for path, document in self.documents.items()},
            "backlinks": self.backlinks,
        }
