"""Document cache with coalescing of concurrent requests."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from docgraph.config import DEFAULT_DATE_FORMAT, DEFAULT_PAGE_ERROR
from docgraph.exceptions import FetchError
from docgraph.index.backlinks import BacklinkIndex
from docgraph.ingestion.expressions import ExpressionEvaluator
from docgraph.ingestion.parser import parse_document
from docgraph.models import Document, FlagSet
from docgraph.utils.paths import shorten_path

LOGGER = logging.getLogger(__name__)

Fetch = Callable[[str], Awaitable[str]]


def create_error_document(path: str, message: str = DEFAULT_PAGE_ERROR, title: Optional[str] = None) -> Document:
    """Placeholder stored when a path cannot be fetched; it has no links."""
    return Document(
        path=path,
        body=message,
        flags=FlagSet(title=title or shorten_path(path)),
        links={},
        is_error=True,
    )


class DocumentCache:
    """Keyed store of parsed documents with at most one fetch in flight per path.

    A caller asking for a path that is already being fetched waits on that
    fetch's completion signal and then reads the stored result.
    """

    def __init__(
        self,
        fetch: Fetch,
        *,
        backlinks: Optional[BacklinkIndex] = None,
        public_path: str = "/",
        page_error: str = DEFAULT_PAGE_ERROR,
        date_format: str = DEFAULT_DATE_FORMAT,
        evaluator: Optional[ExpressionEvaluator] = None,
    ) -> None:
        self.fetch = fetch
        self.backlinks = backlinks if backlinks is not None else BacklinkIndex()
        self.public_path = public_path
        self.page_error = page_error
        self.date_format = date_format
        self.evaluator = evaluator or ExpressionEvaluator()
        self.bypass = False
        self.fetch_count = 0
        self._documents: Dict[str, Document] = {}
        self._in_flight: Dict[str, asyncio.Future[None]] = {}

    @property
    def documents(self) -> Dict[str, Document]:
        return dict(self._documents)

    def __contains__(self, path: object) -> bool:
        return path in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def is_fetching(self, path: str) -> bool:
        return path in self._in_flight

    def clear(self) -> None:
        """Drop every cached document; the backlink index is kept."""
        self._documents.clear()

    async def get_document(self, path: str) -> Document:
        """Return the document for ``path``, fetching it on a miss.

        Never raises for transport failures; an error document is stored
        instead.
        """
        while path in self._in_flight:
            await asyncio.shield(self._in_flight[path])
            if not self.bypass and path in self._documents:
                return self._documents[path]

        if not self.bypass and path in self._documents:
            return self._documents[path]

        signal: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._in_flight[path] = signal
        try:
            document = await self._load(path)
            self._documents[path] = document
        finally:
            del self._in_flight[path]
            if not signal.done():
                signal.set_result(None)
        return document

    async def _load(self, path: str) -> Document:
        self.fetch_count += 1
        try:
            text = await self.fetch(path)
        except FetchError as exc:
            LOGGER.warning("%s", exc)
            return create_error_document(path, self.page_error, exc.title)
        except Exception as exc:
            LOGGER.warning("Failed to fetch %s: %s", path, exc)
            return create_error_document(path, self.page_error)
        return parse_document(
            path,
            text,
            self.backlinks,
            public_path=self.public_path,
            date_format=self.date_format,
            evaluator=self.evaluator,
        )
