"""Breadth-first expansion of the document graph."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence, Set

from docgraph.index.cache import DocumentCache
from docgraph.models import CrawlResult, Document

LOGGER = logging.getLogger(__name__)


class GraphWalker:
    """Explore every document reachable from a set of roots.

    Each round fetches the whole frontier concurrently and only then computes
    the next one, so a round always sees the complete result of the previous
    round. A path is queued at most once per session.
    """

    def __init__(self, cache: DocumentCache, roots: Sequence[str] = ()) -> None:
        self.cache = cache
        self.roots = list(roots)
        self._visited: Set[str] = set()
        self._completed = False
        self._running: Optional[asyncio.Task[CrawlResult]] = None

    @property
    def visited(self) -> frozenset[str]:
        return frozenset(self._visited)

    @property
    def is_complete(self) -> bool:
        return self._completed

    def reset(self) -> None:
        self._visited.clear()
        self._completed = False

    async def fetch_all(self, paths: Iterable[str]) -> List[Document]:
        return list(await asyncio.gather(*(self.cache.get_document(path) for path in paths)))

    def next_frontier(self, documents: Iterable[Document]) -> List[str]:
        """Unvisited document links of ``documents`` in first-seen order.

        Every returned path is marked visited immediately.
        """
        frontier: List[str] = []
        for document in documents:
            for path in document.document_links():
                if path in self._visited:
                    continue
                self._visited.add(path)
                frontier.append(path)
        return frontier

    async def crawl(self, roots: Optional[Sequence[str]] = None) -> CrawlResult:
        """Walk the graph from ``roots`` (the configured roots by default).

        Callers arriving while a walk is running share its result.
        """
        if self._running is not None:
            return await asyncio.shield(self._running)
        if self._completed and not self.cache.bypass:
            return self.result()

        task = asyncio.ensure_future(self._walk(roots))
        self._running = task
        task.add_done_callback(self._finish)
        return await asyncio.shield(task)

    def _finish(self, task: "asyncio.Task[CrawlResult]") -> None:
        if self._running is task:
            self._running = None

    async def _walk(self, roots: Optional[Sequence[str]]) -> CrawlResult:
        roots = list(dict.fromkeys(self.roots if roots is None else roots))
        self._visited.update(roots)
        documents = await self.fetch_all(roots)

        depth = 0
        frontier = self.next_frontier(documents)
        while frontier:
            depth += 1
            LOGGER.debug("Crawl round %d: %d new documents", depth, len(frontier))
            documents = await self.fetch_all(frontier)
            frontier = self.next_frontier(documents)

        self._completed = True
        LOGGER.info("Crawl complete: %d documents, %d rounds", len(self.cache), depth + 1)
        return self.result()

    def result(self) -> CrawlResult:
        return CrawlResult(documents=self.cache.documents, backlinks=self.cache.backlinks.as_dict())
