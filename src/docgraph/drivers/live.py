"""Demand-driven access to the document graph for interactive clients."""

from __future__ import annotations

import logging
from typing import Optional

from docgraph.config import AppConfig
from docgraph.exceptions import ConfigError
from docgraph.index.backlinks import BacklinkIndex
from docgraph.index.cache import DocumentCache, Fetch
from docgraph.index.walker import GraphWalker
from docgraph.ingestion.expressions import ExpressionEvaluator
from docgraph.ingestion.fetcher import HttpFetcher
from docgraph.models import CrawlResult, Document

LOGGER = logging.getLogger(__name__)


class LiveDriver:
    """Owns the cache, backlink index and walker of one browsing session."""

    def __init__(
        self,
        config: AppConfig,
        fetch: Optional[Fetch] = None,
        *,
        evaluator: Optional[ExpressionEvaluator] = None,
    ) -> None:
        if not config.roots():
            raise ConfigError("At least one root path is required")
        if fetch is None:
            config.validate()
            fetch = HttpFetcher(
                config.base_url or "",
                public_path=config.public_path,
                cache_key=config.cache_key,
                timeout=config.timeout,
            )
        self.config = config
        self.fetcher = fetch
        self.backlinks = BacklinkIndex()
        self.cache = DocumentCache(
            fetch,
            backlinks=self.backlinks,
            public_path=config.public_path,
            page_error=config.page_error,
            date_format=config.date_format,
            evaluator=evaluator,
        )
        self.walker = GraphWalker(self.cache, config.roots())

    async def get_file(self, path: str) -> Document:
        return await self.cache.get_document(path)

    async def get_files(self) -> CrawlResult:
        return await self.walker.crawl()

    def is_cached(self) -> bool:
        return not self.cache.bypass

    def disable_cache(self) -> None:
        LOGGER.info("Cache bypass enabled")
        self.cache.bypass = True

    def enable_cache(self) -> None:
        LOGGER.info("Cache bypass disabled")
        self.cache.bypass = False

    def reset(self) -> None:
        """Forget cached documents and visited paths; backlinks are kept."""
        self.cache.clear()
        self.walker.reset()

    async def aclose(self) -> None:
        close = getattr(self.fetcher, "aclose", None)
        if close is not None:
            await close()
