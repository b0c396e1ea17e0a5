"""Static-site generation: render every reachable page and mirror it to disk."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Set
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from docgraph.config import PrerenderConfig
from docgraph.exceptions import FetchError
from docgraph.ingestion.browser import BrowserTransport
from docgraph.ingestion.links import extract_rendered_links
from docgraph.models import ExtractedPage
from docgraph.utils.paths import INDEX_DOCUMENT, to_output_path

LOGGER = logging.getLogger(__name__)

DOCTYPE = "<!DOCTYPE html>"
ROOT_OUTPUT = "index.html"
FLATTENED_CODE_SELECTOR = "code.item-author, code.item-tag, .index li > code"


class PageTransport(Protocol):
    async def fetch(self, path: str) -> str: ...


class FileSink:
    """Write rendered pages below an output directory."""

    def __init__(self, out_dir: Path) -> None:
        self.out_dir = Path(out_dir)

    def write(self, relative_path: str, content: str) -> Path:
        target = self.out_dir / relative_path.lstrip("/")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        LOGGER.info("write: %s", target)
        return target


@dataclass(slots=True)
class SiteCrawlStats:
    written: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def hash_path(page_url: str) -> str:
    """Hash-routed address of a page, e.g. ``/#/notes/`` for ``/notes/index.md``."""
    parts = urlsplit(page_url)
    pathname = parts.path or "/"
    if pathname.endswith("index.html"):
        pathname = pathname[: -len("index.html")]
    fragment = parts.fragment.split("?", 1)[0]
    if fragment.endswith(INDEX_DOCUMENT):
        fragment = fragment[: -len(INDEX_DOCUMENT)]
    return f"{pathname}#{fragment}" if fragment else pathname


def _add_class(tag, name: str) -> None:
    classes = list(tag.get("class") or [])
    if name not in classes:
        classes.append(name)
    tag["class"] = classes


def extract_page(markup: str, path: str, page_url: str, config: PrerenderConfig) -> Optional[ExtractedPage]:
    """Prepare a rendered page for static hosting and collect its document links.

    Returns None when the page shows the error marker.
    """
    soup = BeautifulSoup(markup, "html.parser")
    if soup.select_one(config.error_selector) is not None:
        return None

    links = extract_rendered_links(soup, path)

    if soup.body is not None:
        _add_class(soup.body, "prerender")
    for code in soup.select(FLATTENED_CODE_SELECTOR):
        code.string = code.get_text()
        _add_class(code, "nolink")
    for toolbar in soup.select("div.code-toolbar"):
        pre = toolbar.find("pre")
        if pre is not None:
            toolbar.replace_with(pre.extract())
    for original in soup.select("picture .original"):
        original.decompose()

    bar = soup.select_one("#bar")
    if bar is not None:
        code = soup.new_tag("code", attrs={"class": "item-hash"})
        anchor = soup.new_tag("a", href=hash_path(page_url))
        anchor.string = "Hash"
        code.append(anchor)
        bar.append(code)

    root = soup.html if soup.html is not None else soup
    return ExtractedPage(path=path, markup=str(root), links=links)


class SiteCrawler:
    """Render pages depth first per discovered batch, each path at most once."""

    def __init__(
        self,
        config: PrerenderConfig,
        transport: PageTransport,
        sink: Optional[FileSink] = None,
    ) -> None:
        config.validate()
        self.config = config
        self.transport = transport
        self.sink = sink or FileSink(config.out_dir)
        self.stats = SiteCrawlStats()
        self._rendered: Set[str] = set()
        self._slots = asyncio.Semaphore(max(1, config.max_concurrency))

    @property
    def rendered(self) -> frozenset[str]:
        return frozenset(self._rendered)

    async def run(self) -> SiteCrawlStats:
        await self.render_batch(self.config.roots())
        LOGGER.info("Prerender complete: %d written, %d failed", len(self.stats.written), len(self.stats.failed))
        return self.stats

    async def render_batch(self, paths: Iterable[str]) -> None:
        pending = []
        for path in paths:
            if path in self._rendered:
                continue
            self._rendered.add(path)
            pending.append(self._render_page(path))
        await asyncio.gather(*pending)

    def output_paths(self, path: str) -> List[str]:
        """Files a page is written to; the index document is also the site entry point."""
        target = to_output_path(path)
        if path == self.config.index_document and target != ROOT_OUTPUT:
            return [ROOT_OUTPUT, target]
        return [target]

    async def load_page(self, path: str) -> Optional[ExtractedPage]:
        url = self.config.page_url(path)
        async with self._slots:
            try:
                markup = await self.transport.fetch(path)
            except FetchError as exc:
                LOGGER.error("error: %s (%s)", url, exc.reason or exc)
                return None
        page = extract_page(markup, path, url, self.config)
        if page is None:
            LOGGER.error("error: %s", url)
        return page

    async def _render_page(self, path: str) -> None:
        page = await self.load_page(path)
        if page is None:
            self.stats.failed.append(path)
            return
        try:
            for target in self.output_paths(path):
                self.sink.write(target, DOCTYPE + page.markup)
        except OSError as exc:
            LOGGER.error("Unable to write %s: %s", path, exc)
            self.stats.failed.append(path)
            return
        self.stats.written.append(path)
        await self.render_batch(page.links)


async def prerender(config: PrerenderConfig) -> SiteCrawlStats:
    """Run a full static render of the site with a headless browser."""
    config.validate()
    async with BrowserTransport(config) as transport:
        return await SiteCrawler(config, transport).run()
