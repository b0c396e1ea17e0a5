"""Headless browser transport used to capture rendered pages.

Uses Playwright's async API with Chromium. Images and scripts served from
outside the asset prefix are blocked so every navigation stays cheap.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit

from docgraph.config import PrerenderConfig
from docgraph.exceptions import ConfigError, FetchError

LOGGER = logging.getLogger(__name__)


def should_block(resource_type: str, url: str, asset_prefix: str) -> bool:
    """Decide whether a page subrequest is aborted."""
    if resource_type == "image":
        return True
    if resource_type == "script":
        return not urlsplit(url).path.startswith(asset_prefix)
    return False


class BrowserTransport:
    """Navigate browser pages to hash-routed document views and return their DOM."""

    def __init__(self, config: PrerenderConfig) -> None:
        self.config = config
        self._playwright: Any = None
        self._browser: Any = None

    async def start(self) -> None:
        try:
            from playwright.async_api import async_playwright
        except ImportError as exc:  # pragma: no cover - depends on optional extra
            raise ConfigError(
                "Playwright is not installed. Install the browser extras with "
                "\"python -m pip install '.[browser]'\" and run 'playwright install chromium'"
            ) from exc
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=True)

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def __aenter__(self) -> "BrowserTransport":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _route(self, route: Any) -> None:
        request = route.request
        if should_block(request.resource_type, request.url, self.config.asset_prefix):
            await route.abort()
        else:
            await route.continue_()

    async def fetch(self, path: str) -> str:
        """Render ``path`` and return the page's final markup."""
        if self._browser is None:
            raise RuntimeError("BrowserTransport used before start()")
        url = self.config.page_url(path)
        LOGGER.info("load: %s", url)
        page = None
        try:
            page = await self._browser.new_page()
            await page.route("**/*", self._route)
            await page.goto(url, timeout=self.config.timeout_ms)
            await self._wait_until_ready(page, path)
            return await page.content()
        except Exception as exc:
            raise FetchError(path, reason=f"{type(exc).__name__}: {exc}") from exc
        finally:
            if page is not None:
                await self._close_page(page, url)

    async def _close_page(self, page: Any, url: str) -> None:
        try:
            await page.close()
        except Exception as exc:
            LOGGER.warning("Unable to close page %s: %s", url, exc)

    async def _wait_until_ready(self, page: Any, path: str) -> None:
        timeout = self.config.timeout_ms
        await page.wait_for_selector(self.config.ready_selector, timeout=timeout)
        await page.wait_for_selector(self.config.pending_selector, state="hidden", timeout=timeout)
        if path == self.config.category_document:
            await page.wait_for_selector(self.config.list_selector, timeout=timeout)
