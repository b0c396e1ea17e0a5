"""Tests for the headless browser transport."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, Mock, call, patch

import pytest

from docgraph.config import PrerenderConfig
from docgraph.exceptions import FetchError
from docgraph.ingestion.browser import BrowserTransport, should_block


@pytest.fixture
def prerender_config(tmp_path: Path) -> PrerenderConfig:
    return PrerenderConfig(host="http://site.test", out_dir=tmp_path)


def _started(config: PrerenderConfig, page: AsyncMock) -> BrowserTransport:
    transport = BrowserTransport(config)
    transport._browser = Mock(new_page=AsyncMock(return_value=page))
    return transport


def _page(content: str = "<html><body></body></html>") -> AsyncMock:
    page = AsyncMock()
    page.content.return_value = content
    return page


class TestShouldBlock:
    """Test request filtering."""

    @pytest.mark.parametrize(
        "resource_type,url,blocked",
        [
            ("image", "http://site.test/assets/logo.png", True),
            ("script", "http://site.test/assets/app.js", False),
            ("script", "https://cdn.test/analytics.js", True),
            ("script", "http://site.test/other/app.js", True),
            ("stylesheet", "https://cdn.test/style.css", False),
            ("document", "http://site.test/", False),
        ],
    )
    def test_rules(self, resource_type: str, url: str, blocked: bool) -> None:
        assert should_block(resource_type, url, "/assets/") is blocked


class TestBrowserTransport:
    """Test page loading with a mocked browser."""

    @pytest.mark.asyncio
    async def test_route_aborts_blocked_requests(self, prerender_config: PrerenderConfig) -> None:
        transport = BrowserTransport(prerender_config)
        route = Mock(abort=AsyncMock(), continue_=AsyncMock())
        route.request.resource_type = "image"
        route.request.url = "http://site.test/a.png"

        await transport._route(route)

        route.abort.assert_awaited_once()
        route.continue_.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_route_continues_allowed_requests(self, prerender_config: PrerenderConfig) -> None:
        transport = BrowserTransport(prerender_config)
        route = Mock(abort=AsyncMock(), continue_=AsyncMock())
        route.request.resource_type = "script"
        route.request.url = "http://site.test/assets/app.js"

        await transport._route(route)

        route.continue_.assert_awaited_once()
        route.abort.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fetch_returns_rendered_markup(self, prerender_config: PrerenderConfig) -> None:
        page = _page("<html><body>done</body></html>")
        transport = _started(prerender_config, page)

        markup = await transport.fetch("/a.md")

        assert markup == "<html><body>done</body></html>"
        page.route.assert_awaited_once_with("**/*", transport._route)
        page.goto.assert_awaited_once_with("http://site.test/#/a.md?prerender", timeout=30_000)
        assert page.wait_for_selector.await_args_list == [
            call(prerender_config.ready_selector, timeout=30_000),
            call("a.snippet", state="hidden", timeout=30_000),
        ]
        page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_category_waits_for_list(self, prerender_config: PrerenderConfig) -> None:
        page = _page()
        transport = _started(prerender_config, page)

        await transport.fetch("/category.md")

        assert page.wait_for_selector.await_args_list[-1] == call("ul", timeout=30_000)

    @pytest.mark.asyncio
    async def test_navigation_failure(self, prerender_config: PrerenderConfig) -> None:
        """Browser errors become FetchError and the page is still closed."""
        page = _page()
        page.goto.side_effect = TimeoutError("navigation timed out")
        transport = _started(prerender_config, page)

        with pytest.raises(FetchError, match="navigation timed out"):
            await transport.fetch("/a.md")

        page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_new_page_failure(self, prerender_config: PrerenderConfig) -> None:
        """Failing to open a page is reported as a FetchError."""
        transport = BrowserTransport(prerender_config)
        transport._browser = Mock(new_page=AsyncMock(side_effect=RuntimeError("browser crashed")))

        with pytest.raises(FetchError, match="browser crashed"):
            await transport.fetch("/a.md")

    @pytest.mark.asyncio
    async def test_close_failure_is_logged(self, prerender_config: PrerenderConfig) -> None:
        page = _page("<html></html>")
        page.close.side_effect = RuntimeError("target closed")
        transport = _started(prerender_config, page)

        with patch("docgraph.ingestion.browser.LOGGER") as mock_logger:
            markup = await transport.fetch("/a.md")

        assert markup == "<html></html>"
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_fetch_before_start(self, prerender_config: PrerenderConfig) -> None:
        with pytest.raises(RuntimeError):
            await BrowserTransport(prerender_config).fetch("/a.md")

    @pytest.mark.asyncio
    async def test_close_stops_browser(self, prerender_config: PrerenderConfig) -> None:
        transport = BrowserTransport(prerender_config)
        browser = AsyncMock()
        playwright = AsyncMock()
        transport._browser = browser
        transport._playwright = playwright

        await transport.close()

        browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()
        await transport.close()
        browser.close.assert_awaited_once()
