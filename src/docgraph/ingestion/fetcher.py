"""HTTP transport retrieving raw document text."""

from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx

from docgraph.exceptions import FetchError
from docgraph.utils.paths import add_base_url, add_cache_key

LOGGER = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Accept": "text/markdown, text/plain;q=0.9, */*;q=0.5"}


class HttpFetcher:
    """Fetch documents from the site over HTTP.

    Every request carries the configured cache key, either one global value or a
    per-path mapping. Failures surface as :class:`FetchError`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        public_path: str = "/",
        cache_key: str | Dict[str, str] | None = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url
        self.public_path = public_path
        self.cache_key = cache_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=DEFAULT_HEADERS,
            follow_redirects=True,
        )

    def url_for(self, path: str) -> str:
        return add_base_url(add_cache_key(path, self.cache_key), self.public_path)

    async def __call__(self, path: str) -> str:
        return await self.fetch(path)

    async def fetch(self, path: str) -> str:
        url = self.url_for(path)
        LOGGER.debug("GET %s", url)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(path, exc.response.status_code, exc.response.reason_phrase) from exc
        except httpx.HTTPError as exc:
            raise FetchError(path, reason=str(exc) or type(exc).__name__) from exc
        return response.text.strip()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
