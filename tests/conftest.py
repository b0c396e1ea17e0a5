"""Shared fixtures for DocGraph tests."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Union

import pytest

from docgraph.config import AppConfig
from docgraph.exceptions import FetchError


class FakeFetcher:
    """In-memory transport recording every request."""

    def __init__(self, pages: Dict[str, Union[str, Exception]], *, delay: float = 0.0) -> None:
        self.pages = dict(pages)
        self.delay = delay
        self.calls: List[str] = []

    async def __call__(self, path: str) -> str:
        self.calls.append(path)
        await asyncio.sleep(self.delay)
        value = self.pages.get(path)
        if value is None:
            raise FetchError(path, 404, "Not Found")
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def site_pages() -> Dict[str, str]:
    """A small cyclic site with one dangling link."""
    return {
        "/index.md": "# Home\n@tags: blog\n[About](/about.md) and [Notes](/notes/)",
        "/about.md": "# About\nBack [home](/index.md), see [notes](/notes/index.md).",
        "/notes/index.md": "# Notes\n- [First](/notes/2021-03-04-first.md)\n- [Gone](/gone.md)",
        "/notes/2021-03-04-first.md": "# First\n@updated: 2021-05-01\nUp to [notes](/notes/)",
    }


@pytest.fixture
def config() -> AppConfig:
    config = AppConfig(base_url="http://site.test")
    config.paths.readme = ""
    config.paths.archive = ""
    config.paths.category = ""
    config.paths.search = ""
    config.paths.common = ""
    return config
