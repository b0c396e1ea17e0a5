"""Application configuration defaults."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping
from urllib.parse import urljoin

from docgraph.exceptions import ConfigError

DEFAULT_PAGE_ERROR = "This page could not be loaded."
DEFAULT_DATE_FORMAT = "%Y-%m-%d"


@dataclass(slots=True)
class RootPaths:
    """Canonical paths every crawl starts from, in crawl order."""

    index: str = "/index.md"
    readme: str = "/README.md"
    archive: str = "/archive.md"
    category: str = "/category.md"
    search: str = "/search.md"
    common: str = "/common.md"

    def as_list(self) -> List[str]:
        paths = [self.index, self.readme, self.archive, self.category, self.search, self.common]
        return list(dict.fromkeys(path for path in paths if path))


@dataclass(slots=True)
class AppConfig:
    base_url: str | None = None
    public_path: str = "/"
    paths: RootPaths = field(default_factory=RootPaths)
    cache_key: str | Dict[str, str] | None = None
    page_error: str = DEFAULT_PAGE_ERROR
    date_format: str = DEFAULT_DATE_FORMAT
    timeout: float = 10.0

    @classmethod
    def from_site_config(cls, path: Path, **overrides: Any) -> "AppConfig":
        """Load the site's JSON configuration, then apply keyword overrides."""
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigError(f"Unable to read site configuration {path}: {exc}") from exc
        if not isinstance(payload, Mapping):
            raise ConfigError(f"Site configuration {path} must be a JSON object")

        config = cls()
        raw_paths = payload.get("paths") or {}
        for item in fields(RootPaths):
            if raw_paths.get(item.name):
                setattr(config.paths, item.name, _rooted(raw_paths[item.name]))
        if payload.get("cacheKey"):
            config.cache_key = payload["cacheKey"]
        messages = payload.get("messages") or {}
        if messages.get("pageError"):
            config.page_error = messages["pageError"]
        if payload.get("publicPath"):
            config.public_path = payload["publicPath"]
        if payload.get("baseUrl"):
            config.base_url = payload["baseUrl"]

        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """Build settings from ``DOCGRAPH_*`` variables, reading the site config if one is named."""
        env = os.environ if environ is None else environ
        overrides = {
            "base_url": env.get("DOCGRAPH_BASE_URL") or None,
            "public_path": env.get("DOCGRAPH_PUBLIC_PATH") or None,
        }
        site_config = env.get("DOCGRAPH_SITE_CONFIG")
        if site_config:
            return cls.from_site_config(Path(site_config), **overrides)
        config = cls()
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config

    def roots(self) -> List[str]:
        return self.paths.as_list()

    def validate(self) -> None:
        if not self.base_url:
            raise ConfigError("A base URL to fetch documents from is required")
        if not self.roots():
            raise ConfigError("At least one root path is required")


@dataclass(slots=True)
class PrerenderConfig:
    host: str | None = None
    out_dir: Path | None = None
    index_path: str = "/"
    index_file: str = "index.md"
    category_file: str = "category.md"
    asset_prefix: str = "/assets/"
    prerender_query: str = "prerender"
    ready_selector: str = "main:not(.slide-fade-enter-active)"
    pending_selector: str = "a.snippet"
    error_selector: str = "main.error"
    list_selector: str = "ul"
    max_concurrency: int = 8
    timeout_ms: int = 30_000
    extra_roots: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PrerenderConfig":
        env = os.environ if environ is None else environ
        config = cls()
        config.host = env.get("PRERENDER_HOST") or None
        out_dir = env.get("PRERENDER_DIR")
        config.out_dir = Path(out_dir) if out_dir else None
        config.index_path = env.get("DOCGRAPH_INDEX_PATH", config.index_path)
        config.index_file = env.get("DOCGRAPH_INDEX_FILE", config.index_file)
        config.category_file = env.get("DOCGRAPH_CATEGORY_FILE", config.category_file)
        return config

    @property
    def index_url(self) -> str:
        if not self.host:
            raise ConfigError("PRERENDER_HOST is not set")
        return urljoin(self.host, self.index_path)

    @property
    def index_document(self) -> str:
        return _rooted(self.index_file)

    @property
    def category_document(self) -> str:
        return _rooted(self.category_file)

    def roots(self) -> List[str]:
        return list(dict.fromkeys([self.index_document, *map(_rooted, self.extra_roots)]))

    def page_url(self, path: str) -> str:
        url = f"{self.index_url}#{path}"
        if self.prerender_query:
            url += f"?{self.prerender_query}"
        return url

    def validate(self) -> None:
        if not self.host:
            raise ConfigError("PRERENDER_HOST is not set")
        if self.out_dir is None:
            raise ConfigError("PRERENDER_DIR is not set")
        if not self.index_file:
            raise ConfigError("An index file is required")


def _rooted(path: str) -> str:
    return path if path.startswith("/") else "/" + path
