"""Helpers for canonical document paths and URLs."""

from __future__ import annotations

from typing import Mapping
from urllib.parse import urlsplit

DOCUMENT_SUFFIX = ".md"
INDEX_DOCUMENT = "index.md"


def check_link_path(path: str) -> str:
    """Return the canonical document path for a link target, or ``""``.

    Targets ending in ``.md`` are kept, directory targets ending in ``/`` point
    at their ``index.md``; anything else is not a document.
    """
    if path.endswith(DOCUMENT_SUFFIX):
        return path
    if path.endswith("/"):
        return path + INDEX_DOCUMENT
    return ""


def shorten_path(path: str) -> str:
    """Drop a trailing ``index.md`` so directory indexes read as ``/dir/``."""
    if path.endswith("/" + INDEX_DOCUMENT):
        return path[: -len(INDEX_DOCUMENT)]
    return path


def is_external_link(href: str) -> bool:
    """True when ``href`` is an absolute URL with a host."""
    try:
        parts = urlsplit(href)
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)


def add_base_url(path: str, public_path: str = "/") -> str:
    """Root ``path`` under the site's public path."""
    base = public_path if public_path.endswith("/") else public_path + "/"
    return base + path.lstrip("/")


def add_cache_key(path: str, cache_key: str | Mapping[str, str] | None) -> str:
    """Append a cache-busting query taken from a global key or a per-path mapping."""
    if isinstance(cache_key, Mapping):
        cache_key = cache_key.get(path)
    return f"{path}?{cache_key}" if cache_key else path


def to_output_path(path: str) -> str:
    """Map a document path to the relative path of its rendered HTML file."""
    relative = path.lstrip("/")
    if relative.endswith(DOCUMENT_SUFFIX):
        relative = relative[: -len(DOCUMENT_SUFFIX)] + ".html"
    return relative
