"""Outgoing link extraction from markdown sources and rendered pages."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from docgraph.index.backlinks import BacklinkIndex
from docgraph.ingestion.expressions import ExpressionEvaluator
from docgraph.ingestion.rendering import render_markdown
from docgraph.models import Link
from docgraph.utils.paths import check_link_path, is_external_link, to_output_path

LOGGER = logging.getLogger(__name__)


def _document_target(href: str) -> str:
    # protocol-relative URLs are never site documents
    if href.startswith("/") and not href.startswith("//"):
        return check_link_path(href)
    return ""


def extract_links(
    path: str,
    body: str,
    backlinks: Optional[BacklinkIndex] = None,
    *,
    evaluator: Optional[ExpressionEvaluator] = None,
) -> Dict[str, Link]:
    """Collect the links and images referenced by a document body.

    Keys are resolved targets; the first occurrence of a key wins and links back
    to ``path`` itself are dropped. Every document link is recorded in
    ``backlinks`` when an index is given.
    """
    if not body:
        return {}
    evaluator = evaluator or ExpressionEvaluator()
    html = render_markdown(evaluator.replace(path, body))
    soup = BeautifulSoup(html, "html.parser")

    links: Dict[str, Link] = {}
    for element in soup.find_all(["a", "img"]):
        if element.name == "a":
            href = element.get("href") or ""
            target = _document_target(href)
            is_image = False
        else:
            href = element.get("src") or ""
            target = ""
            is_image = True
        if not href or (target and target == path):
            continue
        key = target or href
        if key in links:
            continue
        is_markdown = bool(target)
        links[key] = Link(
            href=key,
            is_external=False if is_markdown else is_external_link(href),
            is_markdown=is_markdown,
            is_image=is_image,
        )
        if is_markdown and backlinks is not None:
            backlinks.add(key, path)
    LOGGER.debug("Extracted %d links from %s", len(links), path)
    return links


def extract_rendered_links(soup: BeautifulSoup, path: str) -> List[str]:
    """Collect document paths linked from a rendered page.

    Hash-routed anchors (``#/x.md``) are rewritten in place to the static file
    they will be written to (``/x.html``); static anchors (``/x.html``) are
    mapped back to their document path.
    """
    found: List[str] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if href.startswith("#/"):
            target = check_link_path(href[1:])
            if not target:
                continue
            anchor["href"] = "/" + to_output_path(target)
        elif href.startswith("/") and not href.startswith("//") and href.endswith(".html"):
            target = href[: -len(".html")] + ".md"
        else:
            continue
        if target != path and target not in found:
            found.append(target)
    return found
