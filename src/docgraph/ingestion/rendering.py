"""Markdown rendering used for link extraction and the live service."""

from __future__ import annotations

import markdown

from docgraph.ingestion.expressions import ExpressionEvaluator
from docgraph.models import Document

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]


def render_markdown(text: str) -> str:
    """Render markdown text to an HTML fragment."""
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS, output_format="html")


def render(document: Document, evaluator: ExpressionEvaluator | None = None) -> str:
    """Render a document body, with inline expressions expanded."""
    if document.is_error:
        return render_markdown(f"# {document.flags.title}\n\n{document.body}")
    evaluator = evaluator or ExpressionEvaluator()
    body = evaluator.replace(document.path, document.body)
    return render_markdown(f"# {document.flags.title}\n\n{body}" if document.flags.title else body)
