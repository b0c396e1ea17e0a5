"""Text helpers for flag values."""

from __future__ import annotations

import re
from typing import Iterable, List

LIST_SEPARATORS = re.compile(r"[,，、]")


def trim_list(items: Iterable[str], *, distinct: bool = True) -> List[str]:
    """Strip every item and drop empty ones, optionally removing duplicates.

    Order of first occurrence is preserved.
    """
    trimmed = [item.strip() for item in items]
    trimmed = [item for item in trimmed if item]
    if not distinct:
        return trimmed
    return list(dict.fromkeys(trimmed))


def split_list(text: str) -> List[str]:
    """Split a multi-value flag on ASCII, fullwidth and ideographic commas."""
    return sorted(trim_list(LIST_SEPARATORS.split(text)))


def normalize_tag(tag: str) -> str:
    """Trim every ``/``-separated segment of a hierarchical tag."""
    return "/".join(trim_list(tag.split("/"), distinct=False))
