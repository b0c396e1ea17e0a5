"""Append-only index of which documents link to which."""

from __future__ import annotations

from typing import Dict, Iterator, List


class BacklinkIndex:
    """Multimap from a target path to the distinct source paths referencing it.

    Sources keep first-seen order. Entries are never removed, so repeated
    parsing of the same document is harmless.
    """

    def __init__(self) -> None:
        self._sources: Dict[str, List[str]] = {}

    def add(self, target: str, source: str) -> bool:
        """Record ``source -> target``; return False when already known."""
        sources = self._sources.setdefault(target, [])
        if source in sources:
            return False
        sources.append(source)
        return True

    def get(self, target: str) -> List[str]:
        return list(self._sources.get(target, ()))

    def as_dict(self) -> Dict[str, List[str]]:
        return {target: list(sources) for target, sources in self._sources.items()}

    def __contains__(self, target: object) -> bool:
        return target in self._sources

    def __iter__(self) -> Iterator[str]:
        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)
