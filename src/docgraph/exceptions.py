"""Exceptions raised by DocGraph."""

from __future__ import annotations


class DocGraphError(Exception):
    """Base class for all DocGraph errors."""


class ConfigError(DocGraphError):
    """Required configuration is missing or invalid."""


class ExpressionError(DocGraphError):
    """An inline expression could not be evaluated."""


class FetchError(DocGraphError):
    """A document could not be retrieved by the transport."""

    def __init__(self, path: str, status: int | None = None, reason: str = "") -> None:
        self.path = path
        self.status = status
        self.reason = reason
        detail = f"{status} {reason}".strip() if status is not None else reason
        super().__init__(f"Failed to fetch {path}: {detail}" if detail else f"Failed to fetch {path}")

    @property
    def title(self) -> str | None:
        """Short status line such as ``404 Not Found``, if the failure had a status."""
        if self.status is None:
            return None
        return f"{self.status} {self.reason}".strip()
