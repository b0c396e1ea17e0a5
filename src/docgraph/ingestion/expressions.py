"""Restricted evaluation of ``$$ expr $$`` spans embedded in documents.

Only literals, the context names ``path`` and ``data`` and calls to functions
registered on the evaluator are accepted; attribute access, operators,
comprehensions and every other construct raise :class:`ExpressionError`.
"""

from __future__ import annotations

import ast
import logging
import posixpath
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from docgraph.exceptions import ExpressionError

LOGGER = logging.getLogger(__name__)

EXPRESSION_PATTERN = re.compile(r"\$\$\s*(.+?)\s*\$\$")


def _date(fmt: str = "%Y-%m-%d") -> str:
    return datetime.now(timezone.utc).strftime(fmt)


def _join(separator: str, *items: Any) -> str:
    if len(items) == 1 and isinstance(items[0], (list, tuple)):
        items = tuple(items[0])
    return str(separator).join(str(item) for item in items)


DEFAULT_FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "upper": lambda text: str(text).upper(),
    "lower": lambda text: str(text).lower(),
    "title": lambda text: str(text).title(),
    "basename": lambda path: posixpath.basename(str(path)),
    "dirname": lambda path: posixpath.dirname(str(path)),
    "join": _join,
    "replace": lambda text, old, new: str(text).replace(str(old), str(new)),
    "len": lambda value: len(value),
    "str": lambda value: str(value),
    "date": _date,
}


class ExpressionEvaluator:
    """Evaluate inline expressions against an allow-listed function registry."""

    def __init__(self, functions: Dict[str, Callable[..., Any]] | None = None) -> None:
        self.functions: Dict[str, Callable[..., Any]] = dict(DEFAULT_FUNCTIONS)
        if functions:
            self.functions.update(functions)

    def register(self, name: str, function: Callable[..., Any]) -> None:
        if not name.isidentifier():
            raise ValueError(f"Invalid function name: {name!r}")
        self.functions[name] = function

    def evaluate(self, expression: str, *, path: str, data: str) -> str:
        try:
            tree = ast.parse(expression.strip(), mode="eval")
        except SyntaxError as exc:
            raise ExpressionError(f"invalid syntax: {exc.msg}") from exc
        value = self._eval(tree.body, {"path": path, "data": data})
        return "" if value is None else str(value)

    def _eval(self, node: ast.AST, names: Dict[str, str]) -> Any:
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Name):
            if node.id in names:
                return names[node.id]
            raise ExpressionError(f"name '{node.id}' is not defined")
        if isinstance(node, (ast.List, ast.Tuple)):
            return [self._eval(item, names) for item in node.elts]
        if isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name):
                raise ExpressionError("only registered functions may be called")
            function = self.functions.get(node.func.id)
            if function is None:
                raise ExpressionError(f"function '{node.func.id}' is not allowed")
            args = [self._eval(arg, names) for arg in node.args]
            if any(kw.arg is None for kw in node.keywords):
                raise ExpressionError("unsupported expression: **kwargs")
            kwargs = {kw.arg: self._eval(kw.value, names) for kw in node.keywords}
            try:
                return function(*args, **kwargs)
            except ExpressionError:
                raise
            except Exception as exc:
                raise ExpressionError(f"{node.func.id}() failed: {type(exc).__name__}: {exc}") from exc
        raise ExpressionError(f"unsupported expression: {type(node).__name__}")

    def replace(self, path: str, data: str) -> str:
        """Substitute every expression span in ``data`` with its value.

        A failing span becomes a visible error annotation.
        """

        def _substitute(match: re.Match[str]) -> str:
            expression = match.group(1)
            try:
                return self.evaluate(expression, path=path, data=data)
            except ExpressionError as exc:
                LOGGER.debug("Expression %r in %s failed: %s", expression, path, exc)
                return error_annotation(expression, exc)

        return EXPRESSION_PATTERN.sub(_substitute, data).strip()


def error_annotation(expression: str, error: Exception) -> str:
    return f"\n\n> **{type(error).__name__}: {error}**\n>\n> `{expression}`\n\n"
