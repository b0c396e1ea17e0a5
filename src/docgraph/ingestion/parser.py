"""Split raw document text into a body and its metadata flags."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from docgraph.config import DEFAULT_DATE_FORMAT
from docgraph.index.backlinks import BacklinkIndex
from docgraph.ingestion.expressions import ExpressionEvaluator
from docgraph.ingestion.links import extract_links
from docgraph.models import DateRange, Document, FlagSet
from docgraph.utils.paths import add_base_url, is_external_link, shorten_path
from docgraph.utils.text import normalize_tag, split_list

LOGGER = logging.getLogger(__name__)

FLAG_PATTERN = re.compile(r"^@(\S+?):\s*(.+?)\s*$")
TITLE_PATTERN = re.compile(r"^ {0,3}#(?:[ \t]+(.*?))?\s*$")
COVER_PATTERN = re.compile(r"""^!\[(.*?)]\(\s*(.*?)(?:\s+["'].*?["'])?\s*\)$""")
PATH_DATE_PATTERN = re.compile(r"/(\d{4}[/-]\d{2}[/-]\d{2})[/-]")

LIST_FLAGS = ("tags", "updated")


def parse_date(value: str) -> Optional[int]:
    """Convert a raw timestamp or calendar date to epoch milliseconds (UTC)."""
    value = value.strip()
    if not value:
        return None
    try:
        if value.isdigit():
            timestamp = int(value)
            datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)  # range check
            return timestamp
        text = value.replace("/", "-")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
    except (ValueError, OverflowError, OSError):
        LOGGER.debug("Ignoring unparseable date %r", value)
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def format_date(timestamp: int, date_format: str = DEFAULT_DATE_FORMAT) -> str:
    return datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc).strftime(date_format)


def derive_dates(path: str, updated: Iterable[str], date_format: str = DEFAULT_DATE_FORMAT) -> DateRange:
    """Build the date range from ``@updated`` values plus a date in the path."""
    candidates = list(updated)
    match = PATH_DATE_PATTERN.search(path)
    if match:
        candidates.append(match.group(1))

    times = sorted({time for time in map(parse_date, candidates) if time is not None})
    if not times:
        return DateRange()
    return DateRange(
        times=times,
        start_date=format_date(times[0], date_format),
        end_date=format_date(times[-1], date_format),
    )


def _normalize_cover(cover: str, public_path: str) -> str:
    match = COVER_PATTERN.match(cover)
    if match:
        cover = match.group(2)
    if not is_external_link(cover):
        cover = add_base_url(cover, public_path)
    return cover


def parse(
    path: str,
    text: str,
    *,
    public_path: str = "/",
    date_format: str = DEFAULT_DATE_FORMAT,
) -> Tuple[str, FlagSet]:
    """Separate flag lines and the first top-level heading from the body."""
    title = shorten_path(path)
    if not text:
        return "", FlagSet(title=title)

    values: Dict[str, str] = {}
    lists: Dict[str, List[str]] = {name: [] for name in LIST_FLAGS}
    has_heading = False
    lines: List[str] = []
    for raw in text.split("\n"):
        line = raw.rstrip()
        flag = FLAG_PATTERN.match(line.strip())
        if flag:
            name, value = flag.groups()
            if name in LIST_FLAGS:
                lists[name] = split_list(value)
            else:
                values[name] = value
            lines.append("")
            continue
        heading = TITLE_PATTERN.match(line)
        if heading and not has_heading:
            has_heading = True
            if heading.group(1):
                values["title"] = heading.group(1)
            lines.append("")
            continue
        lines.append(line)

    title = values.pop("title", title)
    cover = values.pop("cover", None)
    if cover:
        cover = _normalize_cover(cover, public_path)
    tags = sorted({tag for tag in map(normalize_tag, lists["tags"]) if tag})

    flags = FlagSet(
        title=title,
        tags=tags,
        updated=lists["updated"],
        cover=cover or None,
        dates=derive_dates(path, lists["updated"], date_format),
        extra=values,
    )
    return "\n".join(lines).strip(), flags


def parse_document(
    path: str,
    text: str,
    backlinks: Optional[BacklinkIndex] = None,
    *,
    public_path: str = "/",
    date_format: str = DEFAULT_DATE_FORMAT,
    evaluator: Optional[ExpressionEvaluator] = None,
) -> Document:
    """Parse raw text into a :class:`Document`, recording its backlinks."""
    body, flags = parse(path, text, public_path=public_path, date_format=date_format)
    links = extract_links(path, body, backlinks, evaluator=evaluator)
    return Document(path=path, body=body, flags=flags, links=links)
