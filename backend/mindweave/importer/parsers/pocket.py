"""Parsers for Pocket exports.

Pocket has shipped two export formats over the years:

- HTML: <h1>Unread</h1> / <h1>Read Archive</h1> sections, each a <ul> of
  <li><a href=... time_added=... tags=...>title</a></li>.
- CSV: title,url,time_added,tags,status with pipe-separated tags.

Pocket's read state is kept as metadata["status"] ("unread" or "archive")
rather than turned into a tag.
"""

import csv
import io
import logging

from mindweave.importer.aggregate import ParseAccumulator
from mindweave.importer.errors import ParserFatalError
from mindweave.importer.guard import Deadline
from mindweave.importer.models import ItemType, ParsedItem, ParseResult
from mindweave.importer.sources import SourceKind
from mindweave.utils.html import scan_anchors
from mindweave.utils.text import normalize_url, parse_date, sanitize_title, split_tags

logger = logging.getLogger(__name__)

URL_HEADERS = {"url", "link"}
TITLE_HEADERS = {"title", "name"}
TAGS_HEADERS = {"tags", "tag"}
DATE_HEADERS = {"time_added", "date", "added"}
STATUS_HEADERS = {"status"}


def _section_status(section: str | None) -> str | None:
    if not section:
        return None
    lowered = section.lower()
    if "unread" in lowered:
        return "unread"
    if "read" in lowered or "archive" in lowered:
        return "archive"
    return None


def _link(title: str | None, url: str, tags: list[str], created: str | None, status: str | None) -> ParsedItem:
    metadata: dict = {"source": SourceKind.POCKET.value}
    if status:
        metadata["status"] = status
    return ParsedItem(
        title=sanitize_title(title or url),
        url=url,
        type=ItemType.LINK,
        tags=tags,
        created_at=parse_date(created),
        metadata=metadata,
    )


def parse_pocket(html: str, deadline: Deadline | None = None, *, check_interval: int = 1) -> ParseResult:
    """Parse a Pocket HTML export."""
    acc = ParseAccumulator(deadline, check_interval=check_interval)
    anchors = scan_anchors(html, acc.deadline)

    if not anchors:
        acc.warn("No items found in Pocket export.")

    for anchor in anchors:
        label = anchor.text or "Unknown"
        if not anchor.href:
            acc.skip_with_warning(f"Skipped '{label}': link has no href")
            continue
        url = normalize_url(anchor.href)
        if url is None:
            acc.skip_with_error(label, f"Invalid URL: {anchor.href}")
            continue
        acc.add(_link(
            anchor.text,
            url,
            split_tags(anchor.attrs.get("tags")),
            anchor.attrs.get("time_added"),
            _section_status(anchor.section),
        ))

    return acc.build()


def _detect_columns(fieldnames: list[str]) -> dict[str, str]:
    """Map logical column names to the header names actually used."""
    mapping: dict[str, str] = {}
    for field in fieldnames:
        normalized = (field or "").strip().lower()
        if normalized in URL_HEADERS:
            mapping.setdefault("url", field)
        elif normalized in TITLE_HEADERS:
            mapping.setdefault("title", field)
        elif normalized in TAGS_HEADERS:
            mapping.setdefault("tags", field)
        elif normalized in DATE_HEADERS:
            mapping.setdefault("date", field)
        elif normalized in STATUS_HEADERS:
            mapping.setdefault("status", field)
    return mapping


def _cell(row: dict[str, str | None], column_map: dict[str, str], field: str) -> str | None:
    column = column_map.get(field)
    if column is None:
        return None
    value = row.get(column)
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _next_row(reader: csv.DictReader, acc: ParseAccumulator) -> dict[str, str | None] | None:
    """Return the next row, recording malformed rows as errors. None at end of file.

    The csv module abandons the rest of a line it cannot read (e.g. a field
    over its field size limit) and resumes at the next one, so a bad row
    only loses itself.
    """
    while True:
        try:
            return next(reader)
        except StopIteration:
            return None
        except csv.Error as e:
            acc.skip_with_error(f"Row {reader.line_num}", f"Malformed CSV row: {e}")


def parse_pocket_csv(text: str, deadline: Deadline | None = None, *, check_interval: int = 1) -> ParseResult:
    """Parse a Pocket CSV export."""
    acc = ParseAccumulator(deadline, check_interval=check_interval)
    reader = csv.DictReader(io.StringIO(text, newline=""))

    try:
        fieldnames = reader.fieldnames
    except csv.Error as e:
        raise ParserFatalError(f"Failed to parse CSV header: {e}") from e
    if not fieldnames:
        raise ParserFatalError("Invalid CSV format. Expected columns: title, url, time_added, tags, status")
    column_map = _detect_columns(list(fieldnames))
    if "url" not in column_map:
        raise ParserFatalError("CSV must have a URL column")
    logger.debug("Pocket CSV columns detected: %s", column_map)

    while (row := _next_row(reader, acc)) is not None:
        if not any(isinstance(v, str) and v.strip() for v in row.values()):
            continue
        row_label = f"Row {reader.line_num}"
        title = _cell(row, column_map, "title")
        raw_url = _cell(row, column_map, "url")
        if not raw_url:
            acc.skip_with_error(title or row_label, "Missing URL")
            continue
        url = normalize_url(raw_url)
        if url is None:
            acc.skip_with_error(title or row_label, f"Invalid URL: {raw_url}")
            continue
        status = _cell(row, column_map, "status")
        acc.add(_link(
            title,
            url,
            split_tags(_cell(row, column_map, "tags")),
            _cell(row, column_map, "date"),
            status.lower() if status else None,
        ))

    return acc.build()
