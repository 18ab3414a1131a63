"""Parser for Notion workspace exports.

A Notion export is a ZIP of pages, each a Markdown or HTML file named
"<Title> <32-hex id>.md", with subpages and assets in a sibling folder of
the same name. Every page becomes a note; the folder path it sits in
(ids stripped) seeds its tags.

The archive is untrusted input. Entries whose names would escape an
extraction root are rejected, and decompressed bytes are counted as they
stream so a zip bomb aborts the parse long before memory is exhausted:
the total read may not exceed `zip_max_expansion_ratio` times the archive
size, nor `zip_max_total_bytes`.
"""

import io
import logging
import re
import zipfile
import zlib
from posixpath import basename

from mindweave.importer.aggregate import ParseAccumulator
from mindweave.importer.config import ImportLimits
from mindweave.importer.errors import ParserFatalError
from mindweave.importer.guard import Deadline
from mindweave.importer.models import ItemType, ParsedItem, ParseResult
from mindweave.importer.sources import SourceKind
from mindweave.utils.html import HtmlToText, feed_chunks
from mindweave.utils.text import (
    UNTITLED,
    decode_text,
    extract_inline_tags,
    folder_path_to_tags,
    normalize_tags,
    sanitize_title,
    strip_notion_id,
)

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024
PAGE_EXTENSIONS = (".md", ".html")

_IGNORED_PREFIXES = ("__MACOSX/",)
_IGNORED_NAMES = frozenset({".DS_Store", "Thumbs.db"})
_EXPORT_WRAPPER = re.compile(r"^Export-[0-9a-f-]+$", re.IGNORECASE)
_WINDOWS_DRIVE = re.compile(r"^[A-Za-z]:")


class _EntryTooLarge(Exception):
    pass


def is_unsafe_archive_path(name: str) -> bool:
    """True if extracting `name` could write outside the extraction root."""
    if "\x00" in name:
        return True
    normalized = name.replace("\\", "/")
    if normalized.startswith("/") or _WINDOWS_DRIVE.match(normalized):
        return True
    return any(segment == ".." for segment in normalized.split("/"))


def _is_ignored(name: str) -> bool:
    return name.startswith(_IGNORED_PREFIXES) or basename(name) in _IGNORED_NAMES


def _folder_path(name: str) -> str:
    folders = []
    for part in name.split("/")[:-1]:
        if not part or _EXPORT_WRAPPER.match(part):
            continue
        cleaned = strip_notion_id(part)
        if cleaned:
            folders.append(cleaned)
    return "/".join(folders)


class _ExpansionBudget:
    """Running count of decompressed bytes across the whole archive."""

    def __init__(self, archive_size: int, limits: ImportLimits) -> None:
        self.limit = min(
            limits.zip_max_total_bytes,
            int(archive_size * limits.zip_max_expansion_ratio),
        )
        self.used = 0

    def exceeded_message(self) -> str:
        return (
            "Archive expands beyond the allowed size "
            f"({self.limit} bytes); refusing to extract a possible zip bomb."
        )

    def consume(self, n: int) -> None:
        self.used += n
        if self.used > self.limit:
            raise ParserFatalError(self.exceeded_message())


def _read_entry(
    archive: zipfile.ZipFile,
    info: zipfile.ZipInfo,
    budget: _ExpansionBudget,
    max_entry_bytes: int,
    deadline: Deadline,
) -> bytes:
    chunks: list[bytes] = []
    entry_bytes = 0
    with archive.open(info) as stream:
        while chunk := stream.read(READ_CHUNK_BYTES):
            deadline.check()
            budget.consume(len(chunk))
            entry_bytes += len(chunk)
            if entry_bytes > max_entry_bytes:
                raise _EntryTooLarge()
            chunks.append(chunk)
    return b"".join(chunks)


def _parse_markdown(text: str) -> tuple[str | None, str]:
    """Split a page into (title from the leading "# " heading, body)."""
    lines = text.splitlines()
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("# "):
            return stripped[2:].strip() or None, "\n".join(lines[index + 1 :]).strip()
        break
    return None, text.strip()


def _parse_html(text: str, deadline: Deadline) -> tuple[str | None, str]:
    converter = HtmlToText(skip_tags=frozenset({"header"}))
    feed_chunks(converter, text, deadline)
    body = converter.text()
    heading = converter.first_heading
    if heading and body.startswith(heading):
        body = body[len(heading) :].strip()
    return converter.title or heading, body


def _build_page(name: str, text: str, deadline: Deadline) -> ParsedItem | None:
    file_name = basename(name)
    if name.lower().endswith(".html"):
        title, body = _parse_html(text, deadline)
    else:
        title, body = _parse_markdown(text)

    title = sanitize_title(title or strip_notion_id(file_name))
    if not body and title == UNTITLED:
        return None

    folder_path = _folder_path(name)
    metadata: dict = {
        "source": SourceKind.NOTION.value,
        "original_file_name": file_name,
    }
    if folder_path:
        metadata["folder_path"] = folder_path
    return ParsedItem(
        title=title,
        body=body or None,
        type=ItemType.NOTE,
        tags=normalize_tags([*folder_path_to_tags(folder_path), *extract_inline_tags(body)]),
        metadata=metadata,
    )


def parse_notion(
    content: bytes,
    deadline: Deadline | None = None,
    *,
    limits: ImportLimits | None = None,
    check_interval: int = 1,
) -> ParseResult:
    """Parse a Notion ZIP export into note items."""
    limits = limits or ImportLimits()
    acc = ParseAccumulator(deadline, check_interval=check_interval)

    try:
        archive = zipfile.ZipFile(io.BytesIO(content))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, OSError) as e:
        raise ParserFatalError(
            "Could not read the Notion export. The ZIP archive is corrupt or incomplete."
        ) from e

    with archive:
        budget = _ExpansionBudget(len(content), limits)
        pages: list[zipfile.ZipInfo] = []
        for info in archive.infolist():
            name = info.filename
            if info.is_dir() or _is_ignored(name):
                continue
            if is_unsafe_archive_path(name):
                logger.warning("Rejected unsafe archive entry %r", name)
                acc.skip_with_error(name, "Rejected archive entry with an unsafe path")
                continue
            if name.lower().endswith(PAGE_EXTENSIONS):
                pages.append(info)

        # Sizes in the central directory are attacker-controlled, so this is
        # only an early exit; the streaming count below is the real bound.
        if sum(info.file_size for info in pages) > budget.limit:
            raise ParserFatalError(budget.exceeded_message())

        if not pages:
            acc.warn(
                "No content files found in ZIP. Make sure this is a Notion export "
                "with HTML or Markdown format."
            )

        for info in pages:
            name = info.filename
            if info.flag_bits & 0x1:
                acc.skip_with_error(name, "Page is password protected")
                continue
            if info.file_size > limits.zip_max_entry_bytes:
                acc.skip_with_error(name, "Page exceeds the maximum page size")
                continue
            try:
                raw = _read_entry(archive, info, budget, limits.zip_max_entry_bytes, acc.deadline)
            except _EntryTooLarge:
                acc.skip_with_error(name, "Page exceeds the maximum page size")
                continue
            except (zipfile.BadZipFile, zlib.error, EOFError, OSError, NotImplementedError, RuntimeError) as e:
                logger.debug("Unreadable archive entry %r: %s", name, e)
                acc.skip_with_error(name, f"Could not read page from archive: {e}")
                continue

            item = _build_page(name, decode_text(raw), acc.deadline)
            if item is None:
                acc.skip_with_warning(f"Skipped empty page '{name}'")
            else:
                acc.add(item)

    return acc.build()
