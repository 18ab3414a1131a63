"""Cheap format sniffing, run before any parser sees the upload.

Each check is a signature search over the first SNIFF_WINDOW bytes; none
of them attempts a structural parse.
"""

import re
from typing import assert_never

from mindweave.importer.sources import IMPORT_SOURCES, SourceKind

SNIFF_WINDOW = 64 * 1024

TWITTER_PREFIX = re.compile(r"^\s*window\.YTD\.bookmarks?\.part\d+\s*=\s*")

_ZIP_MAGIC = (b"PK\x03\x04", b"PK\x05\x06")
_POCKET_MARKERS = ("pocket export", "getpocket.com", "time_added=")

REJECTION_MESSAGES: dict[SourceKind, str] = {
    SourceKind.BOOKMARKS: "This does not appear to be a valid bookmarks HTML file.",
    SourceKind.POCKET: "This does not appear to be a valid Pocket export file.",
    SourceKind.NOTION: "This does not appear to be a valid Notion export (ZIP archive).",
    SourceKind.EVERNOTE: "This does not appear to be a valid Evernote ENEX file.",
    SourceKind.TWITTER: "This does not appear to be a valid X/Twitter bookmarks.js file.",
}


def _head(content: bytes) -> str:
    return content[:SNIFF_WINDOW].decode("utf-8", errors="ignore").lstrip("\ufeff")


def is_pocket_csv(filename: str | None) -> bool:
    return bool(filename) and filename.lower().endswith(".csv")


def is_bookmarks_file(content: bytes) -> bool:
    return "<!doctype netscape-bookmark-file" in _head(content).lower()


def is_pocket_file(content: bytes) -> bool:
    head = _head(content).lower()
    return any(marker in head for marker in _POCKET_MARKERS)


def is_evernote_file(content: bytes) -> bool:
    return "<en-export" in _head(content).lower()


def is_twitter_bookmarks_file(content: bytes) -> bool:
    return TWITTER_PREFIX.match(_head(content)) is not None


def looks_like_zip(content: bytes) -> bool:
    return content.startswith(_ZIP_MAGIC)


def is_valid_format(source: SourceKind, content: bytes, filename: str | None = None) -> bool:
    """Sniff content for the declared source.

    Pocket CSV uploads are recognised by extension alone. Notion archives
    are not sniffed; an unreadable archive is a fatal parse error instead.
    """
    match source:
        case SourceKind.BOOKMARKS:
            return is_bookmarks_file(content)
        case SourceKind.POCKET:
            return is_pocket_csv(filename) or is_pocket_file(content)
        case SourceKind.NOTION:
            return True
        case SourceKind.EVERNOTE:
            return is_evernote_file(content)
        case SourceKind.TWITTER:
            return is_twitter_bookmarks_file(content)
        case _:
            assert_never(source)


def matching_sources(content: bytes, filename: str | None = None) -> list[SourceKind]:
    """Every source whose signature matches, in registry order.

    Crafted input can match more than one signature; no precedence is
    applied, callers get the full list.
    """
    matches = []
    for source in IMPORT_SOURCES:
        if source == SourceKind.NOTION:
            if looks_like_zip(content):
                matches.append(source)
        elif source == SourceKind.POCKET and is_pocket_csv(filename):
            matches.append(source)
        elif is_valid_format(source, content, filename):
            matches.append(source)
    return matches
