"""Normalisation helpers shared by all import parsers."""

import re
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from urllib.parse import unquote, urlsplit

UNTITLED = "Untitled"
MAX_TITLE_LENGTH = 500
MAX_TAG_LENGTH = 50

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_TAG_INVALID = re.compile(r"[^a-z0-9_-]")
_TAG_SEPARATORS = re.compile(r"[,|]")
_FOLDER_SEPARATORS = re.compile(r"[/\\>]+")
_INLINE_TAG = re.compile(r"(?<![\w/&#])#([A-Za-z][A-Za-z0-9_-]{1,29})\b")
_EVERNOTE_DATE = re.compile(r"^(\d{8}T\d{6})Z?$")
# "host:8080" is a port, not a scheme.
_EXPLICIT_SCHEME = re.compile(r"^([a-z][a-z0-9+.-]*):(?!\d)", re.IGNORECASE)
_WEB_SCHEMES = frozenset({"http", "https"})

# Root folders every browser creates; they carry no meaning as tags.
_ROOT_FOLDERS = frozenset({
    "bookmarks",
    "bookmarks bar",
    "bookmarks menu",
    "bookmarks toolbar",
    "other bookmarks",
    "mobile bookmarks",
    "favorites",
    "favorites bar",
    "unfiled bookmarks",
    "root",
    "export",
    "exported",
})

_EARLIEST_DATE = datetime(1990, 1, 1, tzinfo=UTC)


def decode_text(content: bytes) -> str:
    """Decode upload bytes as UTF-8 (BOM tolerated), falling back to Latin-1."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def sanitize_title(title: str | None) -> str:
    if not title:
        return UNTITLED
    cleaned = _CONTROL_CHARS.sub("", " ".join(title.split()))
    if len(cleaned) > MAX_TITLE_LENGTH:
        cleaned = cleaned[: MAX_TITLE_LENGTH - 3] + "..."
    return cleaned or UNTITLED


def truncate(text: str, limit: int, suffix: str = "…") -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + suffix


def normalize_tag(tag: str) -> str:
    normalized = _TAG_INVALID.sub("-", tag.strip().lower())
    normalized = re.sub(r"-+", "-", normalized).strip("-")
    return normalized[:MAX_TAG_LENGTH]


def normalize_tags(tags: Iterable[str | None]) -> list[str]:
    """Normalize and de-duplicate tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        if not tag:
            continue
        normalized = normalize_tag(tag)
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


def split_tags(raw: str | None) -> list[str]:
    """Split a multi-valued tags field on commas or pipes."""
    if not raw:
        return []
    return normalize_tags(_TAG_SEPARATORS.split(raw))


def folder_path_to_tags(folder_path: str | None) -> list[str]:
    """"Bookmarks Bar/Development/Python" -> ["development", "python"]."""
    if not folder_path:
        return []
    parts = (p.strip() for p in _FOLDER_SEPARATORS.split(folder_path))
    return normalize_tags(p for p in parts if p and p.lower() not in _ROOT_FOLDERS)


def extract_inline_tags(text: str | None) -> list[str]:
    """Collect #hashtags from free text."""
    if not text:
        return []
    return normalize_tags(_INLINE_TAG.findall(text))


def url_scheme(url: str | None) -> str | None:
    """Return the lowercased scheme a value spells out, or None if it has none."""
    if not url:
        return None
    match = _EXPLICIT_SCHEME.match(url.strip())
    return match.group(1).lower() if match else None


def normalize_url(url: str | None) -> str | None:
    """Return an absolute http(s) URL, or None if the value is not one.

    A missing scheme is assumed to be https. Any other explicit scheme
    (mailto:, ftp:, javascript:...) is rejected.
    """
    if not url:
        return None
    candidate = url.strip()
    if not candidate:
        return None
    scheme = url_scheme(candidate)
    if scheme is not None and scheme not in _WEB_SCHEMES:
        return None
    if not re.match(r"^https?://", candidate, re.IGNORECASE):
        if scheme is not None:
            return None
        candidate = "https://" + candidate
    if any(ch.isspace() for ch in candidate):
        return None
    try:
        parts = urlsplit(candidate)
        # Accessing .port validates it.
        parts.port
    except ValueError:
        return None
    if not parts.hostname:
        return None
    return candidate


def strip_notion_id(name: str) -> str:
    """Remove the id Notion appends to exported file and folder names.

    "Reading List 0123456789abcdef0123456789abcdef.md" -> "Reading List"
    """
    name = re.sub(r"\.(html|md)$", "", name, flags=re.IGNORECASE)
    name = unquote(name)
    name = re.sub(r"\s+[0-9a-f]{32}$", "", name, flags=re.IGNORECASE)
    name = re.sub(r"\s+\([0-9a-f-]+\)$", "", name, flags=re.IGNORECASE)
    return name.strip()


def parse_date(value: str | int | float | None) -> datetime | None:
    """Parse the date formats found in exports into an aware UTC datetime.

    Accepts epoch seconds or milliseconds (numbers or digit strings), ISO 8601
    and Evernote's compact YYYYMMDDTHHMMSSZ. Dates before 1990 or more than a
    day in the future are treated as garbage and dropped.
    """
    if value is None or value == "":
        return None

    parsed: datetime | None = None
    if isinstance(value, (int, float)) or (isinstance(value, str) and value.strip().isdigit()):
        timestamp = float(value)
        if timestamp > 1e12:
            timestamp /= 1000
        try:
            parsed = datetime.fromtimestamp(timestamp, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        text = value.strip()
        compact = _EVERNOTE_DATE.match(text)
        try:
            if compact:
                parsed = datetime.strptime(compact.group(1), "%Y%m%dT%H%M%S")
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        parsed = parsed.astimezone(UTC)

    if parsed < _EARLIEST_DATE or parsed > datetime.now(UTC) + timedelta(days=1):
        return None
    return parsed
