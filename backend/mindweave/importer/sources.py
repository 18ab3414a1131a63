"""Source registry: the closed set of export formats the importer accepts."""

from dataclasses import dataclass
from enum import StrEnum


class SourceKind(StrEnum):
    BOOKMARKS = "bookmarks"
    POCKET = "pocket"
    NOTION = "notion"
    EVERNOTE = "evernote"
    TWITTER = "twitter"


@dataclass(frozen=True)
class ImportSourceConfig:
    id: SourceKind
    label: str
    description: str
    accepted_mime: frozenset[str]
    accepted_extensions: tuple[str, ...]


IMPORT_SOURCES: dict[SourceKind, ImportSourceConfig] = {
    SourceKind.BOOKMARKS: ImportSourceConfig(
        id=SourceKind.BOOKMARKS,
        label="Browser Bookmarks",
        description="Bookmarks exported from Chrome, Firefox, Safari, or Edge",
        accepted_mime=frozenset({"text/html"}),
        accepted_extensions=(".html", ".htm"),
    ),
    SourceKind.POCKET: ImportSourceConfig(
        id=SourceKind.POCKET,
        label="Pocket",
        description="Saved articles from Pocket (HTML or CSV export)",
        accepted_mime=frozenset({"text/html", "text/csv"}),
        accepted_extensions=(".html", ".htm", ".csv"),
    ),
    SourceKind.NOTION: ImportSourceConfig(
        id=SourceKind.NOTION,
        label="Notion",
        description="Pages from a Notion ZIP export (Markdown or HTML)",
        accepted_mime=frozenset({"application/zip", "application/x-zip-compressed"}),
        accepted_extensions=(".zip",),
    ),
    SourceKind.EVERNOTE: ImportSourceConfig(
        id=SourceKind.EVERNOTE,
        label="Evernote",
        description="Notes from an Evernote ENEX export",
        accepted_mime=frozenset({"application/xml", "text/xml"}),
        accepted_extensions=(".enex",),
    ),
    SourceKind.TWITTER: ImportSourceConfig(
        id=SourceKind.TWITTER,
        label="X / Twitter Bookmarks",
        description="bookmarks.js from an X (Twitter) data archive",
        accepted_mime=frozenset({"application/javascript", "text/javascript"}),
        accepted_extensions=(".js",),
    ),
}


def lookup_source(source_id: str | None) -> ImportSourceConfig | None:
    """Return the registry entry for a discriminator, or None if unknown."""
    if not source_id:
        return None
    try:
        return IMPORT_SOURCES[SourceKind(source_id.strip().lower())]
    except ValueError:
        return None


def list_sources() -> list[ImportSourceConfig]:
    return list(IMPORT_SOURCES.values())
