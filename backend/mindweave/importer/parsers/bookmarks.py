"""Parser for browser bookmark exports (Netscape Bookmark File format).

Chrome, Firefox, Safari and Edge all export the same loosely structured
HTML: folders are <H3> headings followed by a nested <DL>, bookmarks are
<DT><A HREF=...> entries. Enclosing folder names become tags.
"""

from mindweave.importer.aggregate import ParseAccumulator
from mindweave.importer.guard import Deadline
from mindweave.importer.models import ItemType, ParsedItem, ParseResult
from mindweave.importer.sources import SourceKind
from mindweave.utils.html import Anchor, scan_anchors
from mindweave.utils.text import (
    folder_path_to_tags,
    normalize_url,
    parse_date,
    sanitize_title,
    url_scheme,
)

WEB_SCHEMES = ("http", "https")


def _build_item(anchor: Anchor, url: str) -> ParsedItem:
    metadata: dict = {"source": SourceKind.BOOKMARKS.value}
    if anchor.folder_path:
        metadata["folder_path"] = anchor.folder_path
    return ParsedItem(
        title=sanitize_title(anchor.text or url),
        url=url,
        type=ItemType.LINK,
        tags=folder_path_to_tags(anchor.folder_path),
        created_at=parse_date(anchor.attrs.get("add_date")),
        metadata=metadata,
    )


def parse_bookmarks(html: str, deadline: Deadline | None = None, *, check_interval: int = 1) -> ParseResult:
    """Parse a bookmarks HTML export into link items."""
    acc = ParseAccumulator(deadline, check_interval=check_interval)
    anchors = scan_anchors(html, acc.deadline)

    if not anchors:
        acc.warn("No bookmarks found in file. Make sure this is a valid bookmarks HTML export.")

    for anchor in anchors:
        label = anchor.text or "Unknown"
        href = anchor.href
        if not href:
            acc.skip_with_warning(f"Skipped '{label}': anchor has no href (folder heading or empty entry)")
            continue
        # Bookmarklets, mail links, browser-internal pages and the like.
        scheme = url_scheme(href)
        if scheme is not None and scheme not in WEB_SCHEMES:
            acc.skip_with_warning(f"Skipped '{label}': unsupported link type '{scheme}:'")
            continue

        url = normalize_url(href)
        if url is None:
            acc.skip_with_error(label, f"Invalid URL: {href}")
            continue
        acc.add(_build_item(anchor, url))

    return acc.build()
