"""Streaming HTML helpers built on html.parser.

Export files are often invalid HTML (Netscape bookmark files never close
their <DT> tags), so nothing here builds a tree. Input is fed in fixed-size
chunks and the deadline is polled between chunks, which keeps a pathological
document from pinning a worker past the parse budget.
"""

import re
from dataclasses import dataclass, field
from html.parser import HTMLParser

from mindweave.importer.guard import Deadline

FEED_CHUNK_CHARS = 64 * 1024

_BLOCK_TAGS = frozenset({
    "address", "article", "blockquote", "br", "dd", "div", "dl", "dt",
    "footer", "h1", "h2", "h3", "h4", "h5", "h6", "hr", "li", "ol", "p",
    "pre", "section", "table", "tr", "ul",
})
_ALWAYS_SKIPPED = frozenset({"script", "style", "head", "noscript", "template"})
_VOID_TAGS = frozenset({"br", "hr", "img", "meta", "link", "input", "en-media", "en-todo"})


def feed_chunks(parser: HTMLParser, text: str, deadline: Deadline | None = None) -> None:
    """Feed text to parser chunk by chunk, polling the deadline in between."""
    for start in range(0, len(text), FEED_CHUNK_CHARS):
        if deadline is not None:
            deadline.check()
        parser.feed(text[start : start + FEED_CHUNK_CHARS])
    parser.close()


def tidy_text(text: str) -> str:
    """Collapse runs of spaces, strip lines, and keep at most one blank line."""
    lines = [re.sub(r"[ \t\xa0]+", " ", line).strip() for line in text.splitlines()]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


class HtmlToText(HTMLParser):
    """Convert HTML (or Evernote ENML) to readable plain text.

    The document <title> and the first <h1> are captured separately so
    callers can use them as a title. Tags in `skip_tags` are dropped with
    their content.
    """

    def __init__(self, *, skip_tags: frozenset[str] = frozenset(), media_labels: dict[str, str] | None = None) -> None:
        super().__init__(convert_charrefs=True)
        self._skip_tags = _ALWAYS_SKIPPED | skip_tags
        self._media_labels = media_labels or {}
        self._chunks: list[str] = []
        self._skip_depth = 0
        self._in_title = False
        self._in_heading = False
        self._title_parts: list[str] = []
        self._heading_parts: list[str] = []
        self.title: str | None = None
        self.first_heading: str | None = None

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "body":
            # An unclosed <head> ends where the body starts.
            self._skip_depth = 0
            return
        if tag == "title":
            self._in_title = True
        if tag == "h1" and self.first_heading is None:
            self._in_heading = True
        if tag in self._skip_tags or tag == "en-crypt":
            if tag not in _VOID_TAGS:
                self._skip_depth += 1
            if tag == "en-crypt" and self._skip_depth == 1:
                self._chunks.append("[encrypted content]")
            return
        if self._skip_depth:
            return

        attributes = dict(attrs)
        if tag == "li":
            self._chunks.append("\n• ")
        elif tag in _BLOCK_TAGS:
            self._chunks.append("\n")
        elif tag == "en-todo":
            checked = (attributes.get("checked") or "").lower() == "true"
            self._chunks.append("[x] " if checked else "[ ] ")
        elif tag == "en-media":
            label = self._media_labels.get(attributes.get("hash") or "")
            self._chunks.append(f"[attachment: {label}]" if label else "[attachment]")

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.handle_starttag(tag, attrs)
        if tag not in _VOID_TAGS:
            self.handle_endtag(tag)

    def handle_endtag(self, tag: str) -> None:
        if tag == "title" and self._in_title:
            self._in_title = False
            self.title = " ".join("".join(self._title_parts).split()) or None
        if tag == "h1" and self._in_heading:
            self._in_heading = False
            self.first_heading = " ".join("".join(self._heading_parts).split()) or None
        if tag in self._skip_tags or tag == "en-crypt":
            if tag not in _VOID_TAGS and self._skip_depth:
                self._skip_depth -= 1
            return
        if not self._skip_depth and tag in _BLOCK_TAGS:
            self._chunks.append("\n")

    def handle_data(self, data: str) -> None:
        if self._in_title:
            self._title_parts.append(data)
        if self._in_heading:
            self._heading_parts.append(data)
        if not self._skip_depth and not self._in_title:
            self._chunks.append(data)

    def text(self) -> str:
        return tidy_text("".join(self._chunks))


@dataclass
class Anchor:
    """An <a> element as found in an export, with its enclosing context."""

    attrs: dict[str, str]
    text: str
    folders: tuple[str, ...] = ()
    section: str | None = None

    @property
    def href(self) -> str:
        return (self.attrs.get("href") or "").strip()

    @property
    def folder_path(self) -> str:
        return "/".join(self.folders)


@dataclass
class _Heading:
    tag: str
    parts: list[str] = field(default_factory=list)


class AnchorScanner(HTMLParser):
    """Collect every <a> in document order.

    Tracks the two kinds of context exports use: Netscape folder nesting
    (<H3>name</H3> followed by a <DL> block) and Pocket-style <h1> section
    headings.
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.anchors: list[Anchor] = []
        self._folders: list[str | None] = []
        self._pending_folder: str | None = None
        self._section: str | None = None
        self._heading: _Heading | None = None
        self._anchor_attrs: dict[str, str] | None = None
        self._anchor_text: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "a":
            self._finish_anchor()
            self._anchor_attrs = {k: v or "" for k, v in attrs}
            self._anchor_text = []
        elif tag in ("h1", "h3"):
            self._finish_anchor()
            self._heading = _Heading(tag)
        elif tag == "dl":
            self._finish_anchor()
            self._folders.append(self._pending_folder)
            self._pending_folder = None
        elif tag == "dt":
            self._finish_anchor()

    def handle_endtag(self, tag: str) -> None:
        if tag == "a":
            self._finish_anchor()
        elif tag in ("h1", "h3") and self._heading is not None:
            name = " ".join("".join(self._heading.parts).split())
            if self._heading.tag == "h3":
                self._pending_folder = name or None
            else:
                self._section = name or None
            self._heading = None
        elif tag == "dl":
            self._finish_anchor()
            if self._folders:
                self._folders.pop()

    def handle_data(self, data: str) -> None:
        if self._anchor_attrs is not None:
            self._anchor_text.append(data)
        elif self._heading is not None:
            self._heading.parts.append(data)

    def close(self) -> None:
        super().close()
        self._finish_anchor()

    def _finish_anchor(self) -> None:
        if self._anchor_attrs is None:
            return
        self.anchors.append(Anchor(
            attrs=self._anchor_attrs,
            text=" ".join("".join(self._anchor_text).split()),
            folders=tuple(f for f in self._folders if f),
            section=self._section,
        ))
        self._anchor_attrs = None
        self._anchor_text = []


def scan_anchors(html: str, deadline: Deadline | None = None) -> list[Anchor]:
    scanner = AnchorScanner()
    feed_chunks(scanner, html, deadline)
    return scanner.anchors
