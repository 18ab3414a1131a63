"""Parser for Evernote ENEX exports.

ENEX is an <en-export> document holding a sequence of <note> elements:

    <note>
      <title>...</title>
      <content><![CDATA[<en-note>...ENML...</en-note>]]></content>
      <created>20240115T143022Z</created>
      <tag>...</tag>*
      <note-attributes><source-url>...</source-url></note-attributes>
      <resource><data encoding="base64">...</data><mime>...</mime>
        <resource-attributes><file-name>...</file-name></resource-attributes>
      </resource>*
    </note>

The document is streamed with lxml's iterparse and each note is cleared
once handled. Entity expansion and network access are disabled.
"""

import base64
import binascii
import hashlib
import io
import logging
from dataclasses import dataclass

from lxml import etree

from mindweave.importer.aggregate import ParseAccumulator
from mindweave.importer.config import ImportLimits
from mindweave.importer.errors import ParserFatalError
from mindweave.importer.guard import Deadline
from mindweave.importer.models import ItemType, ParsedItem, ParseResult
from mindweave.importer.sources import SourceKind
from mindweave.utils.html import HtmlToText, feed_chunks
from mindweave.utils.text import UNTITLED, normalize_tags, parse_date, sanitize_title

logger = logging.getLogger(__name__)

# XML events between deadline checks, for documents with few, huge notes.
EVENT_CHECK_INTERVAL = 500


@dataclass
class _Attachment:
    file_name: str
    mime: str
    size: int
    data: str

    def markdown(self) -> str:
        link = f"[{self.file_name}](data:{self.mime};base64,{self.data})"
        return "!" + link if self.mime.startswith("image/") else link


def _decoded_size(b64: str) -> int:
    padding = len(b64) - len(b64.rstrip("="))
    return len(b64) * 3 // 4 - padding


def _collect_attachments(
    note: etree._Element,
    note_title: str,
    max_bytes: int,
    acc: ParseAccumulator,
) -> tuple[list[_Attachment], dict[str, str]]:
    """Decode resources under the size ceiling; warn about the rest.

    Returns the kept attachments and a map of MD5 hash -> file name, which is
    how <en-media hash=...> in the note body refers to its resource.
    """
    attachments: list[_Attachment] = []
    labels: dict[str, str] = {}
    for index, resource in enumerate(note.iterfind("resource"), start=1):
        mime = (resource.findtext("mime") or "application/octet-stream").strip()
        file_name = (resource.findtext("resource-attributes/file-name") or "").strip() or f"attachment-{index}"
        b64 = "".join((resource.findtext("data") or "").split())
        size = _decoded_size(b64)

        if size > max_bytes:
            logger.debug("Dropping %d byte resource %r", size, file_name)
            acc.warn(
                f"Dropped attachment '{file_name}' ({size} bytes) from note '{note_title}': "
                f"larger than the {max_bytes} byte attachment limit"
            )
            continue
        try:
            raw = base64.b64decode(b64, validate=True)
        except (binascii.Error, ValueError):
            acc.warn(f"Dropped attachment '{file_name}' from note '{note_title}': data is not valid base64")
            continue

        labels[hashlib.md5(raw).hexdigest()] = file_name
        attachments.append(_Attachment(file_name=file_name, mime=mime, size=len(raw), data=b64))
    return attachments, labels


def _enml_to_text(enml: str, labels: dict[str, str], deadline: Deadline) -> str:
    converter = HtmlToText(media_labels=labels)
    feed_chunks(converter, enml, deadline)
    return converter.text()


def _parse_note(note: etree._Element, limits: ImportLimits, acc: ParseAccumulator) -> ParsedItem | None:
    title = sanitize_title(note.findtext("title"))
    content = note.find("content")
    if content is None:
        raise ValueError("Note has no <content> element")
    enml = content.text or ""
    if "<en-note" not in enml.lower():
        raise ValueError("Note content is not valid ENML (missing <en-note> root)")

    attachments, labels = _collect_attachments(note, title, limits.evernote_max_resource_bytes, acc)
    body = _enml_to_text(enml, labels, acc.deadline)

    if not body and not attachments and title == UNTITLED:
        return None

    if attachments:
        body = "\n\n".join(filter(None, [body, "\n".join(a.markdown() for a in attachments)]))

    metadata: dict = {"source": SourceKind.EVERNOTE.value}
    source_url = (note.findtext("note-attributes/source-url") or "").strip()
    if source_url:
        metadata["source_url"] = source_url
    notebook = note.get("notebook")
    if notebook:
        metadata["notebook"] = notebook
    if attachments:
        metadata["attachments"] = [
            {"file_name": a.file_name, "mime": a.mime, "size": a.size} for a in attachments
        ]

    return ParsedItem(
        title=title,
        body=body or None,
        type=ItemType.NOTE,
        tags=normalize_tags(t.text for t in note.iterfind("tag")),
        created_at=parse_date(note.findtext("created")) or parse_date(note.findtext("updated")),
        metadata=metadata,
    )


def parse_evernote(
    content: bytes,
    deadline: Deadline | None = None,
    *,
    limits: ImportLimits | None = None,
    check_interval: int = 1,
) -> ParseResult:
    """Parse an ENEX export into note items."""
    limits = limits or ImportLimits()
    acc = ParseAccumulator(deadline, check_interval=check_interval)
    note_count = 0

    # The upload is already size-capped; huge_tree only lifts libxml2's
    # 10 MB text-node limit so large attachments can be dropped individually.
    events = etree.iterparse(
        io.BytesIO(content),
        events=("end",),
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        huge_tree=True,
    )
    try:
        for event_count, (_event, element) in enumerate(events, start=1):
            if event_count % EVENT_CHECK_INTERVAL == 0:
                acc.deadline.check()
            if element.tag != "note":
                continue

            note_count += 1
            label = (element.findtext("title") or "").strip() or f"Note {note_count}"
            try:
                item = _parse_note(element, limits, acc)
            except ValueError as e:
                acc.skip_with_error(label, str(e))
            else:
                if item is None:
                    acc.skip_with_warning(f"Skipped empty note {note_count}")
                else:
                    acc.add(item)
            finally:
                element.clear()
                while element.getprevious() is not None:
                    del element.getparent()[0]
    except etree.XMLSyntaxError as e:
        raise ParserFatalError(f"This does not appear to be a valid Evernote ENEX file: {e}") from e

    if note_count == 0:
        acc.warn("No notes found in ENEX file. Make sure this is a valid Evernote export.")

    return acc.build()
