"""Tests for the streaming HTML helpers."""

import pytest

from mindweave.importer.errors import ImportTimeout
from mindweave.importer.guard import Deadline
from mindweave.utils.html import FEED_CHUNK_CHARS, HtmlToText, feed_chunks, scan_anchors, tidy_text


def _convert(html: str, **kwargs) -> HtmlToText:
    converter = HtmlToText(**kwargs)
    feed_chunks(converter, html)
    return converter


class TestHtmlToText:
    def test_blocks_become_lines(self):
        assert _convert("<p>One</p><p>Two <b>bold</b></p>").text() == "One\n\nTwo bold"

    def test_list_items_bulleted(self):
        assert _convert("<ul><li>a</li><li>b</li></ul>").text() == "• a\n\n• b"

    def test_scripts_and_styles_dropped(self):
        converter = _convert("<style>p{}</style><script>alert(1)</script><p>kept</p>")
        assert converter.text() == "kept"

    def test_title_and_first_heading_captured(self):
        converter = _convert("<html><head><title> Doc </title></head><body><h1>Head</h1><h1>Second</h1></body></html>")
        assert converter.title == "Doc"
        assert converter.first_heading == "Head"
        assert "Doc" not in converter.text()

    def test_unclosed_head_ends_at_body(self):
        converter = _convert("<html><head><title>T</title><body><p>Body text</p></body></html>")
        assert converter.title == "T"
        assert converter.text() == "Body text"

    def test_skip_tags_dropped_with_content(self):
        converter = _convert("<header>Nav</header><p>Body</p>", skip_tags=frozenset({"header"}))
        assert converter.text() == "Body"

    def test_media_labels(self):
        converter = _convert('<en-note><en-media hash="abc"/><en-media hash="zzz"/></en-note>', media_labels={"abc": "photo.jpg"})
        assert converter.text() == "[attachment: photo.jpg][attachment]"

    def test_empty_input(self):
        assert _convert("").text() == ""

    def test_tidy_text(self):
        assert tidy_text("  a  \n\n\n\n  b\xa0\xa0c ") == "a\n\nb c"


class TestAnchorScanner:
    def test_unclosed_anchors_finished_by_next_entry(self):
        anchors = scan_anchors('<DL><DT><A HREF="https://a.example">A<DT><A HREF="https://b.example">B</DL>')
        assert [(a.href, a.text) for a in anchors] == [("https://a.example", "A"), ("https://b.example", "B")]

    def test_folders_and_sections(self):
        html = (
            "<H1>Section</H1><DL><DT><H3>Outer</H3><DL><DT><H3>Inner</H3><DL>"
            '<DT><A HREF="https://deep.example">Deep</A></DL>'
            '<DT><A HREF="https://mid.example">Mid</A></DL></DL>'
        )
        anchors = scan_anchors(html)
        assert anchors[0].folder_path == "Outer/Inner"
        assert anchors[1].folder_path == "Outer"
        assert all(a.section == "Section" for a in anchors)

    def test_large_document_fed_in_chunks(self):
        entry = '<DT><A HREF="https://example.com/{i}">Item {i}</A>\n'
        html = "<DL>" + "".join(entry.format(i=i) for i in range(3000)) + "</DL>"
        assert len(html) > FEED_CHUNK_CHARS
        anchors = scan_anchors(html)
        assert len(anchors) == 3000
        assert anchors[-1].text == "Item 2999"

    def test_expired_deadline(self):
        with pytest.raises(ImportTimeout):
            scan_anchors("<a href='x'>x</a>", Deadline(0))
