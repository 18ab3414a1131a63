"""Tests for the browser bookmarks (Netscape HTML) parser."""

from datetime import UTC, datetime

import pytest

from mindweave.importer.errors import ImportTimeout
from mindweave.importer.guard import Deadline
from mindweave.importer.models import ItemType
from mindweave.importer.parsers.bookmarks import parse_bookmarks
from tests.fixtures import BOOKMARKS_HTML, make_bookmarks_html


class TestBookmarksParser:
    """Folder nesting, tags and per-anchor outcomes."""

    def test_nested_folders_become_tags(self):
        """Three valid links in nested folders plus one anchor without href."""
        result = parse_bookmarks(BOOKMARKS_HTML)

        assert result.success
        assert [i.title for i in result.items] == ["A", "B", "C"]
        assert result.stats.total == 4
        assert result.stats.parsed == 3
        assert result.stats.skipped == 1
        assert len(result.warnings) == 1
        assert "Missing Link" in result.warnings[0]

        by_title = {i.title: i for i in result.items}
        # Browser root folders carry no meaning as tags.
        assert by_title["A"].tags == []
        assert by_title["B"].tags == ["dev"]
        assert by_title["C"].tags == ["dev"]

    def test_items_are_links_with_metadata(self):
        result = parse_bookmarks(BOOKMARKS_HTML)
        item = next(i for i in result.items if i.title == "B")
        assert item.type == ItemType.LINK
        assert item.url == "https://b.com"
        assert item.metadata["source"] == "bookmarks"
        assert item.metadata["folder_path"] == "Bookmarks bar/Dev"

    def test_add_date_becomes_created_at(self):
        result = parse_bookmarks(BOOKMARKS_HTML)
        by_title = {i.title: i for i in result.items}
        assert by_title["A"].created_at == datetime.fromtimestamp(1700000000, UTC)
        assert by_title["C"].created_at is None

    def test_script_links_skipped_with_warning(self):
        html = make_bookmarks_html(
            '<A HREF="javascript:void(0)">Bookmarklet</A>',
            '<A HREF="place:sort=8">Recent</A>',
            '<A HREF="https://ok.example">Fine</A>',
        )
        result = parse_bookmarks(html)
        assert [i.title for i in result.items] == ["Fine"]
        assert result.stats.skipped == 2
        assert result.errors == []
        assert any("javascript:" in w for w in result.warnings)

    def test_mail_and_ftp_links_skipped_with_warning(self):
        html = make_bookmarks_html(
            '<A HREF="mailto:me@example.com">Mail me</A>',
            '<A HREF="ftp://files.example/pub/x.tar">Archive</A>',
            '<A HREF="https://ok.example">Fine</A>',
        )
        result = parse_bookmarks(html)
        assert [i.url for i in result.items] == ["https://ok.example"]
        assert result.stats.skipped == 2
        assert result.errors == []
        assert any("'mailto:'" in w for w in result.warnings)
        assert any("'ftp:'" in w for w in result.warnings)

    def test_host_with_port_is_not_a_scheme(self):
        html = make_bookmarks_html('<A HREF="localhost:8080/admin">Local</A>')
        result = parse_bookmarks(html)
        assert result.items[0].url == "https://localhost:8080/admin"

    def test_invalid_url_is_an_error(self):
        html = make_bookmarks_html(
            '<A HREF="http://exa mple.com">Broken</A>',
            '<A HREF="https://ok.example">Fine</A>',
        )
        result = parse_bookmarks(html)
        assert result.stats.parsed == 1
        assert len(result.errors) == 1
        assert result.errors[0].item == "Broken"
        assert "Invalid URL" in result.errors[0].message

    def test_missing_scheme_assumes_https(self):
        html = make_bookmarks_html('<A HREF="example.com/page">Bare</A>')
        result = parse_bookmarks(html)
        assert result.items[0].url == "https://example.com/page"

    def test_anchor_without_text_uses_url_as_title(self):
        html = make_bookmarks_html('<A HREF="https://ok.example/x"></A>')
        result = parse_bookmarks(html)
        assert result.items[0].title == "https://ok.example/x"

    def test_html_entities_decoded_in_title(self):
        html = make_bookmarks_html('<A HREF="https://ok.example">Tom &amp; Jerry</A>')
        result = parse_bookmarks(html)
        assert result.items[0].title == "Tom & Jerry"

    def test_empty_document_warns(self):
        result = parse_bookmarks(make_bookmarks_html())
        assert result.success
        assert result.stats.total == 0
        assert any("No bookmarks found" in w for w in result.warnings)

    def test_expired_deadline_raises(self):
        """A parse that starts after its deadline aborts immediately."""
        with pytest.raises(ImportTimeout):
            parse_bookmarks(BOOKMARKS_HTML, Deadline(0))

    def test_same_input_same_result(self):
        assert parse_bookmarks(BOOKMARKS_HTML) == parse_bookmarks(BOOKMARKS_HTML)
