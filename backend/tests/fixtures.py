"""Shared builders for export files in every supported format."""

import base64
import io
import json
import zipfile

MIB = 1024 * 1024

NOTION_ID = "0123456789abcdef0123456789abcdef"


# ---------------------------------------------------------------------------
# Browser bookmarks
# ---------------------------------------------------------------------------

BOOKMARKS_HTML = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<!-- This is an automatically generated file. -->
<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">
<TITLE>Bookmarks</TITLE>
<H1>Bookmarks</H1>
<DL><p>
    <DT><H3 ADD_DATE="1700000000" PERSONAL_TOOLBAR_FOLDER="true">Bookmarks bar</H3>
    <DL><p>
        <DT><A HREF="https://a.com" ADD_DATE="1700000000">A</A>
        <DT><H3 ADD_DATE="1700000000">Dev</H3>
        <DL><p>
            <DT><A HREF="https://b.com" ADD_DATE="1700000100">B</A>
            <DT><A HREF="https://c.com">C</A>
        </DL><p>
        <DT><A ADD_DATE="1700000000">Missing Link</A>
    </DL><p>
</DL><p>
"""


def make_bookmarks_html(*anchors: str) -> str:
    """Wrap raw <DT><A ...> lines in a minimal Netscape bookmarks document."""
    entries = "\n".join(f"    <DT>{a}" for a in anchors)
    return (
        "<!DOCTYPE NETSCAPE-Bookmark-file-1>\n"
        "<TITLE>Bookmarks</TITLE>\n<H1>Bookmarks</H1>\n"
        f"<DL><p>\n{entries}\n</DL><p>\n"
    )


# ---------------------------------------------------------------------------
# Pocket
# ---------------------------------------------------------------------------

POCKET_HTML = """<!DOCTYPE html>
<html>
<head>
<meta http-equiv="Content-Type" content="text/html; charset=UTF-8">
<title>Pocket Export</title>
</head>
<body>
<h1>Unread</h1>
<ul>
<li><a href="https://example.com/one" time_added="1700000000" tags="tech,news">One</a></li>
<li><a href="https://example.com/two" time_added="1700000100" tags="">Two</a></li>
</ul>
<h1>Read Archive</h1>
<ul>
<li><a href="https://example.com/three" time_added="1700000200" tags="python|tools">Three</a></li>
</ul>
</body>
</html>
"""

POCKET_CSV = (
    "title,url,time_added,cursor,tags,status\n"
    "Tech News,https://example.com/a,1700000000,,tech|news,unread\n"
    ",https://example.com/b,1700000001,,,archive\n"
    "No Url,,1700000002,,,unread\n"
)


# ---------------------------------------------------------------------------
# Notion
# ---------------------------------------------------------------------------

NOTION_HTML_PAGE = (
    "<html><head><title>Web Page</title></head><body>"
    '<article class="page sans"><header><h1 class="page-title">Web Page</h1></header>'
    '<div class="page-body"><p>Hello <strong>world</strong></p>'
    "<ul><li>one</li><li>two</li></ul></div></article></body></html>"
)


def make_zip(files: dict[str, str | bytes]) -> bytes:
    """Build an in-memory deflated ZIP archive from name -> content."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def make_notion_zip() -> bytes:
    return make_zip({
        f"Reading List {NOTION_ID}.md": "# Reading List\n\nSome #python notes.\n",
        f"Reading List {NOTION_ID}/Sub Page fedcba9876543210fedcba9876543210.md": "Sub body text\n",
        f"Reading List {NOTION_ID}/image.png": b"\x89PNG\r\n\x1a\n" + b"\x00" * 64,
        "Web Page 11111111111111111111111111111111.html": NOTION_HTML_PAGE,
        "__MACOSX/._Reading List.md": b"\x00\x05\x16\x07",
    })


# ---------------------------------------------------------------------------
# Evernote
# ---------------------------------------------------------------------------

def make_enex_resource(data: bytes, file_name: str, mime: str = "image/png") -> str:
    encoded = base64.b64encode(data).decode()
    return (
        f'<resource><data encoding="base64">{encoded}</data><mime>{mime}</mime>'
        f"<resource-attributes><file-name>{file_name}</file-name></resource-attributes>"
        "</resource>"
    )


def make_enex_note(
    title: str = "Note",
    enml: str = "<div>Body text</div>",
    *,
    tags: tuple[str, ...] = (),
    resources: tuple[str, ...] = (),
    created: str = "20240115T143022Z",
    raw_content: str | None = None,
) -> str:
    if raw_content is None:
        raw_content = (
            '<![CDATA[<?xml version="1.0" encoding="UTF-8"?>'
            '<!DOCTYPE en-note SYSTEM "http://xml.evernote.com/pub/enml2.dtd">'
            f"<en-note>{enml}</en-note>]]>"
        )
    tag_xml = "".join(f"<tag>{t}</tag>" for t in tags)
    return (
        f"<note><title>{title}</title><content>{raw_content}</content>"
        f"<created>{created}</created>{tag_xml}{''.join(resources)}</note>"
    )


def make_enex(*notes: str) -> bytes:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<!DOCTYPE en-export SYSTEM "http://xml.evernote.com/pub/evernote-export3.dtd">\n'
        '<en-export export-date="20240115T143022Z" application="Evernote" version="10.0">\n'
        + "\n".join(notes)
        + "\n</en-export>\n"
    ).encode()


# ---------------------------------------------------------------------------
# X / Twitter
# ---------------------------------------------------------------------------

def make_twitter_js(entries: list, prefix: str = "window.YTD.bookmark.part0") -> str:
    return f"{prefix} = {json.dumps(entries)};"


TWITTER_JS = 'window.YTD.bookmark.part0 = [{"bookmark":{"id":"1","tweetId":"2","fullText":"hi"}}];'
