"""Parser for the bookmarks.js file of an X (Twitter) data archive.

The archive ships data as JavaScript assigning a JSON array to a global:

    window.YTD.bookmark.part0 = [{"bookmark": {"tweetId": "...", "fullText": "..."}}, ...];

Each entry becomes a link to the bookmarked post.
"""

import json

from mindweave.importer.aggregate import ParseAccumulator
from mindweave.importer.errors import ParserFatalError
from mindweave.importer.guard import Deadline
from mindweave.importer.models import ItemType, ParsedItem, ParseResult
from mindweave.importer.parsers.detection import TWITTER_PREFIX
from mindweave.importer.sources import SourceKind
from mindweave.utils.text import sanitize_title, truncate

TWEET_URL = "https://x.com/i/status/{tweet_id}"
TITLE_LENGTH = 100
BOOKMARK_TAG = "twitter-bookmark"


def _strip_assignment(content: str) -> str:
    content = content.lstrip("\ufeff")
    match = TWITTER_PREFIX.match(content)
    if match is None:
        raise ParserFatalError("Invalid Twitter bookmarks file format.")
    payload = content[match.end() :].strip()
    return payload[:-1].rstrip() if payload.endswith(";") else payload


def _build_item(tweet_id: str, full_text: str | None, entry_id: str | None) -> ParsedItem:
    text = full_text.strip() if isinstance(full_text, str) else ""
    metadata: dict = {"source": SourceKind.TWITTER.value, "original_id": tweet_id}
    if entry_id:
        metadata["bookmark_id"] = entry_id
    return ParsedItem(
        title=sanitize_title(truncate(text, TITLE_LENGTH) if text else f"Tweet {tweet_id}"),
        body=text or None,
        url=TWEET_URL.format(tweet_id=tweet_id),
        type=ItemType.LINK,
        tags=[BOOKMARK_TAG],
        metadata=metadata,
    )


def parse_twitter_bookmarks(content: str, deadline: Deadline | None = None, *, check_interval: int = 1) -> ParseResult:
    """Parse bookmarks.js into link items."""
    acc = ParseAccumulator(deadline, check_interval=check_interval)
    try:
        entries = json.loads(_strip_assignment(content))
    except json.JSONDecodeError as e:
        raise ParserFatalError(f"Failed to parse JSON from bookmarks file: {e.msg}") from e
    if not isinstance(entries, list):
        raise ParserFatalError("Expected an array of bookmark entries.")

    for index, entry in enumerate(entries):
        label = f"Entry {index}"
        bookmark = entry.get("bookmark") if isinstance(entry, dict) else None
        if not isinstance(bookmark, dict):
            acc.skip_with_error(label, "Missing bookmark object")
            continue
        tweet_id = bookmark.get("tweetId")
        if tweet_id is None or tweet_id == "":
            acc.skip_with_error(label, "Missing tweetId")
            continue
        tweet_id = str(tweet_id).strip()
        if not tweet_id.isdigit():
            acc.skip_with_error(label, f"Invalid tweetId: {tweet_id}")
            continue
        entry_id = bookmark.get("id")
        acc.add(_build_item(tweet_id, bookmark.get("fullText"), str(entry_id) if entry_id else None))

    if not entries:
        acc.warn("No bookmarks found in file.")

    return acc.build()
