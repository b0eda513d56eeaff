"""
Feed decoding module.

Turns a feed document read from standard input into a NormalizedFeed.
XML feeds (RSS and Atom) are parsed with feedparser; JSON input is accepted
either as a JSON Feed or as a serialized generic feed object.
"""

import io
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import feedparser

from discord_feed_post.errors import FeedDecodeError

logger = logging.getLogger(__name__)

JSON_FEED_VERSION_PREFIX = "https://jsonfeed.org/version/"
UTF8_BOM = b"\xef\xbb\xbf"


@dataclass
class NormalizedEntry:
    """
    A feed entry, independent of the source format.

    Attributes
    ----------
    title : str
        Entry title.
    description : str
        Entry summary, possibly empty.
    link : str
        Entry URL.
    published_at : datetime | None
        Timezone-aware publication time, None if absent or unparseable.
    author_name : str | None
        Name of the entry's first author.
    """

    title: str = ""
    description: str = ""
    link: str = ""
    published_at: datetime | None = None
    author_name: str | None = None


@dataclass
class NormalizedFeed:
    """
    A feed, independent of the source format.

    Attributes
    ----------
    title : str
        Feed title.
    identifier : str
        Key used to look up the webhook URL in the configuration.
    entries : list[NormalizedEntry]
        Entries in the order supplied by the document.
    author_name : str | None
        Feed-level author, used when an entry has none.
    source_format : str
        Format tag of the decoded document (e.g. ``rss20``, ``atom10``).
    """

    title: str = ""
    identifier: str = ""
    entries: list[NormalizedEntry] = field(default_factory=list)
    author_name: str | None = None
    source_format: str = ""


def parse_feed(content: str | bytes) -> NormalizedFeed:
    """
    Decode a feed document.

    Parameters
    ----------
    content : str | bytes
        Raw feed document. Bytes are passed to the XML parser untouched so
        that an encoding declared in the document is honored.

    Returns
    -------
    NormalizedFeed
        The decoded feed.

    Raises
    ------
    FeedDecodeError
        If the document is empty, is invalid JSON, or is not a recognizable
        feed.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    # Some producers emit a BOM or leading newlines before the document
    content = content.removeprefix(UTF8_BOM).lstrip()
    if not content:
        raise FeedDecodeError("Failed to parse feed: input is empty")

    if content.startswith(b"{"):
        return _parse_json(content)
    return _parse_xml(content)


def _parse_xml(content: bytes) -> NormalizedFeed:
    """Decode an RSS or Atom document with feedparser."""
    # A stream keeps feedparser from treating the input as a URL or filename
    parsed: Any = feedparser.parse(io.BytesIO(content))
    version = parsed.get("version", "")

    if not version and not parsed.entries:
        reason = parsed.get("bozo_exception") or "unrecognized feed format"
        raise FeedDecodeError(f"Failed to parse feed: {reason}")

    if parsed.bozo and parsed.get("bozo_exception"):
        logger.warning("Feed has parsing issues: %s", parsed.bozo_exception)

    channel = parsed.feed
    feed = NormalizedFeed(
        title=channel.get("title", ""),
        identifier=_xml_identifier(channel, version),
        author_name=_author_name(channel),
        source_format=version or "unknown",
    )
    for entry in parsed.entries:
        feed.entries.append(
            NormalizedEntry(
                title=entry.get("title", ""),
                description=entry.get("summary", ""),
                link=entry.get("link", ""),
                published_at=_from_struct_time(
                    entry.get("published_parsed") or entry.get("updated_parsed")
                ),
                author_name=_author_name(entry),
            )
        )

    logger.debug(
        "Decoded %s feed '%s' with %d entries", feed.source_format, feed.title, len(feed.entries)
    )
    return feed


def _xml_identifier(channel: Any, version: str) -> str:
    """
    Resolve the identifier of an XML feed.

    Atom feeds are identified by their id element. Other feeds, and Atom
    feeds without an id, use their self link, falling back to the site link.
    """
    if version.startswith("atom") and channel.get("id"):
        return channel["id"]

    for link in channel.get("links", []):
        if link.get("rel") == "self" and link.get("href"):
            return link["href"]
    return channel.get("link", "")


def _author_name(item: Any) -> str | None:
    """Return the first author's name of a feedparser feed or entry."""
    for author in item.get("authors") or []:
        if author.get("name"):
            return author["name"]
    return item.get("author") or None


def _from_struct_time(value: Any) -> datetime | None:
    """Convert a feedparser UTC time tuple into an aware datetime."""
    if not value:
        return None
    try:
        return datetime(*value[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def _parse_datetime(value: Any) -> datetime | None:
    """
    Parse an ISO 8601 or RFC 822 date string.

    Naive results are assumed to be UTC. Unparseable values yield None.
    """
    if not value or not isinstance(value, str):
        return None

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            logger.debug("Ignoring unparseable date: %s", value)
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_json(content: bytes) -> NormalizedFeed:
    """Decode a JSON Feed or a serialized generic feed object."""
    try:
        document = json.loads(content)
    except ValueError as e:
        raise FeedDecodeError(f"Failed to parse feed: invalid JSON: {e}") from e

    if not isinstance(document, dict):
        raise FeedDecodeError("Failed to parse feed: JSON document is not an object")

    version = document.get("version")
    if isinstance(version, str) and version.startswith(JSON_FEED_VERSION_PREFIX):
        feed = _from_json_feed(document)
    else:
        feed = _from_generic_json(document)

    logger.debug(
        "Decoded %s feed '%s' with %d entries", feed.source_format, feed.title, len(feed.entries)
    )
    return feed


def _json_str(obj: dict, key: str) -> str:
    """
    Return a string field of a JSON object, empty if absent or null.

    Raises
    ------
    FeedDecodeError
        If the field holds anything other than a string or null.
    """
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise FeedDecodeError(
            f"Failed to parse feed: '{key}' must be a string, got {type(value).__name__}"
        )
    return value


def _json_author_name(item: dict) -> str | None:
    """Return the first author's name of a JSON feed or item."""
    authors = item.get("authors")
    if isinstance(authors, list):
        for author in authors:
            if isinstance(author, dict) and _json_str(author, "name"):
                return author["name"]

    # JSON Feed 1.0 and older generic feeds carry a single author object
    author = item.get("author")
    if isinstance(author, dict) and _json_str(author, "name"):
        return author["name"]
    return None


def _json_items(document: dict) -> list[dict]:
    """Return the item objects of a JSON document, rejecting other shapes."""
    items = document.get("items") or []
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise FeedDecodeError("Failed to parse feed: 'items' must be a list of objects")
    return items


def _from_json_feed(document: dict) -> NormalizedFeed:
    """Convert a JSON Feed (https://jsonfeed.org) document."""
    feed = NormalizedFeed(
        title=_json_str(document, "title"),
        identifier=_json_str(document, "feed_url") or _json_str(document, "home_page_url"),
        author_name=_json_author_name(document),
        source_format="jsonfeed",
    )
    for item in _json_items(document):
        feed.entries.append(
            NormalizedEntry(
                title=_json_str(item, "title"),
                description=_json_str(item, "summary") or _json_str(item, "content_text"),
                link=_json_str(item, "url"),
                published_at=_parse_datetime(
                    item.get("date_published") or item.get("date_modified")
                ),
                author_name=_json_author_name(item),
            )
        )
    return feed


def _from_generic_json(document: dict) -> NormalizedFeed:
    """
    Convert a serialized generic feed object.

    This is the shape emitted by feed fetchers that normalize RSS and Atom
    into one structure (``feedLink``, ``items[].description``,
    ``items[].publishedParsed`` and so on).
    """
    feed = NormalizedFeed(
        title=_json_str(document, "title"),
        identifier=_json_str(document, "feedLink") or _json_str(document, "link"),
        author_name=_json_author_name(document),
        source_format="json",
    )
    for item in _json_items(document):
        feed.entries.append(
            NormalizedEntry(
                title=_json_str(item, "title"),
                description=_json_str(item, "description"),
                link=_json_str(item, "link"),
                published_at=_parse_datetime(
                    item.get("publishedParsed") or item.get("published")
                ),
                author_name=_json_author_name(item),
            )
        )
    return feed
