"""
Discord webhook payload construction.

Converts a NormalizedFeed into the JSON body of a Discord "execute webhook"
request, one embed per entry.
"""

import logging
from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from discord_feed_post.feed import NormalizedEntry, NormalizedFeed

logger = logging.getLogger(__name__)

# Discord accepts at most 10 embeds per message
MAX_EMBEDS = 10

# Counted in code points; well under Discord's documented embed limit
MAX_DESCRIPTION_LENGTH = 500
ELLIPSIS = "…"


class EmbedAuthor(BaseModel):
    """Author block of an embed."""

    name: str


class Embed(BaseModel):
    """
    A single Discord embed.

    Attributes
    ----------
    title : str
        Entry title.
    description : str
        Entry summary, truncated to MAX_DESCRIPTION_LENGTH characters.
    url : str
        Entry link.
    timestamp : str
        Publication time in RFC 3339 format.
    author : EmbedAuthor | None
        Entry author, falling back to the feed author. Omitted when None.
    """

    title: str
    description: str
    url: str
    timestamp: str
    author: EmbedAuthor | None = None


class WebhookPayload(BaseModel):
    """
    Body of a webhook request.

    Attributes
    ----------
    username : str
        Name the message is posted under (the feed title).
    embeds : list[Embed]
        Up to MAX_EMBEDS embeds, newest first.
    """

    username: str
    embeds: list[Embed] = Field(default_factory=list, max_length=MAX_EMBEDS)

    def to_json(self) -> str:
        """Serialize to the wire format, omitting absent authors."""
        return self.model_dump_json(exclude_none=True)


def truncate_description(description: str) -> str:
    """
    Clamp a description to MAX_DESCRIPTION_LENGTH characters.

    Parameters
    ----------
    description : str
        Entry description.

    Returns
    -------
    str
        The description unchanged if short enough, otherwise its first
        MAX_DESCRIPTION_LENGTH - 1 characters followed by an ellipsis.
    """
    if len(description) <= MAX_DESCRIPTION_LENGTH:
        return description
    return description[: MAX_DESCRIPTION_LENGTH - 1] + ELLIPSIS


def format_timestamp(value: datetime | None) -> str:
    """
    Format a datetime as RFC 3339 without fractional seconds.

    A zero UTC offset is written as ``Z``; missing times become an empty
    string.
    """
    if value is None:
        return ""
    value = value.replace(microsecond=0)
    if value.utcoffset() == timedelta(0):
        return value.replace(tzinfo=None).isoformat() + "Z"
    return value.isoformat()


def build_embed(entry: NormalizedEntry, feed_author: str | None = None) -> Embed:
    """
    Build the embed for one entry.

    Parameters
    ----------
    entry : NormalizedEntry
        The entry to convert.
    feed_author : str | None
        Feed-level author used when the entry has none.

    Returns
    -------
    Embed
        The embed.
    """
    author_name = entry.author_name or feed_author
    return Embed(
        title=entry.title,
        description=truncate_description(entry.description),
        url=entry.link,
        timestamp=format_timestamp(entry.published_at),
        author=EmbedAuthor(name=author_name) if author_name else None,
    )


def build_payload(feed: NormalizedFeed) -> WebhookPayload:
    """
    Build the webhook payload for a feed.

    The last MAX_EMBEDS entries are selected and emitted in reverse order,
    so the newest entry comes first.

    Parameters
    ----------
    feed : NormalizedFeed
        The decoded feed.

    Returns
    -------
    WebhookPayload
        Payload ready to be sent.
    """
    count = min(len(feed.entries), MAX_EMBEDS)
    selected = feed.entries[len(feed.entries) - count :]

    embeds = [build_embed(entry, feed.author_name) for entry in reversed(selected)]

    if len(feed.entries) > count:
        logger.debug("Feed has %d entries, keeping the last %d", len(feed.entries), count)

    return WebhookPayload(username=feed.title, embeds=embeds)
