"""
Main entry point for Discord Feed Post.

Reads one feed from standard input and posts it to the webhook configured
for that feed.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import coloredlogs

from discord_feed_post import __version__
from discord_feed_post.config import load_config
from discord_feed_post.discord import DiscordWebhook
from discord_feed_post.errors import DiscordFeedPostError, FeedNotConfiguredError
from discord_feed_post.feed import parse_feed
from discord_feed_post.message import build_payload

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


async def run(
    feed_content: str | bytes,
    config_root: str | Path | None = None,
    webhook: DiscordWebhook | None = None,
) -> None:
    """
    Forward a feed document to its configured webhook.

    Parameters
    ----------
    feed_content : str | bytes
        Raw feed document.
    config_root : str | Path | None
        Configuration root directory. Defaults to the per-user one.
    webhook : DiscordWebhook | None
        Webhook client to use. A new one is created and closed when None.

    Raises
    ------
    DiscordFeedPostError
        On any failure; nothing is retried.
    """
    config = load_config(config_root)
    feed = parse_feed(feed_content)

    webhook_url = config.get(feed.identifier)
    if webhook_url is None:
        raise FeedNotConfiguredError(feed.identifier)

    payload = build_payload(feed)

    if webhook is not None:
        await webhook.send(webhook_url, payload)
        return

    async with DiscordWebhook() as client:
        await client.send(webhook_url, payload)


def setup_logging(verbose: bool = False) -> None:
    """
    Install colored logging on stderr.

    Parameters
    ----------
    verbose : bool
        If True, set log level to DEBUG instead of INFO.
    """
    coloredlogs.install(
        level=logging.DEBUG if verbose else logging.INFO,
        fmt=LOG_FORMAT,
        stream=sys.stderr,
    )

    # Quiet third-party client logs
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="discord-feed-post",
        description="Post an RSS/Atom/JSON feed read from stdin to a Discord webhook",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    try:
        asyncio.run(run(sys.stdin.buffer.read()))
    except DiscordFeedPostError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
