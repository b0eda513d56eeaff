"""
Discord webhook client.

Posts a WebhookPayload to a Discord webhook URL with a single request.
"""

import asyncio
import logging
from urllib.parse import urlparse

import aiohttp

from discord_feed_post import __version__
from discord_feed_post.errors import DispatchError, SerializationError, WebhookStatusError
from discord_feed_post.message import WebhookPayload

logger = logging.getLogger(__name__)


def redact_webhook_url(url: str) -> str:
    """
    Redact the token from a webhook URL for safe logging.

    Parameters
    ----------
    url : str
        Webhook URL, usually ``https://discord.com/api/webhooks/<id>/<token>``.

    Returns
    -------
    str
        The URL with its last path segment replaced by ``****``.
    """
    try:
        parsed = urlparse(url)
        segments = parsed.path.rstrip("/").split("/")
        if len(segments) > 2:
            segments[-1] = "****"
        return f"{parsed.scheme}://{parsed.netloc}{'/'.join(segments)}"
    except ValueError:
        return "<webhook url>"


class DiscordWebhook:
    """
    Discord webhook client.

    Sends one JSON request per call, without retries.
    """

    def __init__(
        self,
        user_agent: str = f"discord-feed-post/{__version__}",
        session: aiohttp.ClientSession | None = None,
    ):
        """
        Initialize the webhook client.

        Parameters
        ----------
        user_agent : str
            User-Agent header for HTTP requests.
        session : aiohttp.ClientSession | None
            Session to use. When None, one is created on first use and
            closed by close().
        """
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={"User-Agent": self.user_agent})
            self._owns_session = True
        return self._session

    async def send(self, url: str, payload: WebhookPayload) -> None:
        """
        Post a payload to a webhook.

        Parameters
        ----------
        url : str
            Webhook URL.
        payload : WebhookPayload
            Message to post.

        Raises
        ------
        SerializationError
            If the payload cannot be encoded.
        WebhookStatusError
            If the webhook answers with a non-2xx status.
        DispatchError
            If the request fails at the network level.
        """
        try:
            body = payload.to_json()
        except ValueError as e:
            raise SerializationError(f"Failed to serialize webhook payload: {e}") from e

        session = await self._get_session()
        safe_url = redact_webhook_url(url)
        logger.debug("Posting %d embed(s) to %s", len(payload.embeds), safe_url)

        try:
            async with session.post(
                url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "application/json"},
            ) as response:
                if response.status // 100 != 2:
                    response_body = await self._read_body(response)
                    raise WebhookStatusError(response.status, response.reason, response_body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DispatchError(f"Failed to post to webhook {safe_url}: {e!r}") from e

        logger.info(
            "Posted %d embed(s) for '%s' to %s",
            len(payload.embeds),
            payload.username,
            safe_url,
        )

    async def _read_body(self, response: aiohttp.ClientResponse) -> str | None:
        """Read an error response body, returning None if it cannot be read."""
        try:
            return await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
            logger.debug("Failed to read webhook error response: %s", e)
            return None

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None
            logger.debug("HTTP session closed")

    async def __aenter__(self) -> "DiscordWebhook":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
