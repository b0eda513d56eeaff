"""
Exception hierarchy for Discord Feed Post.

Every failure is terminal: the entry point catches DiscordFeedPostError,
logs it and exits with a non-zero status.
"""


class DiscordFeedPostError(Exception):
    """Base class for all errors raised by this application."""

    pass


class ConfigError(DiscordFeedPostError):
    """Raised when the configuration file cannot be created, read or parsed."""

    pass


class FeedDecodeError(DiscordFeedPostError):
    """Raised when standard input does not contain a usable feed."""

    pass


class FeedNotConfiguredError(DiscordFeedPostError, LookupError):
    """
    Raised when no webhook is configured for a feed.

    Attributes
    ----------
    identifier : str
        The feed identifier that was looked up.
    """

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"No webhook URL configured for feed: {identifier!r}")


class SerializationError(DiscordFeedPostError):
    """Raised when the webhook payload cannot be encoded as JSON."""

    pass


class DispatchError(DiscordFeedPostError):
    """Raised when the webhook request fails at the network level."""

    pass


class WebhookStatusError(DispatchError):
    """
    Raised when the webhook answers with a non-2xx status.

    Attributes
    ----------
    status : int
        HTTP status code.
    reason : str | None
        HTTP reason phrase.
    body : str | None
        Response body, or None if it could not be read.
    """

    def __init__(self, status: int, reason: str | None = None, body: str | None = None):
        self.status = status
        self.reason = reason
        self.body = body

        status_line = f"{status} {reason}" if reason else str(status)
        if body is not None:
            message = f"Webhook returned HTTP {status_line}: {body!r}"
        else:
            message = f"Webhook returned HTTP {status_line}"
        super().__init__(message)
