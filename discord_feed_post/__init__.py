"""
Discord Feed Post - Forward an RSS/Atom/JSON feed to a Discord webhook.

Reads a single feed document from standard input, looks up the webhook
configured for that feed and posts its latest entries as embeds.
"""

__version__ = "1.0.0"
