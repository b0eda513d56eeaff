"""
Configuration management for Discord Feed Post.

Loads the feed-to-webhook mapping from a YAML file under the per-user
configuration directory, creating an empty file on first use.
"""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import RootModel, ValidationError

from discord_feed_post.errors import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "discord-feed-post"
CONFIG_FILENAME = "config.yaml"
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


class WebhookMapping(RootModel[dict[str, str]]):
    """
    Mapping from feed identifier to Discord webhook URL.

    Feed identifiers are the feed's self link, home page link or Atom id,
    depending on what the feed provides.
    """

    root: dict[str, str]


def default_config_root() -> Path:
    """
    Return the per-user configuration root.

    Follows the XDG base directory convention: ``$XDG_CONFIG_HOME`` when it
    is set to an absolute path, ``~/.config`` otherwise.

    Returns
    -------
    Path
        Configuration root directory.
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config_home and os.path.isabs(xdg_config_home):
        return Path(xdg_config_home)
    return Path.home() / ".config"


def config_path(config_root: str | Path | None = None) -> Path:
    """
    Return the path of the configuration file.

    Parameters
    ----------
    config_root : str | Path | None
        Configuration root directory. Defaults to default_config_root().

    Returns
    -------
    Path
        ``<config_root>/discord-feed-post/config.yaml``.
    """
    root = Path(config_root) if config_root is not None else default_config_root()
    return root / APP_NAME / CONFIG_FILENAME


def expand_webhook_urls(webhooks: dict[str, str]) -> dict[str, str]:
    """
    Expand ``${VAR}`` and ``${VAR:-default}`` references in webhook URLs.

    Feed identifiers are left as written. A variable that is unset and has
    no default is kept verbatim and logged.

    Parameters
    ----------
    webhooks : dict[str, str]
        Mapping from feed identifier to webhook URL.

    Returns
    -------
    dict[str, str]
        A new mapping with environment references expanded.
    """
    expanded = {}
    for identifier, url in webhooks.items():
        unresolved = []

        def lookup(match: re.Match) -> str:
            value = os.environ.get(match.group(1), match.group(2))
            if value is None:
                unresolved.append(match.group(1))
                return match.group(0)
            return value

        expanded[identifier] = ENV_VAR_PATTERN.sub(lookup, url)
        if unresolved:
            logger.warning(
                "Webhook for '%s' references unset variable(s): %s",
                identifier,
                ", ".join(unresolved),
            )
    return expanded


def _ensure_config_file(path: Path) -> None:
    """Create an empty config file, and its parent directories, if missing."""
    if path.exists():
        return

    logger.info("Configuration file not found, creating an empty one at %s", path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
    except OSError as e:
        raise ConfigError(f"Failed to create configuration file {path}: {e}") from e


def load_config(config_root: str | Path | None = None) -> dict[str, str]:
    """
    Load the feed-to-webhook mapping.

    A missing configuration file is created empty, along with its parent
    directories, and yields an empty mapping.

    Parameters
    ----------
    config_root : str | Path | None
        Configuration root directory. Defaults to default_config_root().

    Returns
    -------
    dict[str, str]
        Mapping from feed identifier to webhook URL.

    Raises
    ------
    ConfigError
        If the file cannot be created or read, is not valid YAML, or is not
        a flat mapping of strings.
    """
    path = config_path(config_root)
    _ensure_config_file(path)

    logger.debug("Loading configuration from %s", path)

    try:
        with open(path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file {path}: {e}") from e
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to parse configuration file {path}: {e}") from e

    if raw_config is None:
        logger.debug("Configuration file %s is empty", path)
        return {}

    try:
        mapping = WebhookMapping.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration file {path}: expected a mapping of feed "
            f"identifiers to webhook URLs: {e}"
        ) from e

    logger.debug("Configuration loaded: %d webhook(s) configured", len(mapping.root))
    return expand_webhook_urls(mapping.root)
