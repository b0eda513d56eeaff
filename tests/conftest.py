"""
Shared fixtures for Discord Feed Post tests.

Provides common test fixtures for use across all test modules.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from discord_feed_post.config import config_path
from discord_feed_post.discord import DiscordWebhook
from discord_feed_post.feed import NormalizedEntry, NormalizedFeed


# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_rss_content(fixtures_dir: Path) -> str:
    """Return contents of the sample RSS 2.0 feed."""
    return (fixtures_dir / "sample_rss.xml").read_text(encoding="utf-8")


@pytest.fixture
def sample_atom_content(fixtures_dir: Path) -> str:
    """Return contents of the sample Atom feed."""
    return (fixtures_dir / "sample_atom.xml").read_text(encoding="utf-8")


@pytest.fixture
def sample_jsonfeed_content(fixtures_dir: Path) -> str:
    """Return contents of the sample JSON Feed document."""
    return (fixtures_dir / "sample_jsonfeed.json").read_text(encoding="utf-8")


@pytest.fixture
def sample_generic_content(fixtures_dir: Path) -> str:
    """Return contents of the sample serialized generic feed."""
    return (fixtures_dir / "sample_generic.json").read_text(encoding="utf-8")


@pytest.fixture
def config_root(tmp_path: Path) -> Path:
    """Return an isolated configuration root directory."""
    return tmp_path / "config"


@pytest.fixture
def write_config(config_root: Path) -> Callable[[str], Path]:
    """
    Return a helper writing YAML text to the config file under config_root.

    Returns
    -------
    Callable[[str], Path]
        Function taking the YAML text and returning the file path.
    """

    def _write(text: str) -> Path:
        path = config_path(config_root)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


def make_entry(index: int, **kwargs) -> NormalizedEntry:
    """Create a numbered entry published on day `index` of January 2020."""
    defaults = {
        "title": f"Entry {index}",
        "description": f"Description {index}",
        "link": f"https://example.com/entries/{index}",
        "published_at": datetime(2020, 1, index, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return NormalizedEntry(**defaults)


@pytest.fixture
def entry_factory() -> Callable[..., NormalizedEntry]:
    """Return the numbered entry factory."""
    return make_entry


@pytest.fixture
def sample_feed() -> NormalizedFeed:
    """
    Create a sample normalized feed with three entries.

    Returns
    -------
    NormalizedFeed
        A feed whose second entry has its own author.
    """
    return NormalizedFeed(
        title="Example Blog",
        identifier="https://example.com/feed.xml",
        entries=[
            make_entry(1),
            make_entry(2, author_name="Jane Doe"),
            make_entry(3),
        ],
        source_format="rss20",
    )


@pytest.fixture
def mock_webhook() -> MagicMock:
    """
    Create a mock webhook client.

    Returns
    -------
    MagicMock
        A DiscordWebhook stand-in whose send() records calls.
    """
    webhook = MagicMock(spec=DiscordWebhook)
    webhook.send = AsyncMock()
    return webhook
