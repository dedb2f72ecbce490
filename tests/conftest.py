"""Shared test fixtures and configuration.

Sets up fake environment variables so blueberry.config doesn't sys.exit(),
and provides common fixtures like a fixed clock and an in-memory sink.
"""

import os

# Patch env vars BEFORE any blueberry imports
os.environ.setdefault("BLUEBERRY_API_URL", "https://api.test/api")
os.environ.setdefault("BLUEBERRY_FAMILY_ID", "fam-1")
os.environ.setdefault("BLUEBERRY_USER_ID", "user-1")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("NOTIFICATION_SINK", "memory")
os.environ.setdefault("TIMEZONE", "UTC")

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

UTC = ZoneInfo("UTC")


@pytest.fixture
def tz():
    """Zone used to interpret dates and times in tests."""
    return UTC


@pytest.fixture
def now():
    """A fixed 'current time': 2026-03-10 06:00 UTC."""
    return datetime(2026, 3, 10, 6, 0, tzinfo=UTC)


@pytest.fixture
def memory_sink():
    """Return an InMemorySink with permission granted."""
    from blueberry.adapters.memory_sink import InMemorySink
    return InMemorySink()
