"""
Blueberry Planner Notifier — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from datetime import datetime, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from blueberry/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Blueberry API
    BLUEBERRY_API_URL: str
    BLUEBERRY_FAMILY_ID: str
    BLUEBERRY_USER_ID: str = ""
    API_TIMEOUT_SECONDS: float = 10

    # Telegram (only needed for the telegram / direct sinks)
    TELEGRAM_BOT_TOKEN: str = ""
    NOTIFY_CHAT_ID: int | None = None

    # Notification sink: "telegram" | "direct" | "memory" | "none"
    NOTIFICATION_SINK: str = "telegram"

    # Security
    ALLOWED_USER_IDS: list[int] = []

    # Scheduling
    TIMEZONE: str = ""           # empty → system local zone
    RESCHEDULE_MIN_INTERVAL_SECONDS: float = 5
    REFRESH_INTERVAL_MINUTES: int = 15

    # Deep links appended to fired notifications, e.g. "https://planner.example.com"
    APP_BASE_URL: str = ""

    LOG_LEVEL: str = "INFO"

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("NOTIFY_CHAT_ID", mode="before")
    @classmethod
    def parse_chat_id(cls, v: str | int | None) -> int | None:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return int(v)

    @field_validator("BLUEBERRY_API_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


def local_timezone(name: str | None = None) -> tzinfo:
    """Return the zone used to interpret calendar dates and HH:MM times.

    Falls back to the system local zone when no name is configured.
    """
    if name is None:
        name = settings.TIMEZONE
    if name:
        return ZoneInfo(name)
    return datetime.now().astimezone().tzinfo


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    api_url = os.getenv("BLUEBERRY_API_URL", "")
    family_id = os.getenv("BLUEBERRY_FAMILY_ID", "")

    if not api_url or "your-" in api_url:
        print("ERROR: BLUEBERRY_API_URL is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    if not family_id or family_id.startswith("your-"):
        print("ERROR: BLUEBERRY_FAMILY_ID is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        BLUEBERRY_API_URL=api_url,
        BLUEBERRY_FAMILY_ID=family_id,
        BLUEBERRY_USER_ID=os.getenv("BLUEBERRY_USER_ID", ""),
        API_TIMEOUT_SECONDS=os.getenv("API_TIMEOUT_SECONDS", "10"),
        TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        NOTIFY_CHAT_ID=os.getenv("NOTIFY_CHAT_ID", ""),
        NOTIFICATION_SINK=os.getenv("NOTIFICATION_SINK", "telegram"),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        TIMEZONE=os.getenv("TIMEZONE", ""),
        RESCHEDULE_MIN_INTERVAL_SECONDS=os.getenv("RESCHEDULE_MIN_INTERVAL_SECONDS", "5"),
        REFRESH_INTERVAL_MINUTES=os.getenv("REFRESH_INTERVAL_MINUTES", "15"),
        APP_BASE_URL=os.getenv("APP_BASE_URL", ""),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton — imported by all other modules as:
#   from blueberry.config import settings
settings = _load_settings()
