"""Trigger time projection — pure business logic.

Turns a record's stored date + time-of-day (or absolute start instant)
and a lead time into the instant a notification should fire.
Instants at or before "now" are rejected with None, and so is any
malformed input: one bad record must never stop a scheduling pass.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from blueberry.config import local_timezone

logger = logging.getLogger(__name__)


def parse_time_of_day(raw: str) -> tuple[int, int]:
    """Extract (hour, minute) from an "HH:MM" or "HH:MM:SS" string.

    Raises ValueError on malformed input.
    """
    parts = raw.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"No colon in time of day: {raw!r}")

    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Hour/minute out of range: {hour}:{minute}")
    return hour, minute


def _now(now: datetime | None, tz: tzinfo) -> datetime:
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now


def _minus_lead(due: datetime, lead_minutes: int) -> datetime:
    """Subtract the lead on the absolute timeline, not the local wall clock."""
    fire_at = due.astimezone(timezone.utc) - timedelta(minutes=lead_minutes)
    return fire_at.astimezone(due.tzinfo)


def _accept(fire_at: datetime, now: datetime) -> datetime | None:
    if fire_at <= now:
        return None
    return fire_at


def project_local(
    date_str: str,
    time_str: str,
    lead_minutes: int,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> datetime | None:
    """Project a calendar date + HH:MM in ``tz`` minus the lead time.

    Returns None if the instant is not in the future or the input is
    malformed.
    """
    tz = tz or local_timezone()
    try:
        day = date.fromisoformat(date_str.split("T")[0].strip())
        hour, minute = parse_time_of_day(time_str)
        due = datetime.combine(day, time(hour, minute), tzinfo=tz)
        return _accept(_minus_lead(due, lead_minutes), _now(now, tz))
    except (ValueError, TypeError, AttributeError, OverflowError) as exc:
        logger.warning("Skipping unparsable date/time %r %r: %s", date_str, time_str, exc)
        return None


def parse_instant(start: str | datetime, tz: tzinfo) -> datetime:
    """Parse an ISO-8601 string or datetime into an aware datetime.

    Naive values are interpreted in ``tz``. Raises ValueError on malformed input.
    """
    if isinstance(start, datetime):
        instant = start
    else:
        raw = start.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        instant = datetime.fromisoformat(raw)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=tz)
    return instant


def project_instant(
    start: str | datetime,
    lead_minutes: int,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> datetime | None:
    """Project an absolute start instant minus the lead time.

    Returns None if the instant is not in the future or the input is
    malformed.
    """
    tz = tz or local_timezone()
    try:
        instant = parse_instant(start, tz)
        return _accept(_minus_lead(instant, lead_minutes), _now(now, tz))
    except (ValueError, TypeError, AttributeError, OverflowError) as exc:
        logger.warning("Skipping unparsable start time %r: %s", start, exc)
        return None


def today_and_tomorrow(
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> tuple[str, str]:
    """Local ISO dates of today and tomorrow."""
    tz = tz or local_timezone()
    today = _now(now, tz).astimezone(tz).date()
    return today.isoformat(), (today + timedelta(days=1)).isoformat()
