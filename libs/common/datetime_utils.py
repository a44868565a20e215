"""Datetime utilities for timezone-aware UTC timestamps and studio-local dates.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

Calendar dates (class days, enrollment windows) are plain ``date`` objects and
travel between components as ISO ``YYYY-MM-DD`` strings.
"""

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from libs.common.config import get_settings


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    This replaces the deprecated datetime.utcnow() which returns naive datetimes.
    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def studio_today(now: Optional[datetime] = None) -> date:
    """Return today's date in the studio's configured timezone."""
    tz = ZoneInfo(get_settings().TIMEZONE)
    return (now or utc_now()).astimezone(tz).date()


def start_of_month_utc(now: Optional[datetime] = None) -> datetime:
    """First instant of the current studio-local month, expressed in UTC."""
    tz = ZoneInfo(get_settings().TIMEZONE)
    local = (now or utc_now()).astimezone(tz)
    first = datetime(local.year, local.month, 1, tzinfo=tz)
    return first.astimezone(timezone.utc)


def to_iso_date(d: date) -> str:
    return d.isoformat()


def parse_iso_date(value: str) -> Optional[date]:
    """Parse a strict ``YYYY-MM-DD`` string; return None when malformed."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if len(value) != 10:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None
