"""
Season clock.

Seasons are UTC weeks starting Monday 00:00. A season id is the ISO date of
that Monday, so ids compare lexically in time order.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from .errors import SeasonNotFound
from .models import Season

SEASON_LENGTH = timedelta(days=7)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def season_start(now: datetime) -> datetime:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.astimezone(timezone.utc).date()
    monday = today - timedelta(days=today.weekday())
    return datetime.combine(monday, time.min, tzinfo=timezone.utc)


def season_id(now: datetime) -> str:
    return season_start(now).date().isoformat()


def current_season(now: Optional[datetime] = None) -> Season:
    start = season_start(now or utc_now())
    return Season(id=start.date().isoformat(), starts_at=start, ends_at=start + SEASON_LENGTH)


def previous_season(now: Optional[datetime] = None) -> Season:
    start = season_start(now or utc_now()) - SEASON_LENGTH
    return Season(id=start.date().isoformat(), starts_at=start, ends_at=start + SEASON_LENGTH)


def parse_season(value: str) -> Season:
    """Resolve a season id back to its bounds. Any date inside the week is accepted."""
    try:
        day = date.fromisoformat(value)
    except (TypeError, ValueError):
        raise SeasonNotFound(f"Unknown season {value!r}")
    start = season_start(datetime.combine(day, time.min, tzinfo=timezone.utc))
    return Season(id=start.date().isoformat(), starts_at=start, ends_at=start + SEASON_LENGTH)
