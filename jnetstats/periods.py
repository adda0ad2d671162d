"""
jnetstats/periods.py
====================
Timestamp parsing and calendar bucketing.

All timestamps handled by the package are timezone-aware UTC datetimes.
Bucket boundaries (midnight, ISO Monday, first of month, first of year)
are computed in UTC.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Any, Optional

from jnetstats.config import HISTOGRAM_PERIODS


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string into a UTC datetime; None when not parseable."""
    if isinstance(raw, datetime):
        return ensure_utc(raw)
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return ensure_utc(parsed)


def _check_period(period: str) -> None:
    if period not in HISTOGRAM_PERIODS:
        raise ValueError(
            f"Unknown period '{period}'. Expected one of: {', '.join(HISTOGRAM_PERIODS)}"
        )


def truncate_to_period(value: datetime, period: str) -> datetime:
    """Return the start of the bucket containing ``value``."""
    _check_period(period)
    day = datetime.combine(ensure_utc(value).date(), time(0), tzinfo=timezone.utc)
    if period == 'weekly':
        return day - timedelta(days=day.weekday())
    if period == 'monthly':
        return day.replace(day=1)
    if period == 'yearly':
        return day.replace(month=1, day=1)
    return day


def add_period(value: datetime, period: str) -> datetime:
    """Advance a bucket start by one period."""
    _check_period(period)
    if period == 'daily':
        return value + timedelta(days=1)
    if period == 'weekly':
        return value + timedelta(days=7)
    if period == 'monthly':
        if value.month == 12:
            return value.replace(year=value.year + 1, month=1)
        return value.replace(month=value.month + 1)
    return value.replace(year=value.year + 1)


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(ensure_utc(value).date(), time(0), tzinfo=timezone.utc)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(
        ensure_utc(value).date(), time(23, 59, 59, 999000), tzinfo=timezone.utc
    )


def clamp_date_to_bounds(
    value: datetime,
    minimum: Optional[datetime] = None,
    maximum: Optional[datetime] = None,
) -> datetime:
    value = ensure_utc(value)
    if minimum is not None and value < minimum:
        return minimum
    if maximum is not None and value > maximum:
        return maximum
    return value


def format_period_label(value: datetime, period: str) -> str:
    """Human label for a bucket start."""
    _check_period(period)
    if period == 'yearly':
        return value.strftime('%Y')
    if period == 'monthly':
        return value.strftime('%b %Y')
    if period == 'weekly':
        return 'Week of ' + value.strftime('%Y-%m-%d')
    return value.strftime('%Y-%m-%d')


def to_epoch_ms(value: datetime) -> int:
    return int(ensure_utc(value).timestamp() * 1000)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return ensure_utc(value).isoformat().replace('+00:00', 'Z')
