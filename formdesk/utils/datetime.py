"""Time utilities with timezone-aware defaults."""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return current UTC time with tzinfo."""

    return datetime.now(timezone.utc)


def ensure_aware(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def month_start(moment: datetime, tz: str | ZoneInfo = "UTC") -> date:
    """Return the first day of the calendar month containing ``moment``.

    The month boundary is evaluated in ``tz`` so that a submission made at
    23:30 local time on the last day of the month is not pushed into the next
    month by a UTC offset.
    """

    zone = tz if isinstance(tz, ZoneInfo) else ZoneInfo(tz)
    local = ensure_aware(moment).astimezone(zone)
    return date(local.year, local.month, 1)


__all__ = ["ensure_aware", "month_start", "utc_now"]
