"""India Standard Time day labels.

Day labels are ``YYYY-MM-DD`` strings in a fixed UTC+05:30 calendar with no
daylight saving. Streak continuity checks compare labels by string equality,
so the format must never change.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


IST = timezone(timedelta(hours=5, minutes=30), "IST")


def now_ist(now: datetime | None = None) -> datetime:
    """Current (or given) instant expressed in IST."""
    if now is None:
        return datetime.now(IST)
    if now.tzinfo is None:
        raise ValueError("naive datetimes are ambiguous; pass an aware instant")
    return now.astimezone(IST)


def today_str(now: datetime | None = None) -> str:
    """Day label of *now* (default: the wall clock)."""
    return now_ist(now).date().isoformat()


def yesterday_label(label: str) -> str:
    """Day label for the calendar day before *label*."""
    return (date.fromisoformat(label) - timedelta(days=1)).isoformat()


def tomorrow_label(label: str) -> str:
    return (date.fromisoformat(label) + timedelta(days=1)).isoformat()


def next_midnight(now: datetime | None = None) -> datetime:
    """The next 00:00 IST strictly after *now*."""
    local = now_ist(now)
    return datetime.combine(local.date() + timedelta(days=1), time(0, 0), tzinfo=IST)


def seconds_until_next_midnight(now: datetime | None = None) -> float:
    local = now_ist(now)
    return (next_midnight(local) - local).total_seconds()
