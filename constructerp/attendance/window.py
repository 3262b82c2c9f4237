"""Field-day window resolution.

Sites change shift at 05:30 local time, so the "current day" runs from the
most recent 05:30 to the next one rather than midnight to midnight:

    now = 05:29 → window = [yesterday 05:30, today 05:30)
    now = 05:31 → window = [today 05:30,     tomorrow 05:30)

The window is resolved once per request (``get_current_window``) and handed
to every query in that request, so two lookups in one call can never
disagree about the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from fastapi import Depends

from constructerp.common.constants import AttendanceStatus
from constructerp.config import settings

DAY = timedelta(hours=24)


@dataclass(frozen=True)
class TimeWindow:
    """The current field day ``[start, end)`` as seen at ``now``."""

    start: datetime
    end: datetime
    now: datetime

    @property
    def tz(self):
        return self.now.tzinfo

    def contains(self, ts: datetime) -> bool:
        return self.start <= _aware(ts) < self.end

    def lookback_start(self, days: int) -> datetime:
        return self.now - timedelta(days=days)

    def utc_bounds(self) -> tuple[datetime, datetime]:
        """``(start, end)`` in UTC, for comparison against stored timestamps."""
        return self.start.astimezone(timezone.utc), self.end.astimezone(timezone.utc)


def resolve_window(
    now: datetime,
    *,
    hour: int = 5,
    minute: int = 30,
) -> TimeWindow:
    """Compute the field day containing *now* (a tz-aware local time)."""
    anchor = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    start = anchor - DAY if now < anchor else anchor
    return TimeWindow(start=start, end=start + DAY, now=now)


# ── Record predicates ───────────────────────────────────────────────

def _aware(ts: datetime) -> datetime:
    # SQLite drops tzinfo on round trip; stored values are always UTC
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def record_effective_time(record, tz) -> datetime:
    """Approval time, or midnight of the work date when never stamped."""
    if record.approved_at is not None:
        return _aware(record.approved_at)
    return datetime.combine(record.date, time.min, tzinfo=tz)


def is_current(record, window: TimeWindow) -> bool:
    """Approved within the current field day."""
    return (
        record.status == AttendanceStatus.admin_approved
        and record.approved_at is not None
        and window.contains(record.approved_at)
    )


def is_historical(record, window: TimeWindow, lookback_days: int) -> bool:
    """Approved before the current field day but within the lookback."""
    if record.status != AttendanceStatus.admin_approved:
        return False
    effective = record_effective_time(record, window.tz)
    return window.lookback_start(lookback_days) <= effective < window.start


def select_historical(
    records: Iterable,
    window: TimeWindow,
    lookback_days: int,
) -> list:
    """Historical approved records, newest work date first."""
    eligible = [r for r in records if is_historical(r, window, lookback_days)]
    return sorted(eligible, key=lambda r: r.date, reverse=True)


# ── Clock + FastAPI dependencies ────────────────────────────────────

class Clock:
    """Wall clock in the sites' local zone."""

    def __init__(self, tz_name: Optional[str] = None) -> None:
        self.tz = ZoneInfo(tz_name or settings.TIMEZONE)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


def get_clock() -> Clock:
    """FastAPI dependency; tests override it with a fixed clock."""
    return Clock()


def get_current_window(clock: Clock = Depends(get_clock)) -> TimeWindow:
    """Resolve the field-day window once for the whole request."""
    return resolve_window(
        clock.now(),
        hour=settings.DAY_START_HOUR,
        minute=settings.DAY_START_MINUTE,
    )
