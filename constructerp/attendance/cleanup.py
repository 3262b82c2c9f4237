"""Retention sweep — drop attendance older than the retention period."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from constructerp.attendance.repository import AttendanceRepository
from constructerp.attendance.window import Clock
from constructerp.config import settings
from constructerp.database import async_session_factory

logger = logging.getLogger(__name__)


async def cleanup_old_attendance(
    session: AsyncSession,
    days_to_keep: int = 40,
    today: Optional[date] = None,
) -> int:
    """Delete records whose work date is before ``today - days_to_keep``.

    Entries go with their records. Returns the number of records removed.
    """
    today = today or Clock().today()
    cutoff = today - timedelta(days=days_to_keep)
    deleted = await AttendanceRepository(session).delete_older_than(cutoff)
    logger.info(
        "Cleaned up %d attendance records older than %d days (before %s)",
        deleted,
        days_to_keep,
        cutoff.isoformat(),
    )
    return deleted


async def run_cleanup_once(days_to_keep: Optional[int] = None) -> int:
    """One sweep in its own session and transaction."""
    if days_to_keep is None:
        days_to_keep = settings.RETENTION_DAYS
    async with async_session_factory() as session:
        async with session.begin():
            return await cleanup_old_attendance(session, days_to_keep)


async def run_cleanup_loop(interval_hours: Optional[int] = None) -> None:
    """Sweep forever; started from the app lifespan and cancelled on shutdown."""
    if interval_hours is None:
        interval_hours = settings.CLEANUP_INTERVAL_HOURS
    interval = interval_hours * 3600
    while True:
        try:
            await run_cleanup_once()
        except asyncio.CancelledError:
            raise
        except Exception:
            # A failed sweep is retried on the next tick
            logger.exception("Attendance cleanup failed")
        await asyncio.sleep(interval)
