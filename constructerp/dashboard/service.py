"""Dashboard service — read-only aggregation queries.

All methods are static async. Counts and the weekly series are computed at
DB level with COUNT / SUM ... GROUP BY.
"""

from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from constructerp.attendance.models import AttendanceEntry, AttendanceRecord
from constructerp.attendance.window import TimeWindow
from constructerp.common.constants import PENDING_STATUSES, AttendanceStatus
from constructerp.core.models import Site, Worker
from constructerp.dashboard.schemas import DashboardStatsResponse, WeeklyStatPoint

WEEKLY_DAYS = 7


class DashboardService:
    """Async dashboard aggregation queries."""

    @staticmethod
    async def get_stats(
        db: AsyncSession,
        today: date,
        window: TimeWindow,
    ) -> DashboardStatsResponse:
        """Top-level tiles plus the 7-day present/total series."""
        sites = await db.scalar(select(func.count(Site.id)))
        workers = await db.scalar(select(func.count(Worker.id)))

        pending = await db.scalar(
            select(func.count(AttendanceRecord.id)).where(
                AttendanceRecord.status.in_(PENDING_STATUSES),
            )
        )
        submitted_today = await db.scalar(
            select(func.count(AttendanceRecord.id)).where(AttendanceRecord.date == today)
        )

        # Approvals stamped inside the current field day
        start, end = window.utc_bounds()
        approved_now = await db.scalar(
            select(func.count(AttendanceRecord.id)).where(
                AttendanceRecord.status == AttendanceStatus.admin_approved,
                AttendanceRecord.approved_at >= start,
                AttendanceRecord.approved_at < end,
            )
        )

        return DashboardStatsResponse(
            total_sites=sites or 0,
            total_workers=workers or 0,
            pending_approvals=pending or 0,
            today_attendance=submitted_today or 0,
            approved_current_window=approved_now or 0,
            weekly_stats=await DashboardService.get_weekly_stats(db, today),
        )

    @staticmethod
    async def get_weekly_stats(
        db: AsyncSession,
        today: date,
        days: int = WEEKLY_DAYS,
    ) -> list[WeeklyStatPoint]:
        """Per-day present / total entry counts, oldest day first.

        Days without entries are reported as zero.
        """
        first_day = today - timedelta(days=days - 1)
        present_expr = func.sum(case((AttendanceEntry.is_present.is_(True), 1), else_=0))

        result = await db.execute(
            select(
                AttendanceEntry.date,
                func.count(AttendanceEntry.id),
                present_expr,
            )
            .where(AttendanceEntry.date >= first_day, AttendanceEntry.date <= today)
            .group_by(AttendanceEntry.date)
        )
        by_day = {row[0]: (int(row[2] or 0), int(row[1])) for row in result.all()}

        points: list[WeeklyStatPoint] = []
        for offset in range(days):
            day = first_day + timedelta(days=offset)
            present, total = by_day.get(day, (0, 0))
            points.append(
                WeeklyStatPoint(
                    date=day.isoformat(),
                    day=day.strftime("%a"),
                    present=present,
                    total=total,
                )
            )
        return points
