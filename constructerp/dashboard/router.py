"""Dashboard router — summary tiles for any signed-in user."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from constructerp.attendance.window import Clock, TimeWindow, get_clock, get_current_window
from constructerp.auth.dependencies import get_current_user
from constructerp.common.responses import ApiResponse
from constructerp.core.models import User
from constructerp.dashboard.schemas import DashboardStatsResponse
from constructerp.dashboard.service import DashboardService
from constructerp.database import get_db

router = APIRouter()


# ── GET /stats ──────────────────────────────────────────────────────

@router.get("/stats", response_model=ApiResponse[DashboardStatsResponse])
async def dashboard_stats(
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    window: TimeWindow = Depends(get_current_window),
    db: AsyncSession = Depends(get_db),
):
    """Sites, workers, pending approvals, today's submissions, weekly series."""
    stats = await DashboardService.get_stats(db, clock.today(), window)
    return ApiResponse(data=stats)
