"""Attendance router — foreman submission, incharge review, admin approval.

All endpoints require authentication; each one admits a fixed set of roles
and answers 401 to anyone else.
"""


import datetime as dt
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from constructerp.attendance.schemas import (
    AdminUpdateAttendanceRequest,
    ApproveAttendanceRequest,
    AttendanceRecordResponse,
    RejectAttendanceRequest,
    ReviewAttendanceRequest,
    SubmissionCheckResponse,
    SubmitAttendanceRequest,
)
from constructerp.attendance.service import (
    AttendanceService,
    get_attendance_service,
    to_response,
)
from constructerp.attendance.window import TimeWindow, get_current_window
from constructerp.auth.dependencies import get_current_user, require_role
from constructerp.common.constants import AttendanceStatus, UserRole
from constructerp.common.responses import ApiResponse, MessageResponse
from constructerp.core.models import User

router = APIRouter(prefix="", tags=["attendance"])

RecordList = ApiResponse[list[AttendanceRecordResponse]]


def listing_filters(
    site_id: Optional[uuid.UUID] = Query(None, alias="siteId"),
    foreman_id: Optional[uuid.UUID] = Query(None, alias="foremanId"),
    from_date: Optional[dt.date] = Query(None, alias="fromDate"),
    to_date: Optional[dt.date] = Query(None, alias="toDate"),
) -> dict:
    """Optional admin listing filters, keyed for the filter translator."""
    return {
        "siteId": site_id,
        "foremanId": foreman_id,
        "date__from": from_date,
        "date__to": to_date,
    }


# ── Foreman ─────────────────────────────────────────────────────────

@router.post("/submit", response_model=ApiResponse[AttendanceRecordResponse])
async def submit_attendance(
    body: SubmitAttendanceRequest,
    user: User = Depends(require_role(UserRole.foreman)),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Submit the day's attendance for the foreman's site."""
    record = await service.submit(user, body)
    return ApiResponse(data=to_response(record))


@router.post("/save-draft", response_model=MessageResponse)
async def save_draft(user: User = Depends(require_role(UserRole.foreman))):
    """Drafts are kept client-side; the server only acknowledges."""
    return MessageResponse(message="Draft saved successfully")


@router.get("/check/{work_date}", response_model=ApiResponse[SubmissionCheckResponse])
async def check_submission(
    work_date: dt.date,
    user: User = Depends(require_role(UserRole.foreman)),
    service: AttendanceService = Depends(get_attendance_service),
):
    submitted = await service.has_submitted(user, work_date)
    return ApiResponse(data=SubmissionCheckResponse(has_submitted=submitted))


# ── Site incharge ───────────────────────────────────────────────────

@router.get("/pending-review", response_model=RecordList)
async def pending_review(
    user: User = Depends(require_role(UserRole.site_incharge)),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Submissions of the incharge's site awaiting review, newest first."""
    records = await service.pending_review(user)
    return ApiResponse(data=[to_response(r) for r in records])


@router.post("/review/{record_id}", response_model=MessageResponse)
async def review_attendance(
    record_id: uuid.UUID,
    body: ReviewAttendanceRequest,
    user: User = Depends(require_role(UserRole.site_incharge)),
    service: AttendanceService = Depends(get_attendance_service),
):
    await service.review(record_id, user, body)
    return MessageResponse(message="Attendance reviewed successfully")


@router.post("/reject/{record_id}", response_model=MessageResponse)
async def reject_attendance(
    record_id: uuid.UUID,
    body: RejectAttendanceRequest,
    user: User = Depends(require_role(UserRole.admin, UserRole.site_incharge)),
    service: AttendanceService = Depends(get_attendance_service),
):
    await service.reject(record_id, user, body.reason)
    return MessageResponse(message="Attendance rejected")


# ── Admin ───────────────────────────────────────────────────────────

@router.get("/pending-admin", response_model=RecordList)
async def pending_admin(
    filters: dict = Depends(listing_filters),
    user: User = Depends(require_role(UserRole.admin)),
    service: AttendanceService = Depends(get_attendance_service),
):
    records = await service.list_by_status(AttendanceStatus.incharge_reviewed, filters)
    return ApiResponse(data=[to_response(r) for r in records])


@router.post("/admin-approve/{record_id}", response_model=MessageResponse)
async def admin_approve(
    record_id: uuid.UUID,
    body: Optional[ApproveAttendanceRequest] = None,
    user: User = Depends(require_role(UserRole.admin)),
    service: AttendanceService = Depends(get_attendance_service),
):
    comments = body.comments if body is not None else None
    await service.approve(record_id, user, comments)
    return MessageResponse(message="Attendance approved successfully")


@router.get("/approved", response_model=RecordList)
async def approved_records(
    filters: dict = Depends(listing_filters),
    user: User = Depends(require_role(UserRole.admin)),
    service: AttendanceService = Depends(get_attendance_service),
):
    records = await service.list_by_status(AttendanceStatus.admin_approved, filters)
    return ApiResponse(data=[to_response(r) for r in records])


@router.get("/foreman/{foreman_id}", response_model=RecordList)
async def foreman_records(
    foreman_id: uuid.UUID,
    user: User = Depends(require_role(UserRole.admin)),
    service: AttendanceService = Depends(get_attendance_service),
):
    records = await service.by_foreman(foreman_id)
    return ApiResponse(data=[to_response(r) for r in records])


@router.get(
    "/foreman/{foreman_id}/current",
    response_model=ApiResponse[Optional[AttendanceRecordResponse]],
)
async def foreman_current(
    foreman_id: uuid.UUID,
    window: TimeWindow = Depends(get_current_window),
    user: User = Depends(require_role(UserRole.admin)),
    service: AttendanceService = Depends(get_attendance_service),
):
    """The foreman's record approved in the current field day, if any."""
    record = await service.current_for_foreman(foreman_id, window)
    return ApiResponse(data=to_response(record) if record is not None else None)


@router.get("/foreman/{foreman_id}/history", response_model=RecordList)
async def foreman_history(
    foreman_id: uuid.UUID,
    window: TimeWindow = Depends(get_current_window),
    user: User = Depends(require_role(UserRole.admin)),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Approved records from before the current field day."""
    records = await service.history_for_foreman(foreman_id, window)
    return ApiResponse(data=[to_response(r) for r in records])


@router.get("/site/{site_id}/current", response_model=RecordList)
async def site_current(
    site_id: uuid.UUID,
    window: TimeWindow = Depends(get_current_window),
    user: User = Depends(require_role(UserRole.admin)),
    service: AttendanceService = Depends(get_attendance_service),
):
    records = await service.current_for_site(site_id, window)
    return ApiResponse(data=[to_response(r) for r in records])


# ── Any role ────────────────────────────────────────────────────────

@router.get("/recent", response_model=RecordList)
async def recent_attendance(
    user: User = Depends(get_current_user),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Latest submissions; foremen see their own, incharges their site."""
    records = await service.recent(user)
    return ApiResponse(data=[to_response(r) for r in records])


# ── PUT /{id} — registered last so it never shadows the paths above ─

@router.put("/{record_id}", response_model=ApiResponse[AttendanceRecordResponse])
async def admin_update(
    record_id: uuid.UUID,
    body: AdminUpdateAttendanceRequest,
    user: User = Depends(require_role(UserRole.admin)),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Admin correction of entries, times or comments; status is unchanged."""
    record = await service.admin_update(record_id, user, body)
    return ApiResponse(data=to_response(record), message="Attendance updated successfully")
