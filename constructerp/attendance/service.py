"""Attendance service layer — the submit → review → approve workflow.

Business logic:
  - Foreman submission with one-per-day guard and derived counters
  - Incharge review / admin approval / rejection through the lifecycle table
  - Admin direct edit (entries, times, comments; status untouched)
  - Role-scoped listings and field-day window lookups
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from fastapi import Depends, Request
from sqlalchemy.exc import IntegrityError

from constructerp.attendance.lifecycle import (
    Action,
    apply_transition,
    authorize,
    check_role,
    refresh_counters,
)
from constructerp.attendance.models import AttendanceRecord
from constructerp.attendance.repository import (
    AttendanceRepository,
    get_attendance_repository,
)
from constructerp.attendance.schemas import (
    AdminUpdateAttendanceRequest,
    AttendanceEntryIn,
    AttendanceRecordResponse,
    ReviewAttendanceRequest,
    SubmitAttendanceRequest,
)
from constructerp.attendance.window import (
    Clock,
    TimeWindow,
    get_clock,
    select_historical,
)
from constructerp.common.audit import create_audit_entry
from constructerp.common.constants import AttendanceStatus, UserRole
from constructerp.common.exceptions import NotFoundException, ValidationException
from constructerp.common.field_map import row_to_dict
from constructerp.config import settings
from constructerp.core.models import Site, User

# Fields captured in the audit trail for every transition
_AUDIT_FIELDS = (
    "status",
    "totalWorkers",
    "presentWorkers",
    "inTime",
    "outTime",
    "reviewedBy",
    "approvedBy",
    "rejectedBy",
)


def _entry_rows(entries: Sequence[AttendanceEntryIn]) -> list[dict]:
    return [e.to_columns() for e in entries]


def to_response(record: AttendanceRecord) -> AttendanceRecordResponse:
    return AttendanceRecordResponse.model_validate(record)


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Attendance workflow operations over an injected repository."""

    def __init__(
        self,
        repo: AttendanceRepository,
        clock: Optional[Clock] = None,
        ip_address: Optional[str] = None,
    ) -> None:
        self.repo = repo
        self.clock = clock or Clock()
        self.ip_address = ip_address

    @property
    def session(self):
        return self.repo.session

    # ── Helpers ─────────────────────────────────────────────────────

    def _now(self) -> datetime:
        """Current instant in UTC; every stored timestamp is UTC."""
        return self.clock.now().astimezone(timezone.utc)

    async def _get_record(self, record_id: uuid.UUID) -> AttendanceRecord:
        record = await self.repo.get(record_id)
        if record is None:
            raise NotFoundException("Record", record_id)
        return record

    async def _audit(
        self,
        action: Action,
        record: AttendanceRecord,
        actor: User,
        old_values: Optional[dict] = None,
    ) -> None:
        await create_audit_entry(
            self.session,
            action=action.value,
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=actor.id,
            old_values=old_values,
            new_values=row_to_dict(record, _AUDIT_FIELDS),
            ip_address=self.ip_address,
        )

    # ── Submit ──────────────────────────────────────────────────────

    async def submit(self, foreman: User, body: SubmitAttendanceRequest) -> AttendanceRecord:
        """Create today's submission for *foreman*'s site."""
        transition = authorize(Action.submit, foreman)

        if body.date is None or not body.entries:
            raise ValidationException("Missing required fields")

        existing = await self.repo.find_one(foreman_id=foreman.id, date=body.date)
        if existing is not None:
            raise ValidationException("Attendance already submitted for this date")

        if foreman.site_id is None:
            raise ValidationException("Foreman is not assigned to a site")
        site = await self.session.get(Site, foreman.site_id)

        record = AttendanceRecord(
            id=uuid.uuid4(),
            date=body.date,
            site_id=foreman.site_id,
            site_name=site.name if site is not None else "Unknown Site",
            foreman_id=foreman.id,
            foreman_name=foreman.name,
            in_time=body.in_time,
            out_time=body.out_time,
        )
        apply_transition(record, transition, foreman, self._now())
        try:
            await self.repo.insert(record, _entry_rows(body.entries))
        except IntegrityError as exc:
            await self.session.rollback()
            err = str(exc.orig)
            if "uq_attendance_foreman_date" in err or "attendance_records.foreman_id" in err:
                raise ValidationException("Attendance already submitted for this date")
            raise
        refresh_counters(record, initial=True)
        await self.session.flush()

        await self._audit(Action.submit, record, foreman)
        return record

    async def has_submitted(self, foreman: User, work_date: date) -> bool:
        check_role(Action.submit, foreman)
        record = await self.repo.find_one(foreman_id=foreman.id, date=work_date)
        return record is not None

    # ── Review (site incharge) ──────────────────────────────────────

    async def review(
        self,
        record_id: uuid.UUID,
        incharge: User,
        body: ReviewAttendanceRequest,
    ) -> AttendanceRecord:
        """Apply the incharge's corrected entries and move to ``incharge_reviewed``."""
        check_role(Action.review, incharge)
        if body.entries is None:
            raise ValidationException("Missing entries")

        record = await self.repo.get(record_id)
        if record is None or record.site_id != incharge.site_id:
            raise NotFoundException("Record", record_id)

        transition = authorize(Action.review, incharge, record)
        before = row_to_dict(record, _AUDIT_FIELDS)

        await self.repo.replace_entries(record, _entry_rows(body.entries))
        refresh_counters(record)
        apply_transition(record, transition, incharge, self._now(), body.comments)
        await self.session.flush()

        await self._audit(Action.review, record, incharge, before)
        return record

    # ── Approve / reject ────────────────────────────────────────────

    async def approve(
        self,
        record_id: uuid.UUID,
        admin: User,
        comments: Optional[str] = None,
    ) -> AttendanceRecord:
        """Final approval. No version check: concurrent approvals both win."""
        check_role(Action.approve, admin)
        record = await self._get_record(record_id)
        transition = authorize(Action.approve, admin, record)
        before = row_to_dict(record, _AUDIT_FIELDS)

        apply_transition(record, transition, admin, self._now(), comments)
        await self.session.flush()

        await self._audit(Action.approve, record, admin, before)
        return record

    async def reject(
        self,
        record_id: uuid.UUID,
        actor: User,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        check_role(Action.reject, actor)
        record = await self._get_record(record_id)
        transition = authorize(Action.reject, actor, record)
        before = row_to_dict(record, _AUDIT_FIELDS)

        apply_transition(record, transition, actor, self._now(), reason)
        await self.session.flush()

        await self._audit(Action.reject, record, actor, before)
        return record

    # ── Admin direct edit ───────────────────────────────────────────

    async def admin_update(
        self,
        record_id: uuid.UUID,
        admin: User,
        body: AdminUpdateAttendanceRequest,
    ) -> AttendanceRecord:
        """Correct entries / times / comments without touching the status."""
        check_role(Action.edit, admin)
        record = await self._get_record(record_id)
        transition = authorize(Action.edit, admin, record)
        before = row_to_dict(record, _AUDIT_FIELDS)

        if body.entries:
            await self.repo.replace_entries(record, _entry_rows(body.entries))
            refresh_counters(record)
        if body.in_time:
            record.in_time = body.in_time
        if body.out_time:
            record.out_time = body.out_time
        apply_transition(record, transition, admin, self._now(), body.admin_comments or None)
        await self.session.flush()

        await self._audit(Action.edit, record, admin, before)
        return record

    # ── Listings ────────────────────────────────────────────────────

    async def pending_review(self, incharge: User) -> Sequence[AttendanceRecord]:
        """Submitted records of the incharge's own site, newest first."""
        return await self.repo.find(
            {"site_id": incharge.site_id, "status": AttendanceStatus.submitted},
            sort="-submitted_at",
            limit=settings.LISTING_LIMIT,
        )

    async def list_by_status(
        self,
        status: AttendanceStatus,
        filters: Optional[dict] = None,
    ) -> Sequence[AttendanceRecord]:
        """Admin listings; capped, no guaranteed order."""
        query = {**(filters or {}), "status": status}
        return await self.repo.find(query, limit=settings.LISTING_LIMIT)

    async def by_foreman(self, foreman_id: uuid.UUID) -> Sequence[AttendanceRecord]:
        return await self.repo.find_by_foreman(foreman_id)

    async def recent(self, user: User) -> Sequence[AttendanceRecord]:
        """Latest submissions visible to *user*."""
        filters: dict = {}
        if user.role == UserRole.foreman:
            filters["foreman_id"] = user.id
        elif user.role == UserRole.site_incharge:
            filters["site_id"] = user.site_id
        return await self.repo.find(filters, sort="-submitted_at", limit=settings.RECENT_LIMIT)

    # ── Field-day window lookups ────────────────────────────────────

    async def approved_in_window(
        self,
        window: TimeWindow,
        filters: Optional[dict] = None,
    ) -> Sequence[AttendanceRecord]:
        """Records approved within ``[window.start, window.end)``."""
        start, end = window.utc_bounds()
        query = {
            **(filters or {}),
            "status": AttendanceStatus.admin_approved,
            "approved_at__from": start,
            "approved_at__lt": end,
        }
        return await self.repo.find(query, sort="-approved_at")

    async def current_for_foreman(
        self,
        foreman_id: uuid.UUID,
        window: TimeWindow,
    ) -> Optional[AttendanceRecord]:
        records = await self.approved_in_window(window, {"foreman_id": foreman_id})
        return records[0] if records else None

    async def current_for_site(
        self,
        site_id: uuid.UUID,
        window: TimeWindow,
    ) -> Sequence[AttendanceRecord]:
        return await self.approved_in_window(window, {"site_id": site_id})

    async def history_for_foreman(
        self,
        foreman_id: uuid.UUID,
        window: TimeWindow,
        lookback_days: Optional[int] = None,
    ) -> list[AttendanceRecord]:
        """Approved records before the current field day, within the lookback."""
        days = settings.HISTORY_LOOKBACK_DAYS if lookback_days is None else lookback_days
        approved = await self.repo.find(
            {"foreman_id": foreman_id, "status": AttendanceStatus.admin_approved},
        )
        return select_historical(approved, window, days)


def get_attendance_service(
    request: Request,
    repo: AttendanceRepository = Depends(get_attendance_repository),
    clock: Clock = Depends(get_clock),
) -> AttendanceService:
    """FastAPI dependency: service bound to the request's repository, clock and client."""
    ip = request.client.host if request.client else None
    return AttendanceService(repo, clock, ip)
