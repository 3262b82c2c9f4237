"""Attendance ORM models: AttendanceRecord, AttendanceEntry."""

from __future__ import annotations

import uuid
import datetime as dt
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from constructerp.common.constants import AttendanceStatus
from constructerp.database import Base

if TYPE_CHECKING:
    from constructerp.core.models import Site, User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AttendanceRecord(Base):
    """One foreman's daily submission for a site."""

    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint("foreman_id", "date", name="uq_attendance_foreman_date"),
        sa.Index("ix_attendance_records_site_status", "site_id", "status"),
        sa.Index("ix_attendance_records_approved_at", "approved_at"),
    )

    API_FIELDS = {
        "id": "id",
        "date": "date",
        "siteId": "site_id",
        "siteName": "site_name",
        "foremanId": "foreman_id",
        "foremanName": "foreman_name",
        "status": "status",
        "inTime": "in_time",
        "outTime": "out_time",
        "totalWorkers": "total_workers",
        "presentWorkers": "present_workers",
        "submittedAt": "submitted_at",
        "markedBy": "marked_by",
        "reviewedAt": "reviewed_at",
        "reviewedBy": "reviewed_by",
        "inchargeComments": "incharge_comments",
        "approvedAt": "approved_at",
        "approvedBy": "approved_by",
        "adminComments": "admin_comments",
        "rejectedAt": "rejected_at",
        "rejectedBy": "rejected_by",
        "rejectionReason": "rejection_reason",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    site_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("sites.id"), nullable=False
    )
    site_name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    foreman_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False
    )
    foreman_name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    status: Mapped[AttendanceStatus] = mapped_column(
        sa.Enum(AttendanceStatus, name="attendance_status"),
        nullable=False,
        default=AttendanceStatus.submitted,
    )
    in_time: Mapped[Optional[str]] = mapped_column(sa.String(20))
    out_time: Mapped[Optional[str]] = mapped_column(sa.String(20))
    total_workers: Mapped[int] = mapped_column(sa.Integer, default=0)
    present_workers: Mapped[int] = mapped_column(sa.Integer, default=0)

    # Lifecycle stamps
    submitted_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    marked_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id")
    )
    incharge_comments: Mapped[Optional[str]] = mapped_column(sa.Text)
    approved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id")
    )
    admin_comments: Mapped[Optional[str]] = mapped_column(sa.Text)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    rejected_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id")
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(sa.Text)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    site: Mapped[Site] = relationship()
    foreman: Mapped[User] = relationship(foreign_keys=[foreman_id])
    entries: Mapped[list[AttendanceEntry]] = relationship(
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="AttendanceEntry.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<AttendanceRecord {self.date} foreman={self.foreman_id} {self.status.value}>"


class AttendanceEntry(Base):
    """A single worker's line within a daily submission."""

    __tablename__ = "attendance_entries"
    __table_args__ = (
        sa.UniqueConstraint("worker_id", "date", name="uq_attendance_entry_worker_date"),
    )

    API_FIELDS = {
        "id": "id",
        "workerId": "worker_id",
        "workerName": "worker_name",
        "designation": "designation",
        "isPresent": "is_present",
        "hoursWorked": "hours_worked",
        "formulaX": "formula_x",
        "formulaY": "formula_y",
        "remarks": "remarks",
        "date": "date",
    }

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    record_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("attendance_records.id", ondelete="CASCADE"),
        nullable=False,
    )
    worker_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("workers.id", ondelete="CASCADE"), nullable=False
    )
    worker_name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    designation: Mapped[Optional[str]] = mapped_column(sa.String(100))
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    position: Mapped[int] = mapped_column(sa.Integer, default=0)
    is_present: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    hours_worked: Mapped[float] = mapped_column(sa.Float, default=0.0)
    formula_x: Mapped[float] = mapped_column(sa.Float, default=0.0)
    formula_y: Mapped[float] = mapped_column(sa.Float, default=0.0)
    remarks: Mapped[Optional[str]] = mapped_column(sa.Text)

    # Relationships
    record: Mapped[AttendanceRecord] = relationship(back_populates="entries")
