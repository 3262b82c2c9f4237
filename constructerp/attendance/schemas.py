"""Attendance Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Request  → request bodies (write)
  - *Response → response bodies (read)

JSON keys are camelCase (``workerId``, ``isPresent``); Python attributes stay
snake_case and line up with each model's ``API_FIELDS`` table.
"""


import math
import uuid
import datetime as dt
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from constructerp.common.constants import HOURS_PER_WORK_UNIT, AttendanceStatus


class CamelModel(BaseModel):
    """Base for camelCase JSON ⇄ snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ═════════════════════════════════════════════════════════════════════
# Entries
# ═════════════════════════════════════════════════════════════════════


class AttendanceEntryIn(CamelModel):
    """One worker line as sent by the foreman / incharge / admin."""

    worker_id: uuid.UUID
    worker_name: str = Field(..., min_length=1, max_length=200)
    designation: Optional[str] = Field(None, max_length=100)
    is_present: bool = False
    hours_worked: float = Field(0.0, ge=0, le=24)
    formula_x: Optional[float] = Field(None, ge=0)
    formula_y: Optional[float] = Field(None, ge=0)
    remarks: Optional[str] = None

    def work_units(self) -> tuple[float, float]:
        """(X, Y): full 8-hour blocks and remainder hours, unless given explicitly."""
        x = self.formula_x
        if x is None:
            x = float(math.floor(self.hours_worked / HOURS_PER_WORK_UNIT))
        y = self.formula_y
        if y is None:
            y = self.hours_worked % HOURS_PER_WORK_UNIT
        return x, y

    def to_columns(self) -> dict:
        """Column values for an ``AttendanceEntry`` row."""
        x, y = self.work_units()
        return {
            "worker_id": self.worker_id,
            "worker_name": self.worker_name,
            "designation": self.designation,
            "is_present": self.is_present,
            "hours_worked": self.hours_worked,
            "formula_x": x,
            "formula_y": y,
            "remarks": self.remarks,
        }


class AttendanceEntryResponse(CamelModel):
    worker_id: uuid.UUID
    worker_name: str
    designation: Optional[str] = None
    is_present: bool
    hours_worked: float = 0.0
    formula_x: float = 0.0
    formula_y: float = 0.0
    remarks: Optional[str] = None


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class SubmitAttendanceRequest(CamelModel):
    """Foreman's daily submission."""

    date: Optional[dt.date] = None
    entries: Optional[list[AttendanceEntryIn]] = None
    in_time: Optional[str] = Field(None, max_length=20)
    out_time: Optional[str] = Field(None, max_length=20)


class ReviewAttendanceRequest(CamelModel):
    """Site incharge's corrected entries."""

    entries: Optional[list[AttendanceEntryIn]] = None
    comments: Optional[str] = None


class ApproveAttendanceRequest(CamelModel):
    comments: Optional[str] = None


class RejectAttendanceRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=500)


class AdminUpdateAttendanceRequest(CamelModel):
    """Admin direct edit; leaves status untouched."""

    entries: Optional[list[AttendanceEntryIn]] = None
    in_time: Optional[str] = Field(None, max_length=20)
    out_time: Optional[str] = Field(None, max_length=20)
    admin_comments: Optional[str] = None


# ═════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════


class AttendanceRecordResponse(CamelModel):
    """Full attendance record with its worker entries."""

    id: uuid.UUID
    date: dt.date
    site_id: uuid.UUID
    site_name: str
    foreman_id: uuid.UUID
    foreman_name: str
    status: AttendanceStatus
    entries: list[AttendanceEntryResponse] = []
    in_time: Optional[str] = None
    out_time: Optional[str] = None
    total_workers: int
    present_workers: int
    submitted_at: Optional[datetime] = None
    marked_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[uuid.UUID] = None
    incharge_comments: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[uuid.UUID] = None
    admin_comments: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[uuid.UUID] = None
    rejection_reason: Optional[str] = None


class SubmissionCheckResponse(CamelModel):
    has_submitted: bool
