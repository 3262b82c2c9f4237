"""Enums and constants for ConstructERP — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    admin = "admin"
    site_incharge = "site_incharge"
    foreman = "foreman"


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceStatus(str, enum.Enum):
    submitted = "submitted"
    incharge_reviewed = "incharge_reviewed"
    admin_approved = "admin_approved"
    rejected = "rejected"


# Awaiting either the site incharge or the admin
PENDING_STATUSES: tuple[AttendanceStatus, ...] = (
    AttendanceStatus.submitted,
    AttendanceStatus.incharge_reviewed,
)


# ── Misc constants ──────────────────────────────────────────────────

HOURS_PER_WORK_UNIT = 8
DEFAULT_DESIGNATION = "Helper"
MIN_PASSWORD_LENGTH = 4
