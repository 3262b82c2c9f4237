"""Common module — shared utilities for ConstructERP."""

from constructerp.common.audit import AuditTrail, create_audit_entry
from constructerp.common.constants import (
    PENDING_STATUSES,
    AttendanceStatus,
    UserRole,
)
from constructerp.common.exceptions import (
    AppException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from constructerp.common.field_map import field_map, resolve_attribute, row_to_dict
from constructerp.common.filters import apply_filters, apply_sorting
from constructerp.common.responses import ApiResponse, MessageResponse

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "AttendanceStatus",
    "UserRole",
    "PENDING_STATUSES",
    # Exceptions
    "AppException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Field mapping
    "field_map",
    "resolve_attribute",
    "row_to_dict",
    # Filters
    "apply_filters",
    "apply_sorting",
    # Envelope
    "ApiResponse",
    "MessageResponse",
]
