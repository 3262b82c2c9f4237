"""Attendance lifecycle — the transition table and its guards.

    (none) ──submit──▶ submitted ──review──▶ incharge_reviewed ──approve──▶ admin_approved
                           │                        │
                           └────────reject──────────┴──▶ rejected

``approve`` carries no source-state precondition: an admin may approve a
record the incharge has not reviewed yet. ``edit`` is the admin's direct
correction and never changes the status.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Protocol

from constructerp.common.constants import AttendanceStatus, UserRole
from constructerp.common.exceptions import (
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)

logger = logging.getLogger(__name__)


class Actor(Protocol):
    id: uuid.UUID
    role: UserRole
    site_id: Optional[uuid.UUID]


class Action(str, enum.Enum):
    submit = "submit"
    review = "review"
    approve = "approve"
    reject = "reject"
    edit = "edit"


@dataclass(frozen=True)
class Transition:
    """One row of the transition table.

    ``sources=None`` means any current state is accepted; ``target=None``
    leaves the status unchanged. Roles listed in ``site_scoped`` may only
    act on records of their own site.
    """

    action: Action
    roles: frozenset[UserRole]
    target: Optional[AttendanceStatus]
    sources: Optional[frozenset[Optional[AttendanceStatus]]] = None
    site_scoped: frozenset[UserRole] = field(default_factory=frozenset)
    timestamp_attr: Optional[str] = None
    actor_attr: Optional[str] = None
    note_attr: Optional[str] = None


TRANSITIONS: dict[Action, Transition] = {
    Action.submit: Transition(
        action=Action.submit,
        roles=frozenset({UserRole.foreman}),
        target=AttendanceStatus.submitted,
        sources=frozenset({None}),
        timestamp_attr="submitted_at",
        actor_attr="marked_by",
    ),
    Action.review: Transition(
        action=Action.review,
        roles=frozenset({UserRole.site_incharge}),
        target=AttendanceStatus.incharge_reviewed,
        sources=frozenset({AttendanceStatus.submitted, AttendanceStatus.incharge_reviewed}),
        site_scoped=frozenset({UserRole.site_incharge}),
        timestamp_attr="reviewed_at",
        actor_attr="reviewed_by",
        note_attr="incharge_comments",
    ),
    Action.approve: Transition(
        action=Action.approve,
        roles=frozenset({UserRole.admin}),
        target=AttendanceStatus.admin_approved,
        timestamp_attr="approved_at",
        actor_attr="approved_by",
        note_attr="admin_comments",
    ),
    Action.reject: Transition(
        action=Action.reject,
        roles=frozenset({UserRole.admin, UserRole.site_incharge}),
        target=AttendanceStatus.rejected,
        sources=frozenset({AttendanceStatus.submitted, AttendanceStatus.incharge_reviewed}),
        site_scoped=frozenset({UserRole.site_incharge}),
        timestamp_attr="rejected_at",
        actor_attr="rejected_by",
        note_attr="rejection_reason",
    ),
    Action.edit: Transition(
        action=Action.edit,
        roles=frozenset({UserRole.admin}),
        target=None,
        note_attr="admin_comments",
    ),
}


# ── Guards ──────────────────────────────────────────────────────────

def check_role(action: Action, actor: Actor) -> Transition:
    """Role gate alone, for use before the record is loaded."""
    transition = TRANSITIONS[action]
    if actor.role not in transition.roles:
        raise UnauthorizedException()
    return transition


def authorize(action: Action, actor: Actor, record=None) -> Transition:
    """Check *actor* may perform *action* on *record* (``None`` for submit).

    Raises:
        UnauthorizedException: the actor's role is not allowed.
        NotFoundException: the record lies outside the actor's site.
        ValidationException: the record's current status does not allow it.
    """
    transition = check_role(action, actor)

    if (
        record is not None
        and actor.role in transition.site_scoped
        and record.site_id != actor.site_id
    ):
        raise NotFoundException("Record", record.id)

    current = record.status if record is not None else None
    if transition.sources is not None and current not in transition.sources:
        state = current.value if current is not None else "new"
        raise ValidationException(f"Cannot {action.value} a {state} attendance record")

    return transition


# ── Effects ─────────────────────────────────────────────────────────

def count_present(entries: Iterable) -> int:
    """Number of entries marked present."""
    return sum(1 for e in entries if e.is_present)


def apply_transition(
    record,
    transition: Transition,
    actor: Actor,
    at: datetime,
    note: Optional[str] = None,
) -> None:
    """Stamp *record* with the transition's status, time, actor and note."""
    if transition.target is not None:
        record.status = transition.target
    if transition.timestamp_attr:
        setattr(record, transition.timestamp_attr, at)
    if transition.actor_attr:
        setattr(record, transition.actor_attr, actor.id)
    if transition.note_attr and note is not None:
        setattr(record, transition.note_attr, note)

    logger.info(
        "Attendance %s %s by %s (%s) → %s",
        record.id,
        transition.action.value,
        actor.id,
        actor.role.value,
        record.status.value if record.status is not None else None,
    )


def refresh_counters(record, *, initial: bool = False) -> None:
    """Recompute the derived counters from ``record.entries``.

    ``total_workers`` is fixed at submission; ``present_workers`` follows
    every entries write.
    """
    if initial:
        record.total_workers = len(record.entries)
    record.present_workers = count_present(record.entries)
