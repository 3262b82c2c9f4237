"""Lifecycle table tests — role guards, site scoping, source states, stamps."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from constructerp.attendance.lifecycle import (
    TRANSITIONS,
    Action,
    apply_transition,
    authorize,
    check_role,
    count_present,
    refresh_counters,
)
from constructerp.common.constants import AttendanceStatus, UserRole
from constructerp.common.exceptions import (
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)

SITE_A = uuid.uuid4()
SITE_B = uuid.uuid4()
NOW = datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)


def _actor(role: UserRole, site_id=SITE_A):
    return SimpleNamespace(id=uuid.uuid4(), role=role, site_id=site_id)


def _record(status=AttendanceStatus.submitted, site_id=SITE_A, present=(True, False)):
    return SimpleNamespace(
        id=uuid.uuid4(),
        site_id=site_id,
        status=status,
        entries=[SimpleNamespace(is_present=p) for p in present],
        total_workers=0,
        present_workers=0,
        submitted_at=None,
        marked_by=None,
        reviewed_at=None,
        reviewed_by=None,
        incharge_comments=None,
        approved_at=None,
        approved_by=None,
        admin_comments=None,
        rejected_at=None,
        rejected_by=None,
        rejection_reason=None,
    )


# ═════════════════════════════════════════════════════════════════════
# ROLE GUARDS
# ═════════════════════════════════════════════════════════════════════


class TestRoles:

    @pytest.mark.parametrize("role", [UserRole.admin, UserRole.site_incharge])
    def test_only_foreman_submits(self, role):
        with pytest.raises(UnauthorizedException):
            authorize(Action.submit, _actor(role))

    def test_foreman_submit_allowed(self):
        assert authorize(Action.submit, _actor(UserRole.foreman)).target == AttendanceStatus.submitted

    @pytest.mark.parametrize("role", [UserRole.admin, UserRole.foreman])
    def test_only_incharge_reviews(self, role):
        with pytest.raises(UnauthorizedException):
            authorize(Action.review, _actor(role), _record())

    @pytest.mark.parametrize("role", [UserRole.site_incharge, UserRole.foreman])
    def test_only_admin_approves(self, role):
        with pytest.raises(UnauthorizedException):
            authorize(Action.approve, _actor(role), _record())

    def test_foreman_cannot_reject(self):
        with pytest.raises(UnauthorizedException):
            authorize(Action.reject, _actor(UserRole.foreman), _record())

    def test_only_admin_edits(self):
        with pytest.raises(UnauthorizedException):
            authorize(Action.edit, _actor(UserRole.site_incharge), _record())

    def test_check_role_ignores_record_state(self):
        assert check_role(Action.reject, _actor(UserRole.admin)).target == AttendanceStatus.rejected
        with pytest.raises(UnauthorizedException):
            check_role(Action.reject, _actor(UserRole.foreman))


# ═════════════════════════════════════════════════════════════════════
# SITE SCOPE + SOURCE STATES
# ═════════════════════════════════════════════════════════════════════


class TestScopeAndState:

    def test_review_other_site_is_not_found(self):
        with pytest.raises(NotFoundException):
            authorize(Action.review, _actor(UserRole.site_incharge), _record(site_id=SITE_B))

    def test_incharge_reject_other_site_is_not_found(self):
        with pytest.raises(NotFoundException):
            authorize(Action.reject, _actor(UserRole.site_incharge), _record(site_id=SITE_B))

    def test_admin_is_not_site_scoped(self):
        admin = _actor(UserRole.admin, site_id=None)
        assert authorize(Action.approve, admin, _record(site_id=SITE_B))

    def test_review_twice_allowed(self):
        record = _record(status=AttendanceStatus.incharge_reviewed)
        assert authorize(Action.review, _actor(UserRole.site_incharge), record)

    @pytest.mark.parametrize(
        "status", [AttendanceStatus.admin_approved, AttendanceStatus.rejected],
    )
    def test_review_after_final_state_rejected(self, status):
        with pytest.raises(ValidationException):
            authorize(Action.review, _actor(UserRole.site_incharge), _record(status=status))

    @pytest.mark.parametrize("status", list(AttendanceStatus))
    def test_approve_has_no_precondition(self, status):
        assert authorize(Action.approve, _actor(UserRole.admin), _record(status=status))

    def test_reject_approved_record_rejected(self):
        with pytest.raises(ValidationException):
            authorize(
                Action.reject,
                _actor(UserRole.admin),
                _record(status=AttendanceStatus.admin_approved),
            )


# ═════════════════════════════════════════════════════════════════════
# EFFECTS
# ═════════════════════════════════════════════════════════════════════


class TestEffects:

    def test_approve_stamps_record(self):
        admin = _actor(UserRole.admin)
        record = _record()
        apply_transition(record, TRANSITIONS[Action.approve], admin, NOW, "ok")

        assert record.status == AttendanceStatus.admin_approved
        assert record.approved_at == NOW
        assert record.approved_by == admin.id
        assert record.admin_comments == "ok"

    def test_edit_keeps_status(self):
        record = _record(status=AttendanceStatus.incharge_reviewed)
        apply_transition(record, TRANSITIONS[Action.edit], _actor(UserRole.admin), NOW, "fixed")

        assert record.status == AttendanceStatus.incharge_reviewed
        assert record.admin_comments == "fixed"

    def test_none_note_leaves_previous_comment(self):
        record = _record()
        record.admin_comments = "earlier"
        apply_transition(record, TRANSITIONS[Action.approve], _actor(UserRole.admin), NOW)
        assert record.admin_comments == "earlier"

    def test_refresh_counters_initial(self):
        record = _record(present=(True, True, False))
        refresh_counters(record, initial=True)
        assert (record.total_workers, record.present_workers) == (3, 2)

    def test_refresh_counters_keeps_total(self):
        record = _record(present=(True, True, False))
        refresh_counters(record, initial=True)
        record.entries = [SimpleNamespace(is_present=True)] * 4
        refresh_counters(record)
        assert (record.total_workers, record.present_workers) == (3, 4)

    def test_count_present(self):
        entries = [SimpleNamespace(is_present=p) for p in (True, False, True)]
        assert count_present(entries) == 2
