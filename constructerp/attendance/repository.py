"""Attendance record store.

Wraps the request's ``AsyncSession``; handlers receive it through
``Depends(get_attendance_repository)`` so the storage backend can be swapped
in tests without touching the service or router.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Optional, Sequence

from fastapi import Depends
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from constructerp.attendance.models import AttendanceEntry, AttendanceRecord
from constructerp.common.exceptions import ValidationException
from constructerp.common.filters import apply_filters, apply_sorting
from constructerp.database import get_db


class AttendanceRepository:
    """Parameterised queries over ``attendance_records`` / ``attendance_entries``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Reads ───────────────────────────────────────────────────────

    async def get(self, record_id: uuid.UUID) -> Optional[AttendanceRecord]:
        return await self.session.get(AttendanceRecord, record_id)

    async def find_one(self, **filters: Any) -> Optional[AttendanceRecord]:
        query = apply_filters(select(AttendanceRecord), AttendanceRecord, filters)
        result = await self.session.execute(query.limit(1))
        return result.scalars().first()

    async def find(
        self,
        filters: Optional[dict[str, Any]] = None,
        *,
        sort: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        query = apply_filters(select(AttendanceRecord), AttendanceRecord, filters or {})
        query = apply_sorting(query, AttendanceRecord, sort)
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def find_by_foreman(self, foreman_id: uuid.UUID) -> Sequence[AttendanceRecord]:
        """All of a foreman's records, newest submission first."""
        return await self.find({"foreman_id": foreman_id}, sort="-submitted_at")

    async def count(self, filters: Optional[dict[str, Any]] = None) -> int:
        query = apply_filters(
            select(func.count(AttendanceRecord.id)), AttendanceRecord, filters or {},
        )
        return (await self.session.execute(query)).scalar_one()

    # ── Writes ──────────────────────────────────────────────────────

    async def insert(
        self,
        record: AttendanceRecord,
        entries: Sequence[dict[str, Any]],
    ) -> AttendanceRecord:
        """Persist a new record together with its entries."""
        record.entries = []
        self.session.add(record)
        await self.replace_entries(record, entries)
        return record

    async def replace_entries(
        self,
        record: AttendanceRecord,
        entries: Sequence[dict[str, Any]],
    ) -> None:
        """Write *entries* onto *record*, upserting by ``(worker_id, date)``.

        Rows already on the record are updated in place; a row for the same
        worker and date on another record is taken over; anything else is
        inserted. Workers missing from *entries* are removed. A worker listed
        twice is a ValidationException.
        """
        worker_ids = [values["worker_id"] for values in entries]
        if len(set(worker_ids)) != len(worker_ids):
            raise ValidationException("Duplicate worker in entries")

        current = {e.worker_id: e for e in record.entries}
        updated: list[AttendanceEntry] = []

        for position, values in enumerate(entries):
            worker_id = values["worker_id"]
            entry = current.pop(worker_id, None)
            if entry is None:
                entry = await self._entry_for(worker_id, record.date)
            if entry is None:
                entry = AttendanceEntry(worker_id=worker_id, date=record.date)
            for key, value in values.items():
                setattr(entry, key, value)
            entry.position = position
            updated.append(entry)

        record.entries = updated
        await self.session.flush()

    async def update(self, record_id: uuid.UUID, **fields: Any) -> Optional[AttendanceRecord]:
        """Partial update of one record; ``None`` if it does not exist."""
        record = await self.get(record_id)
        if record is None:
            return None
        for key, value in fields.items():
            setattr(record, key, value)
        await self.session.flush()
        return record

    async def delete_older_than(self, cutoff: date) -> int:
        """Delete records whose work date is before *cutoff*; return the count."""
        # Entries first: SQLite only cascades with foreign keys switched on
        stale = select(AttendanceRecord.id).where(AttendanceRecord.date < cutoff)
        await self.session.execute(
            delete(AttendanceEntry).where(AttendanceEntry.record_id.in_(stale))
        )
        result = await self.session.execute(
            delete(AttendanceRecord).where(AttendanceRecord.date < cutoff)
        )
        return result.rowcount or 0

    # ── Internal ────────────────────────────────────────────────────

    async def _entry_for(self, worker_id: uuid.UUID, work_date: date) -> Optional[AttendanceEntry]:
        result = await self.session.execute(
            select(AttendanceEntry).where(
                AttendanceEntry.worker_id == worker_id,
                AttendanceEntry.date == work_date,
            )
        )
        return result.scalars().first()


def get_attendance_repository(
    db: AsyncSession = Depends(get_db),
) -> AttendanceRepository:
    """FastAPI dependency: a repository bound to the request's session."""
    return AttendanceRepository(db)
