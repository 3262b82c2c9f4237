"""AttendanceRepository tests — filtered reads, partial update, entry upsert."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import select

from constructerp.attendance.models import AttendanceEntry, AttendanceRecord
from constructerp.attendance.repository import AttendanceRepository
from constructerp.common.constants import AttendanceStatus, UserRole
from tests.conftest import (
    TestSessionFactory,
    _make_auth_headers,
    seed_user,
    submit_payload,
)

WORK_DATE = date(2026, 10, 19)


async def _submit(client, foreman, workers, work_date=WORK_DATE) -> str:
    resp = await client.post(
        "/api/attendance/submit",
        json=submit_payload(workers, 2, work_date),
        headers=_make_auth_headers(foreman),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


async def test_count_and_find(client, foreman, workers):
    await _submit(client, foreman, workers[:3], date(2026, 10, 17))
    await _submit(client, foreman, workers[:3], date(2026, 10, 18))

    async with TestSessionFactory() as session:
        repo = AttendanceRepository(session)
        assert await repo.count() == 2
        assert await repo.count({"date__from": date(2026, 10, 18)}) == 1
        assert await repo.count({"status": AttendanceStatus.admin_approved}) == 0

        rows = await repo.find({"foremanId": foreman.id}, sort="date", limit=1)
        assert [r.date for r in rows] == [date(2026, 10, 17)]

        newest = await repo.find_by_foreman(foreman.id)
        assert [r.date for r in newest] == [date(2026, 10, 18), date(2026, 10, 17)]


async def test_find_one_missing(db):
    repo = AttendanceRepository(db)
    assert await repo.find_one(foreman_id=uuid.uuid4(), date=WORK_DATE) is None


async def test_partial_update(client, foreman, workers):
    record_id = uuid.UUID(await _submit(client, foreman, workers[:3]))

    async with TestSessionFactory() as session:
        repo = AttendanceRepository(session)
        updated = await repo.update(record_id, admin_comments="Checked", out_time="18:30")
        await session.commit()
        assert updated.admin_comments == "Checked"

    async with TestSessionFactory() as session:
        stored = await session.get(AttendanceRecord, record_id)
        assert stored.out_time == "18:30"
        assert stored.status == AttendanceStatus.submitted


async def test_update_unknown_record(db):
    assert await AttendanceRepository(db).update(uuid.uuid4(), admin_comments="x") is None


async def test_entry_for_same_worker_and_date_is_taken_over(client, db, site, foreman, workers):
    second = await seed_user(
        db, username="foreman2", role=UserRole.foreman, name="Second Foreman", site_id=site.id,
    )
    first_id = await _submit(client, foreman, workers[:3])
    second_id = await _submit(client, second, workers[:3])

    async with TestSessionFactory() as session:
        entries = (await session.execute(select(AttendanceEntry))).scalars().all()

    assert len(entries) == 3
    assert {str(e.record_id) for e in entries} == {second_id}
    assert first_id != second_id
