"""Shared test fixtures — async DB, client, auth helpers, factories, clock.

Reusable across all test modules (auth, attendance, dashboard, cleanup).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional
from zoneinfo import ZoneInfo

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from constructerp.attendance.window import Clock, get_clock
from constructerp.auth.security import hash_password
from constructerp.common.constants import UserRole
from constructerp.config import settings
from constructerp.database import Base, get_db
from constructerp.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import constructerp.attendance.models  # noqa: F401
import constructerp.common.audit  # noqa: F401
import constructerp.core.models  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT/CHAR ───────────

from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and uuid_generate_v4() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "uuid_generate_v4", 0, lambda: str(uuid.uuid4()),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from constructerp.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Fixed clock ─────────────────────────────────────────────────────

IST = ZoneInfo("Asia/Kolkata")

# 10:00 site time, well inside the 2026-10-19 field day
DEFAULT_NOW = datetime(2026, 10, 19, 10, 0, tzinfo=IST)


class FixedClock(Clock):
    """Clock pinned to a settable instant."""

    def __init__(self, now: datetime = DEFAULT_NOW) -> None:
        super().__init__("Asia/Kolkata")
        self.current = now

    def now(self) -> datetime:
        return self.current

    def set(self, *args: int) -> None:
        self.current = datetime(*args, tzinfo=IST)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app(clock):
    """Create a fresh app instance with DB and clock dependencies overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    application.dependency_overrides[get_clock] = lambda: clock
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

TEST_PASSWORD = "site1234"


def _make_site(*, name: str = "Riverside Tower", location: str = "Pune") -> dict:
    return dict(
        id=uuid.uuid4(),
        name=name,
        location=location,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )


def _make_user(
    *,
    username: str,
    role: UserRole,
    name: Optional[str] = None,
    site_id: Optional[uuid.UUID] = None,
    password: str = TEST_PASSWORD,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        username=username,
        password_hash=hash_password(password),
        role=role,
        name=name or username.title(),
        site_id=site_id,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )


def _make_worker(*, site_id: uuid.UUID, name: str, designation: str = "Helper") -> dict:
    return dict(
        id=uuid.uuid4(),
        name=name,
        designation=designation,
        daily_wage=Decimal("650.00"),
        site_id=site_id,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )


async def seed_site(db: AsyncSession, **kwargs):
    from constructerp.core.models import Site

    site = Site(**_make_site(**kwargs))
    db.add(site)
    await db.commit()
    return site


async def seed_user(db: AsyncSession, **kwargs):
    from constructerp.core.models import User

    user = User(**_make_user(**kwargs))
    db.add(user)
    await db.commit()
    return user


async def seed_workers(db: AsyncSession, site_id: uuid.UUID, count: int) -> list:
    from constructerp.core.models import Worker

    workers = [
        Worker(**_make_worker(site_id=site_id, name=f"Worker {i + 1}"))
        for i in range(count)
    ]
    db.add_all(workers)
    await db.commit()
    return workers


@pytest.fixture
async def site(db):
    return await seed_site(db)


@pytest.fixture
async def admin(db):
    return await seed_user(db, username="admin", role=UserRole.admin, name="Admin")


@pytest.fixture
async def incharge(db, site):
    return await seed_user(
        db, username="incharge", role=UserRole.site_incharge,
        name="Site Incharge", site_id=site.id,
    )


@pytest.fixture
async def foreman(db, site):
    return await seed_user(
        db, username="foreman", role=UserRole.foreman,
        name="Ramesh Foreman", site_id=site.id,
    )


@pytest.fixture
async def workers(db, site):
    return await seed_workers(db, site.id, 10)


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    role: UserRole = UserRole.foreman,
    expired: bool = False,
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "username": "test",
        "role": role.value,
        "type": "access",
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _make_auth_headers(user) -> dict[str, str]:
    """Bearer auth headers for a seeded ``User``."""
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


def entry_payload(
    worker,
    *,
    present: bool = True,
    hours: float = 8.0,
    **extra,
) -> dict:
    """One camelCase entry as the client sends it."""
    body = {
        "workerId": str(worker.id),
        "workerName": worker.name,
        "designation": worker.designation,
        "isPresent": present,
        "hoursWorked": hours if present else 0,
    }
    body.update(extra)
    return body


def submit_payload(workers, present: int, work_date: date) -> dict:
    """Submission body with the first *present* workers marked present."""
    return {
        "date": work_date.isoformat(),
        "inTime": "08:00",
        "outTime": "17:00",
        "entries": [
            entry_payload(w, present=i < present) for i, w in enumerate(workers)
        ],
    }
