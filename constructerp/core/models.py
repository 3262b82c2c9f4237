"""Core ORM models: Site, User, Worker.

SQLAlchemy 2.0 async-compatible models with Mapped[] annotations.
Column names match the PostgreSQL schema defined in 001_initial_schema.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from constructerp.common.constants import DEFAULT_DESIGNATION, UserRole
from constructerp.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ═════════════════════════════════════════════════════════════════════
# Site
# ═════════════════════════════════════════════════════════════════════


class Site(Base):
    """Construction site."""

    __tablename__ = "sites"

    API_FIELDS = {
        "id": "id",
        "name": "name",
        "location": "location",
        "inchargeId": "incharge_id",
        "inchargeName": "incharge_name",
        "isActive": "is_active",
        "createdAt": "created_at",
    }

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    location: Mapped[str] = mapped_column(sa.String(300), nullable=False)
    incharge_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="SET NULL", use_alter=True),
    )
    incharge_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # Relationships
    workers: Mapped[list[Worker]] = relationship(back_populates="site")

    def __repr__(self) -> str:
        return f"<Site {self.name}>"


# ═════════════════════════════════════════════════════════════════════
# User
# ═════════════════════════════════════════════════════════════════════


class User(Base):
    """Application account: admin, site incharge or foreman."""

    __tablename__ = "users"

    API_FIELDS = {
        "id": "id",
        "username": "username",
        "role": "role",
        "name": "name",
        "fatherName": "father_name",
        "email": "email",
        "siteId": "site_id",
        "isActive": "is_active",
        "createdAt": "created_at",
    }

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    username: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(sa.String(255))
    role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, name="user_role"), nullable=False,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    father_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    email: Mapped[Optional[str]] = mapped_column(sa.String(255))
    site_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("sites.id", ondelete="SET NULL"),
    )
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # Relationships
    site: Mapped[Optional[Site]] = relationship(foreign_keys=[site_id])

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role.value})>"


# ═════════════════════════════════════════════════════════════════════
# Worker
# ═════════════════════════════════════════════════════════════════════


class Worker(Base):
    """Daily-wage worker attached to a site."""

    __tablename__ = "workers"

    API_FIELDS = {
        "id": "id",
        "name": "name",
        "fatherName": "father_name",
        "designation": "designation",
        "dailyWage": "daily_wage",
        "siteId": "site_id",
        "phone": "phone",
        "aadhar": "aadhar",
        "isActive": "is_active",
        "createdAt": "created_at",
    }

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    father_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    designation: Mapped[str] = mapped_column(
        sa.String(100), default=DEFAULT_DESIGNATION,
    )
    daily_wage: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)
    site_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("sites.id", ondelete="CASCADE"),
        nullable=False,
    )
    phone: Mapped[Optional[str]] = mapped_column(sa.String(20))
    aadhar: Mapped[Optional[str]] = mapped_column(sa.String(20))
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # Relationships
    site: Mapped[Site] = relationship(back_populates="workers")
