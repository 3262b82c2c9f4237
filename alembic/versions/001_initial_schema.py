"""001 – Initial schema: users, sites, workers, attendance, audit trail.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+05:30
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("user_role", ["admin", "site_incharge", "foreman"]),
    (
        "attendance_status",
        ["submitted", "incharge_reviewed", "admin_approved", "rejected"],
    ),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. sites ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE sites (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name           VARCHAR(200) NOT NULL,
            location       VARCHAR(300) NOT NULL,
            incharge_id    UUID,  -- FK added after users table
            incharge_name  VARCHAR(200),
            is_active      BOOLEAN DEFAULT TRUE,
            created_at     TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 2. users ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE users (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            username       VARCHAR(100) NOT NULL UNIQUE,
            password_hash  VARCHAR(255),
            role           user_role NOT NULL,
            name           VARCHAR(200) NOT NULL,
            father_name    VARCHAR(200),
            email          VARCHAR(255),
            site_id        UUID REFERENCES sites(id) ON DELETE SET NULL,
            is_active      BOOLEAN DEFAULT TRUE,
            created_at     TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        ALTER TABLE sites
            ADD CONSTRAINT fk_site_incharge
            FOREIGN KEY (incharge_id) REFERENCES users(id) ON DELETE SET NULL
    """)

    # ── 3. workers ────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE workers (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name           VARCHAR(200) NOT NULL,
            father_name    VARCHAR(200),
            designation    VARCHAR(100) DEFAULT 'Helper',
            daily_wage     NUMERIC(10, 2) NOT NULL,
            site_id        UUID NOT NULL REFERENCES sites(id) ON DELETE CASCADE,
            phone          VARCHAR(20),
            aadhar         VARCHAR(20),
            is_active      BOOLEAN DEFAULT TRUE,
            created_at     TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_workers_site_id ON workers(site_id)")

    # ── 4. attendance_records ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE attendance_records (
            id                 UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            date               DATE NOT NULL,
            site_id            UUID NOT NULL REFERENCES sites(id),
            site_name          VARCHAR(200) NOT NULL,
            foreman_id         UUID NOT NULL REFERENCES users(id),
            foreman_name       VARCHAR(200) NOT NULL,
            status             attendance_status NOT NULL DEFAULT 'submitted',
            in_time            VARCHAR(20),
            out_time           VARCHAR(20),
            total_workers      INTEGER DEFAULT 0,
            present_workers    INTEGER DEFAULT 0,
            submitted_at       TIMESTAMPTZ DEFAULT NOW(),
            marked_by          UUID NOT NULL REFERENCES users(id),
            reviewed_at        TIMESTAMPTZ,
            reviewed_by        UUID REFERENCES users(id),
            incharge_comments  TEXT,
            approved_at        TIMESTAMPTZ,
            approved_by        UUID REFERENCES users(id),
            admin_comments     TEXT,
            rejected_at        TIMESTAMPTZ,
            rejected_by        UUID REFERENCES users(id),
            rejection_reason   TEXT,
            created_at         TIMESTAMPTZ DEFAULT NOW(),
            updated_at         TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_attendance_foreman_date UNIQUE (foreman_id, date)
        )
    """)
    op.execute(
        "CREATE INDEX ix_attendance_records_site_status "
        "ON attendance_records(site_id, status)"
    )
    op.execute(
        "CREATE INDEX ix_attendance_records_approved_at "
        "ON attendance_records(approved_at)"
    )

    # ── 5. attendance_entries ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE attendance_entries (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            record_id      UUID NOT NULL REFERENCES attendance_records(id) ON DELETE CASCADE,
            worker_id      UUID NOT NULL REFERENCES workers(id) ON DELETE CASCADE,
            worker_name    VARCHAR(200) NOT NULL,
            designation    VARCHAR(100),
            date           DATE NOT NULL,
            position       INTEGER DEFAULT 0,
            is_present     BOOLEAN DEFAULT FALSE,
            hours_worked   DOUBLE PRECISION DEFAULT 0,
            formula_x      DOUBLE PRECISION DEFAULT 0,
            formula_y      DOUBLE PRECISION DEFAULT 0,
            remarks        TEXT,
            CONSTRAINT uq_attendance_entry_worker_date UNIQUE (worker_id, date)
        )
    """)
    op.execute(
        "CREATE INDEX ix_attendance_entries_record_id "
        "ON attendance_entries(record_id)"
    )

    # ── 6. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id     UUID REFERENCES users(id) ON DELETE SET NULL,
            action       VARCHAR(50) NOT NULL,
            entity_type  VARCHAR(50) NOT NULL,
            entity_id    UUID NOT NULL,
            old_values   JSONB,
            new_values   JSONB,
            ip_address   VARCHAR(64),
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id ON audit_trail(actor_id)")
    op.execute(
        "CREATE INDEX ix_audit_trail_entity ON audit_trail(entity_type, entity_id)"
    )
    op.execute("CREATE INDEX ix_audit_trail_created_at ON audit_trail(created_at)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "attendance_entries",
        "attendance_records",
        "workers",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    # Drop deferred FK before dropping users / sites
    op.execute("ALTER TABLE sites DROP CONSTRAINT IF EXISTS fk_site_incharge")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
    op.execute("DROP TABLE IF EXISTS sites CASCADE")

    # Drop enum types
    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)

    op.execute('DROP EXTENSION IF EXISTS "uuid-ossp"')
