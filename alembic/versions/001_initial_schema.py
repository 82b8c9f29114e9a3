"""001 – Initial schema: leave_requests, audit_trail, enums, overlap constraint.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+00:00
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("leave_type", ["paid", "casual", "short", "sick", "halfday"]),
    ("half_day_type", ["first", "second"]),
    ("leave_status", ["pending", "approved", "rejected", "cancelled"]),
    ("manager_action", ["pending", "approved", "rejected"]),
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
    # btree_gist: UUID equality inside the GiST exclusion constraint
    op.execute('CREATE EXTENSION IF NOT EXISTS "btree_gist"')

    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_requests (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id         UUID NOT NULL,
            company_id          UUID NOT NULL,
            leave_type          leave_type NOT NULL,
            half_day_type       half_day_type,
            start_date          DATE NOT NULL,
            end_date            DATE NOT NULL,
            days                NUMERIC(4,1) NOT NULL,
            reason              TEXT NOT NULL,
            status              leave_status NOT NULL DEFAULT 'pending',
            approved_by         UUID,
            approved_date       TIMESTAMPTZ,
            comments            TEXT,
            reporting_manager   UUID,
            manager_action      manager_action NOT NULL DEFAULT 'pending',
            manager_action_date TIMESTAMPTZ,
            manager_comment     TEXT,
            submitted_date      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_leave_req_date_order CHECK (start_date <= end_date),
            CONSTRAINT ck_leave_req_days_positive CHECK (days > 0),
            CONSTRAINT ck_leave_req_halfday CHECK (
                (leave_type = 'halfday'
                    AND half_day_type IS NOT NULL
                    AND start_date = end_date
                    AND days = 0.5)
                OR (leave_type <> 'halfday' AND half_day_type IS NULL)
            ),
            CONSTRAINT ex_leave_req_no_overlap EXCLUDE USING gist (
                employee_id WITH =,
                company_id WITH =,
                daterange(start_date, end_date, '[]') WITH &&
            ) WHERE (status IN ('pending', 'approved'))
        )
    """)
    op.execute("""
        CREATE INDEX idx_leave_req_company_emp_dates
            ON leave_requests(company_id, employee_id, start_date, end_date)
    """)
    op.execute("""
        CREATE INDEX idx_leave_req_company_status
            ON leave_requests(company_id, status)
    """)
    op.execute("""
        CREATE INDEX idx_leave_req_emp_status
            ON leave_requests(employee_id, status)
    """)

    # ── 2. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id    UUID,
            company_id  UUID,
            action      VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50) NOT NULL,
            entity_id   UUID NOT NULL,
            old_values  JSONB,
            new_values  JSONB,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.create_index("ix_audit_trail_actor_id", "audit_trail", ["actor_id"])
    op.create_index(
        "ix_audit_trail_entity", "audit_trail", ["entity_type", "entity_id"]
    )
    op.create_index(
        "ix_audit_trail_company_created", "audit_trail", ["company_id", "created_at"]
    )


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for t in ("audit_trail", "leave_requests"):
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    # Drop enum types
    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)

    # Drop extensions
    op.execute('DROP EXTENSION IF EXISTS "btree_gist"')
    op.execute('DROP EXTENSION IF EXISTS "uuid-ossp"')
