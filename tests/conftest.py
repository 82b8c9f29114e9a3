"""Shared test fixtures — async DB, client, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leave_engine.common.constants import (
    HalfDayType,
    LeaveStatus,
    LeaveType,
    ManagerAction,
)
from leave_engine.database import Base, get_db
from leave_engine.main import create_app

# Import ALL model modules so every table is registered on Base.metadata
import leave_engine.common.audit  # noqa: F401
import leave_engine.leave.models  # noqa: F401
from leave_engine.leave.models import LeaveRequest

# ── SQLite compat: compile PG-specific types ────────────────────────

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
    from leave_engine.common.rate_limit import limiter

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


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
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


# ── Tenancy fixtures ────────────────────────────────────────────────

@pytest.fixture
def company_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def employee_id() -> uuid.UUID:
    return uuid.uuid4()


# ── Model factories ─────────────────────────────────────────────────

def _make_leave(
    *,
    employee_id: uuid.UUID,
    company_id: uuid.UUID,
    leave_type: LeaveType = LeaveType.paid,
    start_date: date = date(2025, 8, 5),
    end_date: date = date(2025, 8, 7),
    days: Optional[Decimal] = None,
    half_day_type: Optional[HalfDayType] = None,
    status: LeaveStatus = LeaveStatus.pending,
    manager_action: ManagerAction = ManagerAction.pending,
    reason: str = "Seeded leave",
    submitted_date: Optional[datetime] = None,
) -> dict:
    if days is None:
        days = (
            Decimal("0.5")
            if leave_type == LeaveType.halfday
            else Decimal((end_date - start_date).days + 1)
        )
    now = submitted_date or datetime.now(timezone.utc)
    return dict(
        id=uuid.uuid4(),
        employee_id=employee_id,
        company_id=company_id,
        leave_type=leave_type,
        half_day_type=half_day_type,
        start_date=start_date,
        end_date=end_date,
        days=days,
        reason=reason,
        status=status,
        manager_action=manager_action,
        submitted_date=now,
        updated_at=now,
    )


async def seed_leave(db: AsyncSession, **kwargs) -> LeaveRequest:
    """Insert a LeaveRequest row directly, bypassing service validation."""
    leave = LeaveRequest(**_make_leave(**kwargs))
    db.add(leave)
    await db.flush()
    return leave


def make_payload(
    employee_id: uuid.UUID,
    company_id: uuid.UUID,
    **overrides,
) -> dict:
    """JSON body for POST /requests."""
    body = {
        "employee_id": str(employee_id),
        "company_id": str(company_id),
        "leave_type": "paid",
        "start_date": "2025-08-05",
        "end_date": "2025-08-07",
        "reason": "trip",
    }
    body.update(overrides)
    return body
