"""Overlap detection for leave requests.

Two ranges ``[a, b]`` and ``[c, d]`` overlap iff ``a <= d and c <= b``
(inclusive on both ends). Only pending and approved requests hold dates;
rejected and cancelled ones never block.

Callers that check and then write must hold :func:`lock_employee` for the
employee first, inside the same transaction as the write.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_engine.common.constants import BLOCKING_STATUSES
from leave_engine.leave.models import LeaveRequest

logger = logging.getLogger(__name__)


async def lock_employee(db: AsyncSession, employee_id: uuid.UUID) -> None:
    """Serialise overlap-check-then-write for one employee.

    PostgreSQL: transaction-scoped advisory lock keyed on the employee id,
    released on commit/rollback. Other backends serialise writers at the
    database level already.
    """
    bind = db.get_bind()
    if bind.dialect.name != "postgresql":
        return
    await db.execute(
        select(func.pg_advisory_xact_lock(func.hashtextextended(str(employee_id), 0)))
    )


async def check_overlap(
    db: AsyncSession,
    employee_id: uuid.UUID,
    company_id: uuid.UUID,
    start_date: date,
    end_date: date,
    *,
    exclude_id: Optional[uuid.UUID] = None,
) -> Optional[LeaveRequest]:
    """Return one pending/approved request overlapping ``[start_date, end_date]``,
    or ``None``.

    ``exclude_id`` omits the record being edited. Which conflict is returned
    when several exist is unspecified.
    """
    query = select(LeaveRequest).where(
        LeaveRequest.employee_id == employee_id,
        LeaveRequest.company_id == company_id,
        LeaveRequest.status.in_(BLOCKING_STATUSES),
        LeaveRequest.start_date <= end_date,
        LeaveRequest.end_date >= start_date,
    )
    if exclude_id is not None:
        query = query.where(LeaveRequest.id != exclude_id)

    result = await db.execute(query.order_by(LeaveRequest.start_date).limit(1))
    conflict = result.scalars().first()
    if conflict is not None:
        logger.debug(
            "Overlap for employee %s: %s..%s collides with %s",
            employee_id, start_date, end_date, conflict.id,
        )
    return conflict
