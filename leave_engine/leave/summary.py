"""Leave summary — read-only aggregation over leave requests.

Always computed from the table at call time with a single GROUP BY;
nothing is cached between calls.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_engine.common.constants import LeaveStatus, LeaveType
from leave_engine.common.exceptions import ValidationException
from leave_engine.common.filters import apply_date_window, apply_filters
from leave_engine.leave.models import LeaveRequest
from leave_engine.leave.schemas import LeaveSummaryOut

# One decimal place, as days themselves are stored.
_AVG_PLACES = Decimal("0.1")


class LeaveSummaryService:
    """Async leave summary queries."""

    @staticmethod
    async def summarize(
        db: AsyncSession,
        company_id: uuid.UUID,
        *,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        employee_id: Optional[uuid.UUID] = None,
    ) -> LeaveSummaryOut:
        """Counts per status and leave type, total and average days.

        The optional window uses the same rule as listing: a request is
        included when its start or end date falls inside
        ``[from_date, to_date]``.
        """
        if (from_date is None) != (to_date is None):
            raise ValidationException(
                {"dates": ["from_date and to_date must be given together."]}
            )
        if from_date and to_date and from_date > to_date:
            raise ValidationException(
                {"to_date": ["to_date must be on or after from_date."]}
            )

        query = select(
            LeaveRequest.status,
            LeaveRequest.leave_type,
            func.count(LeaveRequest.id),
            func.coalesce(func.sum(LeaveRequest.days), 0),
        )
        query = apply_filters(
            query,
            LeaveRequest,
            {"company_id": company_id, "employee_id": employee_id},
        )
        query = apply_date_window(
            query, LeaveRequest.start_date, LeaveRequest.end_date, from_date, to_date,
        )
        query = query.group_by(LeaveRequest.status, LeaveRequest.leave_type)

        by_status = {s: 0 for s in LeaveStatus}
        by_leave_type = {t: 0 for t in LeaveType}
        total_requests = 0
        total_days = Decimal("0")

        for status, leave_type, count, days in (await db.execute(query)).all():
            by_status[LeaveStatus(status)] += count
            by_leave_type[LeaveType(leave_type)] += count
            total_requests += count
            total_days += Decimal(str(days))

        avg_days = (
            (total_days / total_requests).quantize(_AVG_PLACES, rounding=ROUND_HALF_UP)
            if total_requests
            else Decimal("0")
        )

        return LeaveSummaryOut(
            company_id=company_id,
            employee_id=employee_id,
            from_date=from_date,
            to_date=to_date,
            total_requests=total_requests,
            by_status=by_status,
            by_leave_type=by_leave_type,
            total_days=total_days,
            avg_days=avg_days,
        )
