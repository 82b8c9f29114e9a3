"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Out               → response bodies (read)

Cross-field rules (half-day shape, date order, overlap) live in the service
layer so direct service callers get the same errors as HTTP callers.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leave_engine.common.constants import (
    HalfDayType,
    LeaveStatus,
    LeaveType,
    ManagerAction,
)


def _strip_reason(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("reason must not be blank.")
    return v


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Create / Update
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for submitting a leave request."""

    employee_id: uuid.UUID
    company_id: uuid.UUID
    leave_type: LeaveType
    half_day_type: Optional[HalfDayType] = Field(
        None, description="Required when leave_type is 'halfday'."
    )
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    reason: str = Field(..., min_length=1, max_length=1000)
    days: Optional[Decimal] = Field(
        None,
        gt=0,
        max_digits=4,
        decimal_places=1,
        description="Days consumed; derived from the date span when omitted.",
    )

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        return _strip_reason(v)


class LeaveRequestUpdate(BaseModel):
    """Partial edit of a pending leave request.

    Only fields present in the payload are applied; sending ``days: null``
    asks for the day count to be derived again.
    """

    leave_type: Optional[LeaveType] = None
    half_day_type: Optional[HalfDayType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = Field(None, min_length=1, max_length=1000)
    days: Optional[Decimal] = Field(None, gt=0, max_digits=4, decimal_places=1)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _strip_reason(v)

    @field_validator("leave_type", "start_date", "end_date", "reason", mode="before")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("field cannot be null.")
        return v


# ═════════════════════════════════════════════════════════════════════
# Approval tracks
# ═════════════════════════════════════════════════════════════════════


class LeaveStatusUpdate(BaseModel):
    """Administrative status transition (approve / reject / cancel)."""

    status: LeaveStatus
    actor_id: uuid.UUID
    comments: Optional[str] = Field(None, max_length=1000)


class ManagerActionUpdate(BaseModel):
    """Reporting manager's decision on a leave request."""

    action: ManagerAction
    manager_id: uuid.UUID
    comment: Optional[str] = Field(None, max_length=1000)


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    company_id: uuid.UUID
    leave_type: LeaveType
    half_day_type: Optional[HalfDayType] = None
    start_date: date
    end_date: date
    days: Decimal
    reason: str
    status: LeaveStatus
    approved_by: Optional[uuid.UUID] = None
    approved_date: Optional[datetime] = None
    comments: Optional[str] = None
    reporting_manager: Optional[uuid.UUID] = None
    manager_action: ManagerAction
    manager_action_date: Optional[datetime] = None
    manager_comment: Optional[str] = None
    submitted_date: datetime
    updated_at: datetime


class AuditEntryOut(BaseModel):
    """One activity-log entry for a leave request."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    action: str
    actor_id: Optional[uuid.UUID] = None
    old_values: Optional[dict] = None
    new_values: Optional[dict] = None
    created_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Filters / Summary
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestFilters(BaseModel):
    """Query filters for listing leave requests.

    The date window matches requests whose start **or** end date falls
    inside ``[from_date, to_date]``; both bounds must be given together.
    """

    company_id: Optional[uuid.UUID] = None
    employee_id: Optional[uuid.UUID] = None
    status: Optional[LeaveStatus] = None
    leave_type: Optional[LeaveType] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None


class LeaveSummaryOut(BaseModel):
    """Company (or single employee) leave summary over an optional window."""

    company_id: uuid.UUID
    employee_id: Optional[uuid.UUID] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    total_requests: int = 0
    by_status: dict[LeaveStatus, int]
    by_leave_type: dict[LeaveType, int]
    total_days: Decimal = Decimal("0")
    # total_days / total_requests, rounded half-up to one decimal place
    avg_days: Decimal = Decimal("0")
