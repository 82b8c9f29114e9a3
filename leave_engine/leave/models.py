"""Leave ORM model: LeaveRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from leave_engine.common.constants import (
    HalfDayType,
    LeaveStatus,
    LeaveType,
    ManagerAction,
)
from leave_engine.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.CheckConstraint("start_date <= end_date", name="ck_leave_req_date_order"),
        sa.CheckConstraint("days > 0", name="ck_leave_req_days_positive"),
        sa.Index(
            "idx_leave_req_company_emp_dates",
            "company_id", "employee_id", "start_date", "end_date",
        ),
        sa.Index("idx_leave_req_company_status", "company_id", "status"),
        sa.Index("idx_leave_req_emp_status", "employee_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    # Owned by external collaborators; opaque references here.
    employee_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    company_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type"), nullable=False,
    )
    half_day_type: Mapped[Optional[HalfDayType]] = mapped_column(
        sa.Enum(HalfDayType, name="half_day_type"),
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    days: Mapped[Decimal] = mapped_column(sa.Numeric(4, 1), nullable=False)
    reason: Mapped[str] = mapped_column(sa.Text, nullable=False)

    # Track A: administrative status
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status"),
        nullable=False,
        default=LeaveStatus.pending,
    )
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))
    approved_date: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    comments: Mapped[Optional[str]] = mapped_column(sa.Text)

    # Track B: reporting manager action
    reporting_manager: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))
    manager_action: Mapped[ManagerAction] = mapped_column(
        sa.Enum(ManagerAction, name="manager_action"),
        nullable=False,
        default=ManagerAction.pending,
    )
    manager_action_date: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    manager_comment: Mapped[Optional[str]] = mapped_column(sa.Text)

    submitted_date: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    def __repr__(self) -> str:
        return (
            f"<LeaveRequest {self.id} {self.leave_type} "
            f"{self.start_date}..{self.end_date} {self.status}>"
        )
