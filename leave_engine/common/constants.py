"""Enums and constants for the leave engine — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum
from decimal import Decimal


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


class LeaveType(str, enum.Enum):
    paid = "paid"
    casual = "casual"
    short = "short"
    sick = "sick"
    halfday = "halfday"


class HalfDayType(str, enum.Enum):
    first = "first"
    second = "second"


class ManagerAction(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# Statuses that still hold the employee's dates.
BLOCKING_STATUSES: tuple[LeaveStatus, ...] = (
    LeaveStatus.pending,
    LeaveStatus.approved,
)


HALF_DAY = Decimal("0.5")
MIN_LEAVE_DAYS = Decimal("0.5")
# Largest value the NUMERIC(4, 1) days column holds.
MAX_LEAVE_DAYS = Decimal("999.9")

# ── Misc constants ──────────────────────────────────────────────────

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
