"""Common module — shared utilities for the leave engine."""

from leave_engine.common.audit import AuditTrail, create_audit_entry, get_audit_entries
from leave_engine.common.constants import (
    BLOCKING_STATUSES,
    DEFAULT_PAGE_SIZE,
    HALF_DAY,
    MAX_PAGE_SIZE,
    HalfDayType,
    LeaveStatus,
    LeaveType,
    ManagerAction,
)
from leave_engine.common.exceptions import (
    AppException,
    ConflictError,
    InvalidStateException,
    LeaveOverlapError,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from leave_engine.common.filters import apply_date_window, apply_filters
from leave_engine.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    "get_audit_entries",
    # Constants / Enums
    "HalfDayType",
    "LeaveStatus",
    "LeaveType",
    "ManagerAction",
    "BLOCKING_STATUSES",
    "HALF_DAY",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "InvalidStateException",
    "LeaveOverlapError",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_date_window",
    "apply_filters",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
