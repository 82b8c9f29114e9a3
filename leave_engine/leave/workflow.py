"""Approval state machine for leave requests.

Two independent tracks live on the same record:

* ``status``: the administrative decision. ``pending`` may move to
  ``approved``, ``rejected`` or ``cancelled``; all three are final.
* ``manager_action``: the reporting manager's decision. ``pending`` may
  move to ``approved`` or ``rejected``; both are final.

Applying one track never reads or writes the other track's fields.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from leave_engine.common.constants import LeaveStatus, ManagerAction
from leave_engine.common.exceptions import InvalidStateException, ValidationException
from leave_engine.leave.models import LeaveRequest

STATUS_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.pending: frozenset(
        {LeaveStatus.approved, LeaveStatus.rejected, LeaveStatus.cancelled}
    ),
    LeaveStatus.approved: frozenset(),
    LeaveStatus.rejected: frozenset(),
    LeaveStatus.cancelled: frozenset(),
}

MANAGER_TRANSITIONS: dict[ManagerAction, frozenset[ManagerAction]] = {
    ManagerAction.pending: frozenset({ManagerAction.approved, ManagerAction.rejected}),
    ManagerAction.approved: frozenset(),
    ManagerAction.rejected: frozenset(),
}

# Decisions that record who reviewed the request and when.
_REVIEW_STATUSES = frozenset({LeaveStatus.approved, LeaveStatus.rejected})

STATUS_TARGETS = frozenset().union(*STATUS_TRANSITIONS.values())
MANAGER_TARGETS = frozenset().union(*MANAGER_TRANSITIONS.values())


def ensure_editable(leave: LeaveRequest) -> None:
    """Only pending requests may have their dates, type or reason edited."""
    if leave.status != LeaveStatus.pending:
        raise InvalidStateException(
            "status",
            leave.status.value,
            f"Only pending leave requests can be updated; this one is "
            f"{leave.status.value}.",
        )


def apply_status_transition(
    leave: LeaveRequest,
    target: LeaveStatus,
    actor_id: uuid.UUID,
    now: datetime,
    *,
    comments: Optional[str] = None,
) -> LeaveStatus:
    """Move ``leave.status`` to *target*; returns the previous status.

    Raises:
        ValidationException: *target* is not a decision (e.g. ``pending``).
        InvalidStateException: the current status does not allow *target*.
    """
    target = LeaveStatus(target)
    if target not in STATUS_TARGETS:
        raise ValidationException(
            {"status": [
                "Status must be one of: "
                + ", ".join(sorted(s.value for s in STATUS_TARGETS)) + "."
            ]}
        )

    current = leave.status
    if target not in STATUS_TRANSITIONS[current]:
        raise InvalidStateException(
            "status",
            current.value,
            f"Cannot move a leave request from '{current.value}' to '{target.value}'.",
        )

    leave.status = target
    leave.comments = comments
    if target in _REVIEW_STATUSES:
        leave.approved_by = actor_id
        leave.approved_date = now
    leave.updated_at = now
    return current


def apply_manager_action(
    leave: LeaveRequest,
    action: ManagerAction,
    manager_id: uuid.UUID,
    now: datetime,
    *,
    comment: Optional[str] = None,
) -> ManagerAction:
    """Record the reporting manager's decision; returns the previous action.

    Allowed whatever ``leave.status`` currently is.

    Raises:
        ValidationException: *action* is not a decision (e.g. ``pending``).
        InvalidStateException: the manager has already decided.
    """
    action = ManagerAction(action)
    if action not in MANAGER_TARGETS:
        raise ValidationException(
            {"action": [
                "Action must be one of: "
                + ", ".join(sorted(a.value for a in MANAGER_TARGETS)) + "."
            ]}
        )

    current = leave.manager_action
    if action not in MANAGER_TRANSITIONS[current]:
        raise InvalidStateException(
            "manager_action",
            current.value,
            f"Manager has already {current.value} this leave request.",
        )

    leave.manager_action = action
    leave.manager_comment = comment
    leave.manager_action_date = now
    leave.reporting_manager = manager_id
    leave.updated_at = now
    return current
