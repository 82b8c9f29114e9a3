"""Leave service layer — submission, edits, approval tracks, deletion, listing.

Business logic:
  - Field normalisation: half-day shape, date order, day-count derivation
  - Overlap rejection against pending/approved requests, under a per-employee lock
  - Edits allowed only while pending; a failed edit leaves the record untouched
  - Status and manager-action transitions via the workflow tables
  - Every mutation is written to the audit trail
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_engine.common.audit import create_audit_entry, get_audit_entries
from leave_engine.common.constants import (
    HALF_DAY,
    MAX_LEAVE_DAYS,
    MIN_LEAVE_DAYS,
    HalfDayType,
    LeaveStatus,
    LeaveType,
    ManagerAction,
)
from leave_engine.common.exceptions import (
    LeaveOverlapError,
    NotFoundException,
    ValidationException,
)
from leave_engine.common.filters import apply_date_window, apply_filters
from leave_engine.leave.conflicts import check_overlap, lock_employee
from leave_engine.leave.models import LeaveRequest
from leave_engine.leave.schemas import (
    AuditEntryOut,
    LeaveRequestCreate,
    LeaveRequestFilters,
    LeaveRequestOut,
    LeaveRequestUpdate,
)
from leave_engine.leave.workflow import (
    apply_manager_action,
    apply_status_transition,
    ensure_editable,
)

logger = logging.getLogger(__name__)

ENTITY_TYPE = "leave_request"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def span_days(start_date: date, end_date: date) -> Decimal:
    """Inclusive calendar-day count of ``[start_date, end_date]``."""
    return Decimal((end_date - start_date).days + 1)


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave request operations: submit, get, edit, transition, delete, list."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _resolve_fields(
        leave_type: LeaveType,
        half_day_type: Optional[HalfDayType],
        start_date: date,
        end_date: date,
        days: Optional[Decimal],
    ) -> tuple[Optional[HalfDayType], Decimal]:
        """Validate the type/date shape and return ``(half_day_type, days)``.

        Half-day: ``half_day_type`` required, single date, ``days`` forced
        to 0.5. Otherwise ``half_day_type`` is dropped, a reversed range is
        rejected and ``days`` falls back to the inclusive span.

        The strict ``start_date < end_date`` rule is separate; see
        :meth:`_check_span`.
        """
        errors: dict[str, list[str]] = {}

        if leave_type == LeaveType.halfday:
            if half_day_type is None:
                errors["half_day_type"] = [
                    "Half day type must be 'first' or 'second' for half day leaves."
                ]
            if start_date != end_date:
                errors["end_date"] = [
                    "Half day leave must start and end on the same date."
                ]
            if errors:
                raise ValidationException(errors)
            return half_day_type, HALF_DAY

        if start_date > end_date:
            errors["end_date"] = ["end_date must be on or after start_date."]
        if days is not None and days < MIN_LEAVE_DAYS:
            errors["days"] = [f"days must be at least {MIN_LEAVE_DAYS}."]
        if errors:
            raise ValidationException(errors)

        if days is None:
            days = span_days(start_date, end_date)
        if days > MAX_LEAVE_DAYS:
            raise ValidationException(
                {"days": [f"days must not exceed {MAX_LEAVE_DAYS}."]}
            )
        return None, days

    @staticmethod
    def _check_span(leave_type: LeaveType, start_date: date, end_date: date) -> None:
        """Full-day types must span more than one date; half-day is the
        single-date case."""
        if leave_type != LeaveType.halfday and start_date >= end_date:
            raise ValidationException(
                {"end_date": [
                    "End date must be after start date; use a half day "
                    "leave for a single date."
                ]}
            )

    @staticmethod
    async def _ensure_no_overlap(
        db: AsyncSession,
        employee_id: uuid.UUID,
        company_id: uuid.UUID,
        start_date: date,
        end_date: date,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        await lock_employee(db, employee_id)
        conflict = await check_overlap(
            db, employee_id, company_id, start_date, end_date,
            exclude_id=exclude_id,
        )
        if conflict is not None:
            logger.warning(
                "Rejected overlapping leave for employee %s (%s..%s); conflicts with %s",
                employee_id, start_date, end_date, conflict.id,
            )
            raise LeaveOverlapError(
                conflict.id, conflict.start_date, conflict.end_date,
            )

    @staticmethod
    async def _load(
        db: AsyncSession,
        leave_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> LeaveRequest:
        query = select(LeaveRequest).where(LeaveRequest.id == leave_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        leave = result.scalars().first()
        if leave is None:
            raise NotFoundException("LeaveRequest", str(leave_id))
        return leave

    @staticmethod
    def _snapshot(leave: LeaveRequest) -> dict[str, Any]:
        """JSON-safe view of the tracked fields for the audit trail."""
        names = (
            "leave_type", "half_day_type", "start_date", "end_date", "days",
            "reason", "status", "manager_action",
        )
        out: dict[str, Any] = {}
        for name in names:
            value = getattr(leave, name)
            if hasattr(value, "value"):
                value = value.value
            elif isinstance(value, (date, Decimal, uuid.UUID)):
                value = str(value)
            out[name] = value
        return out

    # ─────────────────────────────────────────────────────────────────
    # Submit
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_leave_request(
        db: AsyncSession,
        data: LeaveRequestCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveRequestOut:
        """Submit a leave request.

        Order of checks:
          1. type/date shape → ValidationException
          2. overlap with pending/approved requests → LeaveOverlapError
          3. strict multi-date span for full-day types → ValidationException

        The employee's existence and company membership are the caller's
        responsibility.
        """
        half_day_type, days = LeaveService._resolve_fields(
            data.leave_type, data.half_day_type,
            data.start_date, data.end_date, data.days,
        )

        await LeaveService._ensure_no_overlap(
            db, data.employee_id, data.company_id, data.start_date, data.end_date,
        )

        LeaveService._check_span(data.leave_type, data.start_date, data.end_date)

        now = _now()
        leave = LeaveRequest(
            employee_id=data.employee_id,
            company_id=data.company_id,
            leave_type=data.leave_type,
            half_day_type=half_day_type,
            start_date=data.start_date,
            end_date=data.end_date,
            days=days,
            reason=data.reason,
            status=LeaveStatus.pending,
            manager_action=ManagerAction.pending,
            submitted_date=now,
            updated_at=now,
        )
        db.add(leave)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type=ENTITY_TYPE,
            entity_id=leave.id,
            actor_id=actor_id or data.employee_id,
            company_id=leave.company_id,
            new_values=LeaveService._snapshot(leave),
        )

        logger.info(
            "Leave request %s created: employee=%s type=%s %s..%s days=%s",
            leave.id, leave.employee_id, leave.leave_type.value,
            leave.start_date, leave.end_date, leave.days,
        )
        return LeaveRequestOut.model_validate(leave)

    # ─────────────────────────────────────────────────────────────────
    # Get
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_leave_request(
        db: AsyncSession,
        leave_id: uuid.UUID,
    ) -> LeaveRequestOut:
        """Fetch one leave request by id."""
        leave = await LeaveService._load(db, leave_id)
        return LeaveRequestOut.model_validate(leave)

    @staticmethod
    async def get_leave_history(
        db: AsyncSession,
        leave_id: uuid.UUID,
    ) -> list[AuditEntryOut]:
        """Activity log for a leave request, oldest first.

        History outlives a deleted request; 404 only when the id was never seen.
        """
        entries = await get_audit_entries(db, ENTITY_TYPE, leave_id)
        if not entries:
            await LeaveService._load(db, leave_id)
        return [AuditEntryOut.model_validate(e) for e in entries]

    # ─────────────────────────────────────────────────────────────────
    # Update (pending only)
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def update_leave_request(
        db: AsyncSession,
        leave_id: uuid.UUID,
        data: LeaveRequestUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveRequestOut:
        """Edit a pending leave request.

        The merged record is validated as a new submission would be; the
        overlap check (excluding this record) runs only when the type or a
        date actually changes. Nothing is written unless every check passes.
        """
        leave = await LeaveService._load(db, leave_id, for_update=True)
        ensure_editable(leave)

        patch = data.model_dump(exclude_unset=True)
        if not patch:
            return LeaveRequestOut.model_validate(leave)

        leave_type = patch.get("leave_type", leave.leave_type)
        start_date = patch.get("start_date", leave.start_date)
        end_date = patch.get("end_date", leave.end_date)
        half_day_type = patch.get("half_day_type", leave.half_day_type)

        dates_changed = (
            leave_type != leave.leave_type
            or start_date != leave.start_date
            or end_date != leave.end_date
        )

        if "days" in patch:
            days = patch["days"]
        elif dates_changed:
            days = None
        else:
            days = leave.days

        half_day_type, days = LeaveService._resolve_fields(
            leave_type, half_day_type, start_date, end_date, days,
        )

        if dates_changed:
            await LeaveService._ensure_no_overlap(
                db, leave.employee_id, leave.company_id, start_date, end_date,
                exclude_id=leave.id,
            )

        LeaveService._check_span(leave_type, start_date, end_date)

        old_values = LeaveService._snapshot(leave)

        leave.leave_type = leave_type
        leave.half_day_type = half_day_type
        leave.start_date = start_date
        leave.end_date = end_date
        leave.days = days
        if "reason" in patch:
            leave.reason = patch["reason"]
        leave.updated_at = _now()
        await db.flush()

        new_values = LeaveService._snapshot(leave)
        changed = [k for k in new_values if new_values[k] != old_values[k]]
        await create_audit_entry(
            db,
            action="update",
            entity_type=ENTITY_TYPE,
            entity_id=leave.id,
            actor_id=actor_id,
            company_id=leave.company_id,
            old_values={k: old_values[k] for k in changed},
            new_values={k: new_values[k] for k in changed},
        )

        logger.info("Leave request %s updated: %s", leave.id, ", ".join(changed) or "no changes")
        return LeaveRequestOut.model_validate(leave)

    # ─────────────────────────────────────────────────────────────────
    # Status track (approve / reject / cancel)
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def transition_status(
        db: AsyncSession,
        leave_id: uuid.UUID,
        target: LeaveStatus,
        actor_id: uuid.UUID,
        *,
        comments: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Move a pending request to approved, rejected or cancelled."""
        leave = await LeaveService._load(db, leave_id, for_update=True)

        previous = apply_status_transition(
            leave, target, actor_id, _now(), comments=comments,
        )
        await db.flush()

        await create_audit_entry(
            db,
            action={
                LeaveStatus.approved: "approve",
                LeaveStatus.rejected: "reject",
                LeaveStatus.cancelled: "cancel",
            }[leave.status],
            entity_type=ENTITY_TYPE,
            entity_id=leave.id,
            actor_id=actor_id,
            company_id=leave.company_id,
            old_values={"status": previous.value},
            new_values={"status": leave.status.value, "comments": comments},
        )

        logger.info(
            "Leave request %s status %s -> %s by %s",
            leave.id, previous.value, leave.status.value, actor_id,
        )
        return LeaveRequestOut.model_validate(leave)

    # ─────────────────────────────────────────────────────────────────
    # Manager track
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def record_manager_action(
        db: AsyncSession,
        leave_id: uuid.UUID,
        action: ManagerAction,
        manager_id: uuid.UUID,
        *,
        comment: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Record the reporting manager's approve/reject. Leaves ``status`` alone."""
        leave = await LeaveService._load(db, leave_id, for_update=True)

        previous = apply_manager_action(
            leave, action, manager_id, _now(), comment=comment,
        )
        await db.flush()

        await create_audit_entry(
            db,
            action=f"manager_{leave.manager_action.value}",
            entity_type=ENTITY_TYPE,
            entity_id=leave.id,
            actor_id=manager_id,
            company_id=leave.company_id,
            old_values={"manager_action": previous.value},
            new_values={
                "manager_action": leave.manager_action.value,
                "manager_comment": comment,
            },
        )

        logger.info(
            "Leave request %s manager action %s -> %s by %s",
            leave.id, previous.value, leave.manager_action.value, manager_id,
        )
        return LeaveRequestOut.model_validate(leave)

    # ─────────────────────────────────────────────────────────────────
    # Delete
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def delete_leave_request(
        db: AsyncSession,
        leave_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Hard-delete a leave request, whatever its status."""
        leave = await LeaveService._load(db, leave_id, for_update=True)
        old_values = LeaveService._snapshot(leave)
        company_id = leave.company_id

        await db.delete(leave)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type=ENTITY_TYPE,
            entity_id=leave_id,
            actor_id=actor_id,
            company_id=company_id,
            old_values=old_values,
        )
        logger.info("Leave request %s deleted by %s", leave_id, actor_id)

    # ─────────────────────────────────────────────────────────────────
    # List
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def build_list_query(filters: LeaveRequestFilters) -> Select:
        """SELECT for the given filters, newest submission first.

        Raises ValidationException when only one window bound is given or
        the bounds are reversed.
        """
        if (filters.from_date is None) != (filters.to_date is None):
            raise ValidationException(
                {"dates": ["from_date and to_date must be given together."]}
            )
        if filters.from_date and filters.to_date and filters.from_date > filters.to_date:
            raise ValidationException(
                {"to_date": ["to_date must be on or after from_date."]}
            )

        query = apply_filters(
            select(LeaveRequest),
            LeaveRequest,
            {
                "company_id": filters.company_id,
                "employee_id": filters.employee_id,
                "status": filters.status,
                "leave_type": filters.leave_type,
            },
        )
        query = apply_date_window(
            query,
            LeaveRequest.start_date,
            LeaveRequest.end_date,
            filters.from_date,
            filters.to_date,
        )
        return query.order_by(LeaveRequest.submitted_date.desc())

    @staticmethod
    async def list_leave_requests(
        db: AsyncSession,
        filters: LeaveRequestFilters,
    ) -> list[LeaveRequestOut]:
        """All leave requests matching *filters*."""
        result = await db.execute(LeaveService.build_list_query(filters))
        return [LeaveRequestOut.model_validate(r) for r in result.scalars().all()]
