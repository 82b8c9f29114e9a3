"""Leave router — submit, list, edit, approve/reject/cancel, manager action, summary.

Caller identity is resolved upstream: transitions carry the acting
principal in the body, other writes take it from ``X-Actor-Id``.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leave_engine.common.constants import LeaveStatus, LeaveType
from leave_engine.common.pagination import (
    PaginatedResponse,
    PaginationParams,
    paginate,
)
from leave_engine.common.rate_limit import limiter
from leave_engine.config import settings
from leave_engine.database import get_db
from leave_engine.dependencies import get_actor_id
from leave_engine.leave.models import LeaveRequest
from leave_engine.leave.schemas import (
    AuditEntryOut,
    LeaveRequestCreate,
    LeaveRequestFilters,
    LeaveRequestOut,
    LeaveRequestUpdate,
    LeaveStatusUpdate,
    LeaveSummaryOut,
    ManagerActionUpdate,
)
from leave_engine.leave.service import LeaveService
from leave_engine.leave.summary import LeaveSummaryService

router = APIRouter(prefix="", tags=["leave"])


async def _paginated_list(
    db: AsyncSession,
    filters: LeaveRequestFilters,
    pagination: PaginationParams,
) -> PaginatedResponse[LeaveRequestOut]:
    query = LeaveService.build_list_query(filters)
    page = await paginate(db, query, pagination, model=LeaveRequest)
    return PaginatedResponse[LeaveRequestOut](
        data=[LeaveRequestOut.model_validate(r) for r in page.data],
        meta=page.meta,
    )


# ── POST /requests ──────────────────────────────────────────────────

@router.post("/requests", response_model=LeaveRequestOut, status_code=201)
@limiter.limit(settings.SUBMIT_RATE_LIMIT)
async def submit_leave(
    request: Request,
    body: LeaveRequestCreate,
    actor_id: Optional[uuid.UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Submit a leave request. Rejects overlapping pending/approved leave."""
    return await LeaveService.create_leave_request(db, body, actor_id=actor_id)


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests", response_model=PaginatedResponse[LeaveRequestOut])
async def list_leaves(
    company_id: uuid.UUID = Query(...),
    employee_id: Optional[uuid.UUID] = Query(None),
    status: Optional[LeaveStatus] = Query(None),
    leave_type: Optional[LeaveType] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """List a company's leave requests, newest first."""
    filters = LeaveRequestFilters(
        company_id=company_id,
        employee_id=employee_id,
        status=status,
        leave_type=leave_type,
        from_date=from_date,
        to_date=to_date,
    )
    return await _paginated_list(db, filters, pagination)


# ── GET /employees/{employee_id}/requests ───────────────────────────

@router.get(
    "/employees/{employee_id}/requests",
    response_model=PaginatedResponse[LeaveRequestOut],
)
async def list_employee_leaves(
    employee_id: uuid.UUID,
    company_id: uuid.UUID = Query(...),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """One employee's leave requests, optionally within a date window."""
    filters = LeaveRequestFilters(
        company_id=company_id,
        employee_id=employee_id,
        from_date=from_date,
        to_date=to_date,
    )
    return await _paginated_list(db, filters, pagination)


# ── GET /summary ────────────────────────────────────────────────────

@router.get("/summary", response_model=LeaveSummaryOut)
async def leave_summary(
    company_id: uuid.UUID = Query(...),
    employee_id: Optional[uuid.UUID] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Counts by status and type, total and average days."""
    return await LeaveSummaryService.summarize(
        db, company_id,
        from_date=from_date, to_date=to_date, employee_id=employee_id,
    )


# ── GET /requests/{id} ──────────────────────────────────────────────

@router.get("/requests/{leave_id}", response_model=LeaveRequestOut)
async def get_leave(
    leave_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_leave_request(db, leave_id)


# ── GET /requests/{id}/history ──────────────────────────────────────

@router.get("/requests/{leave_id}/history", response_model=list[AuditEntryOut])
async def get_leave_history(
    leave_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Activity log for a leave request, oldest first."""
    return await LeaveService.get_leave_history(db, leave_id)


# ── PUT /requests/{id}/status ───────────────────────────────────────

@router.put("/requests/{leave_id}/status", response_model=LeaveRequestOut)
async def update_leave_status(
    leave_id: uuid.UUID,
    body: LeaveStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Approve, reject or cancel a pending leave request."""
    return await LeaveService.transition_status(
        db, leave_id, body.status, body.actor_id, comments=body.comments,
    )


# ── PUT /requests/{id}/manager-action ───────────────────────────────

@router.put("/requests/{leave_id}/manager-action", response_model=LeaveRequestOut)
async def update_manager_action(
    leave_id: uuid.UUID,
    body: ManagerActionUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Record the reporting manager's decision. Does not change status."""
    return await LeaveService.record_manager_action(
        db, leave_id, body.action, body.manager_id, comment=body.comment,
    )


# ── PATCH /requests/{id} ────────────────────────────────────────────

@router.patch("/requests/{leave_id}", response_model=LeaveRequestOut)
async def update_leave(
    leave_id: uuid.UUID,
    body: LeaveRequestUpdate,
    actor_id: Optional[uuid.UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Edit a pending leave request."""
    return await LeaveService.update_leave_request(
        db, leave_id, body, actor_id=actor_id,
    )


# ── DELETE /requests/{id} ───────────────────────────────────────────

@router.delete("/requests/{leave_id}", status_code=204)
async def delete_leave(
    leave_id: uuid.UUID,
    actor_id: Optional[uuid.UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Hard-delete a leave request."""
    await LeaveService.delete_leave_request(db, leave_id, actor_id=actor_id)
