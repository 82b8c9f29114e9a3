"""Leave module — LeaveRequest model, schemas, services and router."""

from leave_engine.leave.models import LeaveRequest

__all__ = ["LeaveRequest"]
