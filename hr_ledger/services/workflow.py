"""
Approval workflow progression.

Who may approve is configuration owned elsewhere; this module only counts
steps and records actions on the request's append-only log.
"""
from datetime import datetime
from typing import Optional

from hr_ledger.core.exceptions import InvalidTransition, WorkflowNotConfigured
from hr_ledger.models.leave_request import LogAction, RequestStatus


def resolve_total_steps(group, job_title: Optional[str]) -> int:
    """Number of steps in the group, capped by a matching job-title rule."""
    if group is None:
        raise WorkflowNotConfigured()
    total = len(group.steps or [])
    for rule in group.title_rules or []:
        if rule.get("job_title") == job_title:
            total = min(int(rule.get("max_level", total)), total)
            break
    if total < 1:
        raise WorkflowNotConfigured(f"Workflow group '{group.name}' has no approval steps.")
    return total


def log_entry(action: LogAction, actor_id: Optional[str], actor_name: str, now: datetime, comment: Optional[str] = None) -> dict:
    return {
        "approver_id": actor_id,
        "approver_name": actor_name,
        "action": action.value,
        "timestamp": now.isoformat(),
        "comment": comment,
    }


def append_log(request, entry: dict) -> None:
    # Reassign so the JSON column is flagged dirty
    request.logs = [*(request.logs or []), entry]


def _require_in_process(request, action: str) -> None:
    if request.status != RequestStatus.IN_PROCESS:
        raise InvalidTransition(
            f"Cannot {action} a request that is {request.status}.",
            details={"request_id": request.id, "status": request.status, "action": action}
        )


def approve(request, approver_id: Optional[str], approver_name: str, now: datetime, comment: Optional[str] = None) -> None:
    _require_in_process(request, "approve")
    request.step_approved_by = [*(request.step_approved_by or []), approver_id or approver_name]
    append_log(request, log_entry(LogAction.APPROVE, approver_id, approver_name, now, comment))
    if request.current_step >= request.total_steps:
        request.status = RequestStatus.APPROVED.value
    else:
        request.current_step += 1


def reject(request, approver_id: Optional[str], approver_name: str, now: datetime, comment: Optional[str] = None) -> None:
    _require_in_process(request, "reject")
    request.status = RequestStatus.REJECTED.value
    append_log(request, log_entry(LogAction.REJECT, approver_id, approver_name, now, comment))


def cancel(request, actor_id: Optional[str], actor_name: str, now: datetime) -> None:
    if request.status in (RequestStatus.CANCELLED, RequestStatus.REJECTED):
        raise InvalidTransition(
            f"Cannot cancel a request that is {request.status}.",
            details={"request_id": request.id, "status": request.status, "action": "cancel"}
        )
    request.status = RequestStatus.CANCELLED.value
    append_log(request, log_entry(LogAction.CANCEL, actor_id, actor_name, now))
