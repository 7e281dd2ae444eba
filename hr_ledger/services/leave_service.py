"""
Leave Service Layer

Request submission, editing and approval progression. Every check runs
against one read of the user's requests and raises before anything is
written; the transaction is committed once at the end.

Architecture:
- Router -> Service (this module) -> engine functions / stores
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from hr_ledger.core.exceptions import InvalidTransition, ValidationFailure
from hr_ledger.models.leave_category import GenderRestriction
from hr_ledger.models.leave_request import LeaveRequest, LeaveType, LogAction, RequestStatus
from hr_ledger.models.user import Gender, User
from hr_ledger.schemas.leave import LeaveRequestCreate
from hr_ledger.services import workflow
from hr_ledger.services.duration import Span, clock_minutes
from hr_ledger.services.overlap import OverlapResult, ensure_no_overlap, find_overlap
from hr_ledger.services.quota import QuotaInfo, check_quota, quota_info
from hr_ledger.services.stores import (
    CategoryStore,
    RequestStore,
    RuleStore,
    UserStore,
    WorkflowStore,
    commit,
)
from hr_ledger.services.warning_rules import ActiveWarning, evaluate_warnings

logger = logging.getLogger(__name__)

NOT_EDITABLE = (RequestStatus.APPROVED.value, RequestStatus.CANCELLED.value)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _gender_allows(restriction: str, gender: Optional[str]) -> bool:
    if restriction == GenderRestriction.ALL:
        return True
    if restriction == GenderRestriction.MALE_ONLY:
        return gender == Gender.MALE
    if restriction == GenderRestriction.FEMALE_ONLY:
        return gender == Gender.FEMALE
    return False


def available_categories(db: Session, user: User) -> List[str]:
    """Leave types the user may file. Built-in types when none are configured."""
    categories = CategoryStore(db).list()
    if not categories:
        return [t.value for t in LeaveType]
    return [c.name for c in categories if _gender_allows(c.allowed_gender, user.gender)]


def build_span(payload: LeaveRequestCreate) -> Span:
    """Validate the submitted span and return it."""
    if payload.end_date < payload.start_date:
        raise ValidationFailure(
            "End date must not be before start date.",
            details={"start_date": payload.start_date.isoformat(), "end_date": payload.end_date.isoformat()}
        )
    if payload.is_partial_day and payload.start_time and payload.end_time:
        if clock_minutes(payload.end_time) < clock_minutes(payload.start_time):
            raise ValidationFailure(
                "End time must not be before start time.",
                details={"start_time": payload.start_time, "end_time": payload.end_time}
            )
    return Span(
        start_date=payload.start_date,
        end_date=payload.end_date,
        is_partial_day=payload.is_partial_day,
        start_time=payload.start_time if payload.is_partial_day else None,
        end_time=payload.end_time if payload.is_partial_day else None,
    )


def get_quota(db: Session, user_id: str, category: str, year: int, exclude_id: Optional[str] = None) -> QuotaInfo:
    user = UserStore(db).get(user_id)
    return quota_info(user, RequestStore(db).list(user_id), category, year, exclude_id=exclude_id)


def check_overlap(db: Session, user_id: str, start, end, exclude_id: Optional[str] = None) -> OverlapResult:
    return find_overlap(RequestStore(db).list(user_id), user_id, start, end, exclude_id)


def get_user_warnings(db: Session, user_id: str) -> List[ActiveWarning]:
    user = UserStore(db).get(user_id)
    return evaluate_warnings(user.id, RuleStore(db).list(), RequestStore(db).list(user.id))


def submit_request(
    db: Session,
    payload: LeaveRequestCreate,
    request_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> LeaveRequest:
    """
    Create a request, or resubmit an existing one when ``request_id`` is given.

    Raises OverlapConflict, QuotaExceeded, WorkflowNotConfigured or
    ValidationFailure before any write.
    """
    now = now or _now()
    users = UserStore(db)
    requests = RequestStore(db)
    user = users.get(payload.user_id)
    span = build_span(payload)

    allowed = available_categories(db, user)
    if payload.type not in allowed:
        raise ValidationFailure(
            f"Leave type '{payload.type}' is not available for this user.",
            details={"type": payload.type, "allowed": allowed}
        )

    existing = None
    if request_id:
        existing = requests.get(request_id)
        if existing.user_id != user.id:
            raise ValidationFailure(
                "A request cannot be moved to another user.",
                details={"request_id": request_id, "user_id": user.id}
            )
        if existing.status in NOT_EDITABLE:
            raise InvalidTransition(
                f"Cannot edit a request that is {existing.status}.",
                details={"request_id": request_id, "status": existing.status, "action": "edit"}
            )

    history = requests.list(user.id)
    ensure_no_overlap(history, user.id, span.start_date, span.end_date, exclude_id=request_id)
    check_quota(user, history, payload.type, span, exclude_id=request_id)
    total_steps = workflow.resolve_total_steps(WorkflowStore(db).get_group_for_user(user), user.job_title)

    record = existing or LeaveRequest(user_id=user.id, logs=[])
    record.user_name = user.name
    record.type = payload.type
    record.start_date = span.start_date
    record.end_date = span.end_date
    record.is_partial_day = span.is_partial_day
    record.start_time = span.start_time
    record.end_time = span.end_time
    record.reason = payload.reason
    record.deputy = payload.deputy
    record.attachment_urls = list(payload.attachment_urls)
    record.status = RequestStatus.IN_PROCESS.value
    record.current_step = 1
    record.total_steps = total_steps
    record.step_approved_by = []
    action = LogAction.UPDATE if existing else LogAction.SUBMIT
    workflow.append_log(record, workflow.log_entry(action, user.id, user.name, now))

    if existing:
        requests.update(record)
    else:
        requests.create(record)
    commit(db)
    db.refresh(record)

    logger.info(
        f"Leave request {action.value.lower()}",
        extra={"leave_request_id": record.id, "user_id": user.id, "type": record.type, "total_steps": total_steps}
    )
    return record


def decide_request(
    db: Session,
    request_id: str,
    approve: bool,
    approver_id: Optional[str],
    approver_name: str,
    comment: Optional[str] = None,
    now: Optional[datetime] = None
) -> LeaveRequest:
    now = now or _now()
    requests = RequestStore(db)
    record = requests.get(request_id)
    if approve:
        workflow.approve(record, approver_id, approver_name, now, comment)
    else:
        workflow.reject(record, approver_id, approver_name, now, comment)
    requests.update(record)
    commit(db)
    db.refresh(record)
    logger.info(
        f"Leave request {'approved' if approve else 'rejected'} at step {record.current_step}/{record.total_steps}",
        extra={"leave_request_id": record.id, "status": record.status}
    )
    return record


def cancel_request(
    db: Session,
    request_id: str,
    actor_id: Optional[str],
    actor_name: str,
    now: Optional[datetime] = None
) -> LeaveRequest:
    now = now or _now()
    requests = RequestStore(db)
    record = requests.get(request_id)
    workflow.cancel(record, actor_id, actor_name, now)
    requests.update(record)
    commit(db)
    db.refresh(record)
    logger.info("Leave request cancelled", extra={"leave_request_id": record.id})
    return record


def delete_request(db: Session, request_id: str) -> None:
    requests = RequestStore(db)
    record = requests.get(request_id)
    if record.status == RequestStatus.APPROVED:
        raise InvalidTransition(
            "Approved requests are part of the accounting history and cannot be deleted.",
            details={"request_id": request_id, "status": record.status, "action": "delete"}
        )
    requests.delete(request_id)
    commit(db)
    logger.info("Leave request deleted", extra={"leave_request_id": request_id})
