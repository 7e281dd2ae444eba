"""
Storage collaborators backed by SQLAlchemy.

Stores never commit. Services own the transaction and call ``commit`` once
per operation so a failed write leaves nothing half-applied.
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hr_ledger.core.exceptions import CollaboratorFailure, NotFoundError
from hr_ledger.models.leave_category import LeaveCategory
from hr_ledger.models.leave_request import LeaveRequest
from hr_ledger.models.settlement import OvertimeSettlement
from hr_ledger.models.settlement_note import SettlementNote
from hr_ledger.models.user import User
from hr_ledger.models.warning_rule import WarningRule
from hr_ledger.models.workflow_group import WorkflowGroup

logger = logging.getLogger(__name__)

SETTLEMENT_FIELDS = (
    "applied_hours", "actual_hours", "paid_hours", "remaining_hours",
    "base_auth", "pay_auth", "settled_at", "settled_by",
)


def commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Commit failed: {e}", exc_info=True)
        raise CollaboratorFailure() from e


class RequestStore:
    def __init__(self, db: Session):
        self.db = db

    def list(self, user_id: Optional[str] = None, status: Optional[str] = None) -> List[LeaveRequest]:
        query = self.db.query(LeaveRequest)
        if user_id:
            query = query.filter(LeaveRequest.user_id == user_id)
        if status:
            query = query.filter(LeaveRequest.status == status)
        return query.order_by(LeaveRequest.start_date).all()

    def get(self, request_id: str) -> LeaveRequest:
        request = self.db.get(LeaveRequest, request_id)
        if request is None:
            raise NotFoundError(f"Leave request {request_id} not found", details={"request_id": request_id})
        return request

    def create(self, request: LeaveRequest) -> LeaveRequest:
        self.db.add(request)
        return request

    def update(self, request: LeaveRequest) -> LeaveRequest:
        self.db.add(request)
        return request

    def delete(self, request_id: str) -> None:
        self.db.delete(self.get(request_id))


class UserStore:
    def __init__(self, db: Session):
        self.db = db

    def list(self, user_ids: Optional[Iterable[str]] = None) -> List[User]:
        query = self.db.query(User)
        if user_ids is not None:
            query = query.filter(User.id.in_(list(user_ids)))
        return query.order_by(User.employee_id).all()

    def get(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", details={"user_id": user_id})
        return user

    def get_by_employee_id(self, employee_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.employee_id == employee_id).first()

    def require_all(self, user_ids: Iterable[str]) -> List[User]:
        user_ids = list(dict.fromkeys(user_ids))
        users = self.list(user_ids)
        missing = sorted(set(user_ids) - {u.id for u in users})
        if missing:
            raise NotFoundError("Unknown users in settlement", details={"user_ids": missing})
        return users

    def create(self, user: User) -> User:
        self.db.add(user)
        return user

    def update(self, user: User) -> User:
        self.db.add(user)
        return user


class SettlementStore:
    def __init__(self, db: Session):
        self.db = db

    def list(self, user_ids: Optional[Iterable[str]] = None) -> List[OvertimeSettlement]:
        query = self.db.query(OvertimeSettlement)
        if user_ids is not None:
            query = query.filter(OvertimeSettlement.user_id.in_(list(user_ids)))
        return query.all()

    def upsert(self, drafts: Iterable) -> List[OvertimeSettlement]:
        """Insert or overwrite by (user_id, year, month)."""
        rows = []
        for draft in drafts:
            row = self.db.query(OvertimeSettlement).filter(
                OvertimeSettlement.user_id == draft.user_id,
                OvertimeSettlement.year == draft.year,
                OvertimeSettlement.month == draft.month
            ).first()
            if row is None:
                row = OvertimeSettlement(user_id=draft.user_id, year=draft.year, month=draft.month)
                if draft.id:
                    row.id = draft.id
                self.db.add(row)
            for name in SETTLEMENT_FIELDS:
                setattr(row, name, getattr(draft, name))
            rows.append(row)
        self.db.flush()
        return rows


class WorkflowStore:
    def __init__(self, db: Session):
        self.db = db

    def list(self) -> List[WorkflowGroup]:
        return self.db.query(WorkflowGroup).order_by(WorkflowGroup.name).all()

    def get_group_for_user(self, user: User) -> Optional[WorkflowGroup]:
        """The user's own group, falling back to the first configured one."""
        if user.workflow_group_id:
            group = self.db.get(WorkflowGroup, user.workflow_group_id)
            if group is not None:
                return group
        return self.db.query(WorkflowGroup).order_by(WorkflowGroup.name).first()

    def create(self, group: WorkflowGroup) -> WorkflowGroup:
        self.db.add(group)
        return group


class RuleStore:
    def __init__(self, db: Session):
        self.db = db

    def list(self) -> List[WarningRule]:
        return self.db.query(WarningRule).order_by(WarningRule.name).all()

    def create(self, rule: WarningRule) -> WarningRule:
        self.db.add(rule)
        return rule

    def delete(self, rule_id: str) -> None:
        rule = self.db.get(WarningRule, rule_id)
        if rule is None:
            raise NotFoundError(f"Warning rule {rule_id} not found", details={"rule_id": rule_id})
        self.db.delete(rule)


class CategoryStore:
    def __init__(self, db: Session):
        self.db = db

    def list(self) -> List[LeaveCategory]:
        return self.db.query(LeaveCategory).order_by(LeaveCategory.name).all()

    def create(self, category: LeaveCategory) -> LeaveCategory:
        self.db.add(category)
        return category


class NoteStore:
    def __init__(self, db: Session):
        self.db = db

    def list(self, year: int, month: int) -> List[SettlementNote]:
        return self.db.query(SettlementNote).filter(
            SettlementNote.year == year,
            SettlementNote.month == month
        ).order_by(SettlementNote.updated_at.desc()).all()

    def get(self, note_id: str) -> SettlementNote:
        note = self.db.get(SettlementNote, note_id)
        if note is None:
            raise NotFoundError(f"Note {note_id} not found", details={"note_id": note_id})
        return note

    def create(self, note: SettlementNote) -> SettlementNote:
        self.db.add(note)
        return note

    def delete(self, note_id: str) -> None:
        self.db.delete(self.get(note_id))
