"""
Reference data consumed by the engine: employees, leave categories and
approval workflow groups. The overtime quota is read-only here.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hr_ledger.core.exceptions import ValidationFailure
from hr_ledger.database import get_db
from hr_ledger.models.leave_category import LeaveCategory
from hr_ledger.models.user import User
from hr_ledger.models.workflow_group import WorkflowGroup
from hr_ledger.schemas.config import (
    AnnualQuotaUpdate,
    CategoryCreate,
    CategoryResponse,
    UserCreate,
    UserResponse,
    WorkflowGroupCreate,
    WorkflowGroupResponse,
)
from hr_ledger.services.stores import CategoryStore, UserStore, WorkflowStore, commit

router = APIRouter(tags=["configuration"])


@router.post("/users", response_model=UserResponse)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    users = UserStore(db)
    if users.get_by_employee_id(payload.employee_id):
        raise ValidationFailure(
            f"Employee ID {payload.employee_id} already exists.",
            details={"employee_id": payload.employee_id}
        )
    user = User(
        employee_id=payload.employee_id,
        name=payload.name,
        department=payload.department,
        job_title=payload.job_title,
        gender=payload.gender.value if payload.gender else None,
        workflow_group_id=payload.workflow_group_id,
        annual_quota=dict(payload.annual_quota),
    )
    users.create(user)
    commit(db)
    db.refresh(user)
    return user


@router.get("/users", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db)):
    return UserStore(db).list()


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return UserStore(db).get(user_id)


@router.put("/users/{user_id}/annual-quota", response_model=UserResponse)
def set_annual_quota(user_id: str, payload: AnnualQuotaUpdate, db: Session = Depends(get_db)):
    users = UserStore(db)
    user = users.get(user_id)
    user.annual_quota = {**(user.annual_quota or {}), str(payload.year): payload.days}
    users.update(user)
    commit(db)
    db.refresh(user)
    return user


@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    return CategoryStore(db).list()


@router.post("/categories", response_model=CategoryResponse)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    category = CategoryStore(db).create(
        LeaveCategory(name=payload.name, allowed_gender=payload.allowed_gender.value)
    )
    commit(db)
    db.refresh(category)
    return category


@router.get("/workflow-groups", response_model=List[WorkflowGroupResponse])
def list_workflow_groups(db: Session = Depends(get_db)):
    return WorkflowStore(db).list()


@router.post("/workflow-groups", response_model=WorkflowGroupResponse)
def create_workflow_group(payload: WorkflowGroupCreate, db: Session = Depends(get_db)):
    group = WorkflowStore(db).create(WorkflowGroup(
        name=payload.name,
        steps=list(payload.steps),
        title_rules=[r.model_dump() for r in payload.title_rules],
    ))
    commit(db)
    db.refresh(group)
    return group
