from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hr_ledger.database import get_db
from hr_ledger.schemas.leave import (
    LeaveCancel,
    LeaveDecision,
    LeaveRequestCreate,
    LeaveRequestResponse,
    OverlapCheck,
    OverlapResponse,
    QuotaResponse,
)
from hr_ledger.services import leave_service
from hr_ledger.services.stores import RequestStore, UserStore

router = APIRouter(prefix="/leave", tags=["leave"])


@router.post("/requests", response_model=LeaveRequestResponse)
def submit_leave_request(payload: LeaveRequestCreate, db: Session = Depends(get_db)):
    """Submit a new request. Rejected with 409 on overlap, 400 on insufficient quota."""
    return leave_service.submit_request(db, payload)


@router.put("/requests/{request_id}", response_model=LeaveRequestResponse)
def edit_leave_request(request_id: str, payload: LeaveRequestCreate, db: Session = Depends(get_db)):
    """Resubmit an existing request; the workflow restarts at step 1."""
    return leave_service.submit_request(db, payload, request_id=request_id)


@router.get("/requests", response_model=List[LeaveRequestResponse])
def list_leave_requests(
    user_id: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return RequestStore(db).list(user_id, status=status)


@router.get("/requests/{request_id}", response_model=LeaveRequestResponse)
def get_leave_request(request_id: str, db: Session = Depends(get_db)):
    return RequestStore(db).get(request_id)


@router.post("/requests/{request_id}/decision", response_model=LeaveRequestResponse)
def decide_leave_request(request_id: str, decision: LeaveDecision, db: Session = Depends(get_db)):
    return leave_service.decide_request(
        db,
        request_id,
        approve=decision.approve,
        approver_id=decision.approver_id,
        approver_name=decision.approver_name,
        comment=decision.comment
    )


@router.post("/requests/{request_id}/cancel", response_model=LeaveRequestResponse)
def cancel_leave_request(request_id: str, payload: LeaveCancel, db: Session = Depends(get_db)):
    return leave_service.cancel_request(db, request_id, payload.actor_id, payload.actor_name)


@router.delete("/requests/{request_id}")
def delete_leave_request(request_id: str, db: Session = Depends(get_db)):
    leave_service.delete_request(db, request_id)
    return {"success": True}


@router.get("/quota/{user_id}", response_model=QuotaResponse)
def get_quota(
    user_id: str,
    category: str,
    year: Optional[int] = None,
    exclude_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Live used / pending / remaining figures for a category. Read-only."""
    year = year or date.today().year
    return leave_service.get_quota(db, user_id, category, year, exclude_id=exclude_id).to_dict()


@router.post("/overlap-check", response_model=OverlapResponse)
def check_overlap(payload: OverlapCheck, db: Session = Depends(get_db)):
    result = leave_service.check_overlap(
        db, payload.user_id, payload.start_date, payload.end_date, exclude_id=payload.exclude_id
    )
    return {"overlap": result.overlap, "conflicting_request": result.conflicting_request}


@router.get("/categories/{user_id}", response_model=List[str])
def get_available_categories(user_id: str, db: Session = Depends(get_db)):
    return leave_service.available_categories(db, UserStore(db).get(user_id))
