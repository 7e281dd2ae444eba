"""
Monthly overtime settlement endpoints.

Write endpoints are throttled per client and return the persisted records
together with any advisory base-range violations and the refreshed
overtime balances of the users touched.
"""
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from hr_ledger.core.config import settings
from hr_ledger.core.limiter import limiter
from hr_ledger.database import get_db
from hr_ledger.schemas.settlement import (
    DetailEditIn,
    DetailReviewRequest,
    DetailReviewResult,
    DetailRow,
    NoteIn,
    NoteResponse,
    RowHoursRequest,
    SettlementActionRequest,
    SettlementRecordResponse,
    SettlementResult,
    SheetRow,
)
from hr_ledger.services import settlement_service
from hr_ledger.services.duration import row_hours
from hr_ledger.services.settlement import DetailEdit, SettlementAction, Signer

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.post("/apply", response_model=SettlementResult)
@limiter.limit(settings.settlement_rate_limit)
def apply_settlement(request: Request, payload: SettlementActionRequest, db: Session = Depends(get_db)):
    action = SettlementAction(
        type=payload.type,
        year=payload.year,
        month=payload.month,
        base_inputs=payload.base_inputs,
        pay_inputs=payload.pay_inputs,
        user_id=payload.user_id,
    )
    rows, violations, balances = settlement_service.apply_settlement(
        db, action, Signer(**payload.signer.model_dump())
    )
    return {
        "records": rows,
        "violations": [v.to_dict() for v in violations],
        "balances": balances,
    }


@router.post("/detail-review", response_model=DetailReviewResult)
@limiter.limit(settings.settlement_rate_limit)
def apply_detail_review(request: Request, payload: DetailReviewRequest, db: Session = Depends(get_db)):
    """Save per-request corrections; the month's base becomes their sum."""
    edits = {req_id: DetailEdit(**edit.model_dump()) for req_id, edit in payload.edits.items()}
    updated, rows, violations, balances = settlement_service.apply_detail_review(
        db,
        payload.year,
        payload.month,
        edits,
        payload.verified_ids,
        Signer(**payload.signer.model_dump())
    )
    return {
        "requests": updated,
        "records": rows,
        "violations": [v.to_dict() for v in violations],
        "balances": balances,
    }


@router.post("/row-hours")
def calculate_row_hours(payload: RowHoursRequest):
    """Auto-calculated hours for a worksheet row; 00:00-00:00 means whole days."""
    return {"hours": row_hours(payload.start_date, payload.end_date, payload.start_time, payload.end_time)}


@router.get("/users/{user_id}", response_model=List[SettlementRecordResponse])
def get_user_records(user_id: str, db: Session = Depends(get_db)):
    return settlement_service.get_user_records(db, user_id)


@router.put("/notes/{note_id}", response_model=NoteResponse)
def update_note(note_id: str, payload: NoteIn, db: Session = Depends(get_db)):
    return settlement_service.save_note(
        db, None, None, payload.note, payload.author_name, payload.author_id, note_id=note_id
    )


@router.delete("/notes/{note_id}")
def delete_note(note_id: str, db: Session = Depends(get_db)):
    settlement_service.delete_note(db, note_id)
    return {"success": True}


@router.get("/periods/{year}/{month}", response_model=List[SheetRow])
def get_settlement_sheet(year: int, month: int, db: Session = Depends(get_db)):
    return settlement_service.get_sheet(db, year, month)


@router.get("/periods/{year}/{month}/details", response_model=List[DetailRow])
def get_detail_worksheet(year: int, month: int, db: Session = Depends(get_db)):
    rows = settlement_service.get_detail_worksheet(db, year, month)
    return [
        {**row, "edit": DetailEditIn(**asdict(row["edit"]))}
        for row in rows
    ]


@router.get("/periods/{year}/{month}/notes", response_model=List[NoteResponse])
def list_notes(year: int, month: int, db: Session = Depends(get_db)):
    return settlement_service.list_notes(db, year, month)


@router.post("/periods/{year}/{month}/notes", response_model=NoteResponse)
def create_note(year: int, month: int, payload: NoteIn, db: Session = Depends(get_db)):
    return settlement_service.save_note(db, year, month, payload.note, payload.author_name, payload.author_id)
