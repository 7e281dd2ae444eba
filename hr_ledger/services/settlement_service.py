"""
Settlement Service Layer

Runs the monthly overtime close against storage:

1. read one snapshot of users, requests and settlement records
2. compute every new record with the pure ledger (hr_ledger.services.settlement)
3. upsert the records (and request corrections) and commit
4. refresh the touched users' overtime snapshots in a separate pass

Step 4 is retried in full on storage errors; it never writes a subset of
the touched users.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from hr_ledger.core.config import settings
from hr_ledger.core.exceptions import CollaboratorFailure
from hr_ledger.models.leave_request import LeaveRequest
from hr_ledger.models.settlement import OvertimeSettlement
from hr_ledger.models.settlement_note import SettlementNote
from hr_ledger.services import settlement as ledger
from hr_ledger.services.balance_sync import synchronize_balances
from hr_ledger.services.stores import (
    NoteStore,
    RequestStore,
    SettlementStore,
    UserStore,
    commit,
)
from hr_ledger.services.workflow import append_log

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _snapshot(db: Session) -> Tuple[List[OvertimeSettlement], List[LeaveRequest]]:
    return SettlementStore(db).list(), RequestStore(db).list()


@retry(
    stop=stop_after_attempt(settings.balance_sync_attempts),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
    retry=retry_if_exception_type(SQLAlchemyError),
    reraise=True
)
def _sync_pass(db: Session, user_ids: List[str]) -> Dict[str, float]:
    try:
        users = UserStore(db).list(user_ids)
        records = SettlementStore(db).list(user_ids)
        snapshots = synchronize_balances(users, records, user_ids)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return snapshots


def sync_balances(db: Session, user_ids: Iterable[str]) -> Dict[str, float]:
    user_ids = list(dict.fromkeys(user_ids))
    if not user_ids:
        return {}
    try:
        snapshots = _sync_pass(db, user_ids)
    except SQLAlchemyError as e:
        logger.error(f"Balance synchronization failed for {len(user_ids)} user(s): {e}", exc_info=True)
        raise CollaboratorFailure("Settlement saved but overtime balances could not be refreshed.") from e
    logger.info("Overtime balances synchronized", extra={"users": user_ids, "snapshots": snapshots})
    return snapshots


def _log_violations(violations: List[ledger.RangeViolation]) -> None:
    for v in violations:
        logger.warning(
            f"Settlement base {v.base} outside [{v.minimum}, {v.maximum}]",
            extra={"user_id": v.user_id, "period": f"{v.year}-{v.month:02d}", "policy": settings.base_range_policy}
        )


def apply_settlement(
    db: Session,
    action: ledger.SettlementAction,
    signer: ledger.Signer,
    now: Optional[datetime] = None
) -> Tuple[List[OvertimeSettlement], List[ledger.RangeViolation], Dict[str, float]]:
    """Apply a base/pay settlement action. Returns records, advisory violations and new snapshots."""
    now = now or _now()
    UserStore(db).require_all(action.target_user_ids())
    records, requests = _snapshot(db)

    outcome = ledger.apply_settlement(action, records, requests, signer, now)
    _log_violations(outcome.violations)

    rows = SettlementStore(db).upsert(outcome.drafts)
    commit(db)
    logger.info(
        f"Settlement {action.type.value} applied for {action.year}-{action.month:02d}",
        extra={"users": [d.user_id for d in outcome.drafts], "signer": signer.name}
    )

    snapshots = sync_balances(db, [d.user_id for d in outcome.drafts])
    for row in rows:
        db.refresh(row)
    return rows, outcome.violations, snapshots


def apply_detail_review(
    db: Session,
    year: int,
    month: int,
    edits: Mapping[str, ledger.DetailEdit],
    verified_ids: Iterable[str],
    signer: ledger.Signer,
    now: Optional[datetime] = None
) -> Tuple[List[LeaveRequest], List[OvertimeSettlement], List[ledger.RangeViolation], Dict[str, float]]:
    now = now or _now()
    records, requests = _snapshot(db)

    outcome = ledger.apply_detail_review(year, month, edits, verified_ids, records, requests, signer, now)
    _log_violations(outcome.violations)

    by_id = {r.id: r for r in requests}
    updated = []
    for correction in outcome.corrections:
        req = by_id[correction.request_id]
        req.actual_start_date = correction.actual_start_date
        req.actual_end_date = correction.actual_end_date
        req.actual_start_time = correction.actual_start_time
        req.actual_end_time = correction.actual_end_time
        req.actual_duration = correction.actual_duration
        req.is_verified = correction.is_verified
        if correction.log_entry:
            append_log(req, correction.log_entry)
        updated.append(req)

    rows = SettlementStore(db).upsert(outcome.drafts)
    commit(db)
    logger.info(
        f"Detail review applied for {year}-{month:02d}",
        extra={
            "requests": len(updated),
            "verified": sum(1 for c in outcome.corrections if c.is_verified),
            "users": [d.user_id for d in outcome.drafts],
        }
    )

    snapshots = sync_balances(db, [d.user_id for d in outcome.drafts])
    for row in rows:
        db.refresh(row)
    for req in updated:
        db.refresh(req)
    return updated, rows, outcome.violations, snapshots


def get_sheet(db: Session, year: int, month: int) -> List[dict]:
    records, requests = _snapshot(db)
    return ledger.settlement_sheet(UserStore(db).list(), records, requests, year, month)


def get_detail_worksheet(db: Session, year: int, month: int) -> List[dict]:
    return ledger.worksheet_rows(RequestStore(db).list(), year, month)


def get_user_records(db: Session, user_id: str) -> List[OvertimeSettlement]:
    UserStore(db).get(user_id)
    records = SettlementStore(db).list([user_id])
    return sorted(records, key=lambda r: (r.year, r.month), reverse=True)


# --- Monthly review notes ---

def list_notes(db: Session, year: int, month: int) -> List[SettlementNote]:
    return NoteStore(db).list(year, month)


def save_note(
    db: Session,
    year: Optional[int],
    month: Optional[int],
    text: str,
    author_name: str,
    author_id: Optional[str] = None,
    note_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> SettlementNote:
    now = now or _now()
    store = NoteStore(db)
    if note_id:
        note = store.get(note_id)
    else:
        note = store.create(SettlementNote(year=year, month=month))
    note.note = text
    note.updated_at = now
    note.updated_by = author_name
    note.updated_by_id = author_id
    commit(db)
    db.refresh(note)
    return note


def delete_note(db: Session, note_id: str) -> None:
    NoteStore(db).delete(note_id)
    commit(db)
