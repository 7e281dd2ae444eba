"""
Settlement Ledger

Pure computation of monthly overtime settlement records. One record exists
per (user, year, month); every action reads the existing record (or zeros),
overwrites only the sub-fields it is authorized to change and re-derives

    remaining = live balance + base - paid - compensatory hours used

where the live balance is the previous month's ``remaining_hours`` (0 when
there is no previous record). ``base_auth`` and ``pay_auth`` are independent
signatures.

Rewriting a month also re-derives the remaining balance of every later
month of that user, so the stored chain never goes stale.

Nothing here touches storage. Callers pass one consistent snapshot of
records and requests and persist the returned drafts by upsert.
"""
import enum
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from hr_ledger.core.config import settings
from hr_ledger.core.exceptions import BaseOutOfRange, ValidationFailure
from hr_ledger.models.leave_request import LeaveType, LogAction, RequestStatus
from hr_ledger.services.duration import (
    MIDNIGHT,
    CorrectedSpan,
    duration_hours,
    effective_span,
    in_month,
    row_hours,
    span_of,
    to_date,
)


class SettlementActionType(str, enum.Enum):
    BATCH = "BATCH"              # base and pay for every modified user
    SINGLE_BASE = "SINGLE_BASE"  # base for one user
    SINGLE_PAY = "SINGLE_PAY"    # pay for one user
    BATCH_BASE = "BATCH_BASE"    # base only, for every user with a base input


BASE_ACTIONS = {SettlementActionType.BATCH, SettlementActionType.SINGLE_BASE, SettlementActionType.BATCH_BASE}
PAY_ACTIONS = {SettlementActionType.BATCH, SettlementActionType.SINGLE_PAY}


@dataclass(frozen=True)
class Signer:
    name: str
    role: str
    id: Optional[str] = None

    def signature(self, now: datetime) -> dict:
        return {"name": self.name, "role": self.role, "timestamp": now.isoformat()}


@dataclass(frozen=True)
class SettlementAction:
    type: SettlementActionType
    year: int
    month: int
    base_inputs: Mapping[str, float] = field(default_factory=dict)
    pay_inputs: Mapping[str, float] = field(default_factory=dict)
    user_id: Optional[str] = None

    def target_user_ids(self) -> List[str]:
        if self.type == SettlementActionType.BATCH:
            return list(dict.fromkeys([*self.base_inputs, *self.pay_inputs]))
        if self.type == SettlementActionType.BATCH_BASE:
            return list(self.base_inputs)
        if not self.user_id:
            raise ValidationFailure(
                f"{self.type.value} settlement requires a user_id.",
                details={"action": self.type.value}
            )
        inputs = self.base_inputs if self.type == SettlementActionType.SINGLE_BASE else self.pay_inputs
        if self.user_id not in inputs:
            raise ValidationFailure(
                f"{self.type.value} settlement has no input for user {self.user_id}.",
                details={"action": self.type.value, "user_id": self.user_id}
            )
        return [self.user_id]

    def base_for(self, user_id: str) -> Optional[float]:
        if self.type in BASE_ACTIONS and user_id in self.base_inputs:
            return float(self.base_inputs[user_id])
        return None

    def pay_for(self, user_id: str) -> Optional[float]:
        if self.type in PAY_ACTIONS and user_id in self.pay_inputs:
            return float(self.pay_inputs[user_id])
        return None


@dataclass
class SettlementDraft:
    user_id: str
    year: int
    month: int
    applied_hours: float
    actual_hours: float
    paid_hours: float
    remaining_hours: float
    base_auth: Optional[dict] = None
    pay_auth: Optional[dict] = None
    settled_at: Optional[datetime] = None
    settled_by: Optional[str] = None
    id: Optional[str] = None

    @property
    def key(self) -> Tuple[str, int, int]:
        return (self.user_id, self.year, self.month)


@dataclass(frozen=True)
class RangeViolation:
    """Base outside [0, monthly applied hours]."""
    user_id: str
    year: int
    month: int
    base: float
    minimum: float
    maximum: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SettlementOutcome:
    drafts: List[SettlementDraft]
    violations: List[RangeViolation]


@dataclass(frozen=True)
class DetailEdit:
    start_date: object
    end_date: object
    start_time: str = MIDNIGHT
    end_time: str = MIDNIGHT
    duration: Optional[float] = None  # None: auto-calculate from the span


@dataclass
class RequestCorrection:
    request_id: str
    user_id: str
    actual_start_date: object
    actual_end_date: object
    actual_start_time: str
    actual_end_time: str
    actual_duration: float
    is_verified: bool
    log_entry: Optional[dict] = None


@dataclass
class DetailReviewOutcome:
    corrections: List[RequestCorrection]
    drafts: List[SettlementDraft]
    violations: List[RangeViolation]


# ---------------------------------------------------------------------------
# Period helpers
# ---------------------------------------------------------------------------

def previous_period(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def find_record(records: Iterable, user_id: str, year: int, month: int):
    for record in records:
        if record.user_id == user_id and record.year == year and record.month == month:
            return record
    return None


def live_balance(records: Iterable, user_id: str, year: int, month: int) -> float:
    prev_year, prev_month = previous_period(year, month)
    prev = find_record(records, user_id, prev_year, prev_month)
    return float(prev.remaining_hours) if prev else 0.0


def monthly_hours(requests: Iterable, user_id: str, category: str, year: int, month: int) -> float:
    """Submitted hours of approved requests whose original start date is in the month."""
    total = 0.0
    for req in requests:
        if req.user_id != user_id or req.status != RequestStatus.APPROVED or req.type != category:
            continue
        if in_month(req.start_date, year, month):
            total += duration_hours(span_of(req))
    return round(total, 2)


def monthly_applied_hours(requests: Iterable, user_id: str, year: int, month: int) -> float:
    return monthly_hours(requests, user_id, LeaveType.OVERTIME.value, year, month)


def monthly_compensatory_hours(requests: Iterable, user_id: str, year: int, month: int) -> float:
    return monthly_hours(requests, user_id, LeaveType.COMPENSATORY.value, year, month)


def remaining_balance(live: float, base: float, paid: float, compensatory: float) -> float:
    return round(live + base - paid - compensatory, 2)


def check_base_range(user_id: str, year: int, month: int, base: float, applied: float) -> Optional[RangeViolation]:
    if 0 <= base <= applied:
        return None
    return RangeViolation(user_id, year, month, base, 0.0, applied)


def enforce_base_range(violations: Sequence[RangeViolation], policy: Optional[str] = None) -> None:
    policy = policy or settings.base_range_policy
    if policy == "enforce" and violations:
        first = violations[0]
        raise BaseOutOfRange(
            f"Settlement base {first.base} for user {first.user_id} is outside "
            f"[{first.minimum}, {first.maximum}] for {first.year}-{first.month:02d}.",
            details={"violations": [v.to_dict() for v in violations]}
        )


# ---------------------------------------------------------------------------
# Record derivation
# ---------------------------------------------------------------------------

def _differs(existing, draft: SettlementDraft) -> bool:
    return (
        round(existing.applied_hours or 0.0, 2) != round(draft.applied_hours, 2)
        or round(existing.actual_hours or 0.0, 2) != round(draft.actual_hours, 2)
        or round(existing.paid_hours or 0.0, 2) != round(draft.paid_hours, 2)
        or round(existing.remaining_hours or 0.0, 2) != round(draft.remaining_hours, 2)
        or existing.base_auth != draft.base_auth
        or existing.pay_auth != draft.pay_auth
    )


def settle_user(
    existing,
    user_id: str,
    year: int,
    month: int,
    *,
    new_base: Optional[float],
    new_paid: Optional[float],
    applied: float,
    compensatory: float,
    live: float,
    signer: Signer,
    now: datetime,
) -> SettlementDraft:
    """
    Derive the new record for one user.

    ``new_base`` / ``new_paid`` of None mean the action may not touch that
    sub-field. A signature is stamped when its sub-field changes value or
    has never been signed; an identical re-run leaves the record untouched.
    """
    old_base = float(existing.actual_hours) if existing else 0.0
    old_paid = float(existing.paid_hours) if existing else 0.0
    base_auth = existing.base_auth if existing else None
    pay_auth = existing.pay_auth if existing else None

    base = old_base if new_base is None else new_base
    paid = old_paid if new_paid is None else new_paid

    signature = signer.signature(now)
    if new_base is not None and (base != old_base or base_auth is None):
        base_auth = signature
    if new_paid is not None and (paid != old_paid or pay_auth is None):
        pay_auth = signature

    draft = SettlementDraft(
        id=existing.id if existing else None,
        user_id=user_id,
        year=year,
        month=month,
        applied_hours=applied,
        actual_hours=base,
        paid_hours=paid,
        remaining_hours=remaining_balance(live, base, paid, compensatory),
        base_auth=base_auth,
        pay_auth=pay_auth,
        settled_at=existing.settled_at if existing else None,
        settled_by=existing.settled_by if existing else None,
    )
    if existing is None or _differs(existing, draft):
        draft.settled_at = now
        draft.settled_by = signer.name
    return draft


def carry_forward(records: Sequence, drafts: Sequence[SettlementDraft], requests: Sequence) -> List[SettlementDraft]:
    """
    Re-derive ``remaining_hours`` of every month after a rewritten one, in
    order, so the stored chain agrees with the new values. Base, pay and
    their signatures on those months are left untouched.
    """
    current = {(r.user_id, r.year, r.month): r for r in records}
    current.update({d.key: d for d in drafts})
    earliest: Dict[str, Tuple[int, int]] = {}
    for d in drafts:
        earliest[d.user_id] = min(earliest.get(d.user_id, (d.year, d.month)), (d.year, d.month))

    rederived = []
    for user_id, start in earliest.items():
        later = sorted(
            (r for key, r in current.items() if key[0] == user_id and (key[1], key[2]) > start),
            key=lambda r: (r.year, r.month)
        )
        for record in later:
            remaining = remaining_balance(
                live_balance(current.values(), user_id, record.year, record.month),
                float(record.actual_hours),
                float(record.paid_hours),
                monthly_compensatory_hours(requests, user_id, record.year, record.month),
            )
            if round(float(record.remaining_hours), 2) == remaining:
                continue
            draft = SettlementDraft(
                id=record.id,
                user_id=user_id,
                year=record.year,
                month=record.month,
                applied_hours=float(record.applied_hours),
                actual_hours=float(record.actual_hours),
                paid_hours=float(record.paid_hours),
                remaining_hours=remaining,
                base_auth=record.base_auth,
                pay_auth=record.pay_auth,
                settled_at=record.settled_at,
                settled_by=record.settled_by,
            )
            current[draft.key] = draft
            rederived.append(draft)
    return rederived

def apply_settlement(
    action: SettlementAction,
    records: Sequence,
    requests: Sequence,
    signer: Signer,
    now: datetime,
    policy: Optional[str] = None,
) -> SettlementOutcome:
    """Compute the records an authorized settlement action produces."""
    for user_id, paid in action.pay_inputs.items():
        if paid < 0:
            raise ValidationFailure(
                "Paid hours cannot be negative.",
                details={"user_id": user_id, "paid_hours": paid}
            )

    drafts = []
    violations = []
    for user_id in action.target_user_ids():
        applied = monthly_applied_hours(requests, user_id, action.year, action.month)
        new_base = action.base_for(user_id)
        if new_base is not None:
            violation = check_base_range(user_id, action.year, action.month, new_base, applied)
            if violation:
                violations.append(violation)
        drafts.append(settle_user(
            find_record(records, user_id, action.year, action.month),
            user_id,
            action.year,
            action.month,
            new_base=new_base,
            new_paid=action.pay_for(user_id),
            applied=applied,
            compensatory=monthly_compensatory_hours(requests, user_id, action.year, action.month),
            live=live_balance(records, user_id, action.year, action.month),
            signer=signer,
            now=now,
        ))

    enforce_base_range(violations, policy)
    drafts += carry_forward(records, drafts, requests)
    return SettlementOutcome(drafts=drafts, violations=violations)


# ---------------------------------------------------------------------------
# Detail review
# ---------------------------------------------------------------------------

def review_requests(requests: Iterable, year: int, month: int) -> List:
    """Approved overtime requests filed for the month, oldest first."""
    relevant = [
        r for r in requests
        if r.type == LeaveType.OVERTIME and r.status == RequestStatus.APPROVED
        and in_month(r.start_date, year, month)
    ]
    return sorted(relevant, key=lambda r: (to_date(r.start_date), r.id))


def initial_edit(request) -> DetailEdit:
    """The current correction of a request, or its submitted span with no hours yet."""
    current = effective_span(request)
    span = current.span
    return DetailEdit(
        start_date=span.start_date,
        end_date=span.end_date,
        start_time=span.start_time or MIDNIGHT,
        end_time=span.end_time or MIDNIGHT,
        duration=current.duration if isinstance(current, CorrectedSpan) else 0.0,
    )


def worksheet_rows(requests: Iterable, year: int, month: int) -> List[dict]:
    """Detail-review rows: submitted hours next to the current correction."""
    rows = []
    for req in review_requests(requests, year, month):
        current = effective_span(req)
        rows.append({
            "request": req,
            "applied_hours": duration_hours(span_of(req)),
            "edit": initial_edit(req),
            "verified": isinstance(current, CorrectedSpan) and current.verified,
        })
    return rows


def _approval_log(edit: DetailEdit, duration: float, signer: Signer, now: datetime) -> dict:
    return {
        "approver_id": signer.id,
        "approver_name": signer.name,
        "action": LogAction.UPDATE.value,
        "timestamp": now.isoformat(),
        "comment": (
            f"Overtime approved: actual period {to_date(edit.start_date).isoformat()} "
            f"{edit.start_time}~{edit.end_time}, approved hours: {duration}"
        ),
    }


def apply_detail_review(
    year: int,
    month: int,
    edits: Mapping[str, DetailEdit],
    verified_ids: Iterable[str],
    records: Sequence,
    requests: Sequence,
    signer: Signer,
    now: datetime,
    policy: Optional[str] = None,
) -> DetailReviewOutcome:
    """
    Write per-request corrections and re-base each affected user's month on
    the sum of corrected durations. Verified corrections get an UPDATE log
    entry; request status never changes.
    """
    relevant = review_requests(requests, year, month)
    relevant_ids = {r.id for r in relevant}
    verified_ids = set(verified_ids)
    unknown = sorted((set(edits) | verified_ids) - relevant_ids)
    if unknown:
        raise ValidationFailure(
            f"Requests are not approved overtime for {year}-{month:02d}.",
            details={"request_ids": unknown, "year": year, "month": month}
        )

    corrections = []
    totals: Dict[str, float] = {}
    for req in relevant:
        edit = edits.get(req.id) or initial_edit(req)
        duration = edit.duration
        if duration is None:
            duration = row_hours(edit.start_date, edit.end_date, edit.start_time, edit.end_time)
        verified = req.id in verified_ids
        corrections.append(RequestCorrection(
            request_id=req.id,
            user_id=req.user_id,
            actual_start_date=to_date(edit.start_date),
            actual_end_date=to_date(edit.end_date),
            actual_start_time=edit.start_time or MIDNIGHT,
            actual_end_time=edit.end_time or MIDNIGHT,
            actual_duration=float(duration),
            is_verified=verified,
            log_entry=_approval_log(edit, duration, signer, now) if verified else None,
        ))
        totals[req.user_id] = totals.get(req.user_id, 0.0) + float(duration)

    drafts = []
    violations = []
    for user_id, total in totals.items():
        total = round(total, 2)
        applied = monthly_applied_hours(requests, user_id, year, month)
        violation = check_base_range(user_id, year, month, total, applied)
        if violation:
            violations.append(violation)
        drafts.append(settle_user(
            find_record(records, user_id, year, month),
            user_id,
            year,
            month,
            new_base=total,
            new_paid=None,
            applied=applied,
            compensatory=monthly_compensatory_hours(requests, user_id, year, month),
            live=live_balance(records, user_id, year, month),
            signer=signer,
            now=now,
        ))

    enforce_base_range(violations, policy)
    drafts += carry_forward(records, drafts, requests)
    return DetailReviewOutcome(corrections=corrections, drafts=drafts, violations=violations)


# ---------------------------------------------------------------------------
# Monthly sheet
# ---------------------------------------------------------------------------

def settlement_sheet(users: Iterable, records: Sequence, requests: Sequence, year: int, month: int) -> List[dict]:
    """Per-user view of a settlement month, projected from stored values."""
    rows = []
    for user in sorted(users, key=lambda u: u.employee_id):
        record = find_record(records, user.id, year, month)
        live = live_balance(records, user.id, year, month)
        applied = monthly_applied_hours(requests, user.id, year, month)
        compensatory = monthly_compensatory_hours(requests, user.id, year, month)
        base = float(record.actual_hours) if record else 0.0
        paid = float(record.paid_hours) if record else 0.0
        rows.append({
            "user_id": user.id,
            "employee_id": user.employee_id,
            "name": user.name,
            "department": user.department,
            "live_balance": live,
            "applied_hours": applied,
            "compensatory_hours": compensatory,
            "actual_hours": base,
            "paid_hours": paid,
            "remaining_hours": remaining_balance(live, base, paid, compensatory),
            "base_auth": record.base_auth if record else None,
            "pay_auth": record.pay_auth if record else None,
            "settled": record is not None,
            "base_out_of_range": record is not None and check_base_range(user.id, year, month, base, applied) is not None,
        })
    return rows
