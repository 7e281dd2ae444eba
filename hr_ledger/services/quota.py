"""
Quota Accountant

remaining = max(0, entitlement - (used + pending)), in days.

- used: APPROVED requests of the category
- pending: IN_PROCESS requests of the category, minus the request being edited
- annual leave is scoped to the period's year; the overtime balance is not

Read-only over already-fetched data, so it is safe for live form feedback.
"""
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Iterable, Optional

from hr_ledger.core.exceptions import QuotaExceeded
from hr_ledger.models.leave_request import LeaveType, RequestStatus
from hr_ledger.services.duration import Span, duration_days, span_of, to_date


@dataclass(frozen=True)
class QuotaInfo:
    category: str
    year: int
    entitlement: Optional[float]
    used: float
    pending: float
    remaining: Optional[float]

    def to_dict(self) -> dict:
        return asdict(self)


def _annual_entitlement(user, year: int) -> float:
    return user.annual_entitlement(year)


def _overtime_balance(user, year: int) -> float:
    return user.overtime_quota


# Categories without an entry carry no quota
ENTITLEMENT_SOURCES: Dict[str, Callable] = {
    LeaveType.ANNUAL.value: _annual_entitlement,
    LeaveType.COMPENSATORY.value: _overtime_balance,
    LeaveType.OVERTIME.value: _overtime_balance,
}
YEAR_SCOPED = {LeaveType.ANNUAL.value}
# Overtime accrues balance rather than consuming it, so it is never blocked
ENFORCED_CATEGORIES = {LeaveType.ANNUAL.value, LeaveType.COMPENSATORY.value}


def quota_info(
    user,
    requests: Iterable,
    category: str,
    year: int,
    exclude_id: Optional[str] = None
) -> QuotaInfo:
    used = 0.0
    pending = 0.0
    for req in requests:
        if req.user_id != user.id or req.type != category:
            continue
        if exclude_id is not None and req.id == exclude_id:
            continue
        if category in YEAR_SCOPED and to_date(req.start_date).year != year:
            continue
        days = duration_days(span_of(req))
        if req.status == RequestStatus.APPROVED:
            used += days
        elif req.status == RequestStatus.IN_PROCESS:
            pending += days

    source = ENTITLEMENT_SOURCES.get(category)
    entitlement = remaining = None
    if source is not None:
        entitlement = round(float(source(user, year)), 3)
        remaining = round(max(0.0, entitlement - (used + pending)), 3)

    return QuotaInfo(
        category=category,
        year=year,
        entitlement=entitlement,
        used=round(used, 3),
        pending=round(pending, 3),
        remaining=remaining,
    )


def check_quota(
    user,
    requests: Iterable,
    category: str,
    span: Span,
    exclude_id: Optional[str] = None
) -> Optional[QuotaInfo]:
    """Raise QuotaExceeded if the span does not fit the remaining quota."""
    if category not in ENFORCED_CATEGORIES:
        return None
    info = quota_info(user, requests, category, span.start_date.year, exclude_id=exclude_id)
    requested = round(duration_days(span), 3)
    if requested > info.remaining:
        raise QuotaExceeded(
            f"Insufficient {category} quota: {info.remaining} day(s) remaining, {requested} requested.",
            details={
                "category": category,
                "year": info.year,
                "requested": requested,
                "remaining": info.remaining,
                "entitlement": info.entitlement,
                "used": info.used,
                "pending": info.pending,
            }
        )
    return info
