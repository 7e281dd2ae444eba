"""
Overlap Detector

Two spans conflict when their inclusive date ranges intersect. Clock times are
ignored, so two partial-day requests on the same date always conflict.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from hr_ledger.core.exceptions import OverlapConflict
from hr_ledger.models.leave_request import TERMINAL_STATUSES
from hr_ledger.services.duration import to_date


@dataclass(frozen=True)
class OverlapResult:
    overlap: bool
    conflicting_request: Optional[object] = None


def find_overlap(
    requests: Iterable,
    user_id: str,
    start,
    end,
    exclude_id: Optional[str] = None
) -> OverlapResult:
    start, end = to_date(start), to_date(end)
    for other in requests:
        if other.user_id != user_id or other.id == exclude_id:
            continue
        if other.status in TERMINAL_STATUSES:
            continue
        if start <= to_date(other.end_date) and end >= to_date(other.start_date):
            return OverlapResult(True, other)
    return OverlapResult(False, None)


def ensure_no_overlap(
    requests: Iterable,
    user_id: str,
    start,
    end,
    exclude_id: Optional[str] = None
) -> None:
    result = find_overlap(requests, user_id, start, end, exclude_id)
    if result.overlap:
        other = result.conflicting_request
        raise OverlapConflict(
            f"Time overlap: an existing {other.type} request already covers this period.",
            details={
                "start_date": to_date(start).isoformat(),
                "end_date": to_date(end).isoformat(),
                "conflicting_request_id": other.id,
                "conflicting_type": other.type,
                "conflicting_start_date": to_date(other.start_date).isoformat(),
                "conflicting_end_date": to_date(other.end_date).isoformat(),
            }
        )
