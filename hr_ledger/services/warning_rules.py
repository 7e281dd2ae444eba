"""
Warning Evaluator

Counts how often a user has taken a category of leave and fires every rule
whose threshold is reached. Whole-day requests count their inclusive day
span; partial-day requests count 0.5 whatever their length.
"""
from dataclasses import dataclass, asdict
from typing import Iterable, List

from hr_ledger.models.leave_request import RequestStatus
from hr_ledger.services.duration import day_count

PARTIAL_DAY_WEIGHT = 0.5


@dataclass(frozen=True)
class ActiveWarning:
    rule_id: str
    rule_name: str
    message: str
    color: str
    current_value: float

    def to_dict(self) -> dict:
        return asdict(self)


def incidence_count(requests: Iterable, user_id: str, category: str) -> float:
    count = 0.0
    for req in requests:
        if req.user_id != user_id or req.status != RequestStatus.APPROVED or req.type != category:
            continue
        if req.is_partial_day:
            count += PARTIAL_DAY_WEIGHT
        else:
            count += day_count(req.start_date, req.end_date)
    return count


def evaluate_warnings(user_id: str, rules: Iterable, requests: Iterable) -> List[ActiveWarning]:
    requests = list(requests)
    warnings = []
    for rule in rules:
        count = incidence_count(requests, user_id, rule.target_type)
        if count >= rule.threshold:
            warnings.append(ActiveWarning(
                rule_id=rule.id,
                rule_name=rule.name,
                message=rule.message,
                color=rule.color,
                current_value=count,
            ))
    return warnings
