"""
Balance Synchronizer

Sole writer of ``User.overtime_quota``. The snapshot is the latest settlement
record's ``remaining_hours`` in days, floored at 0. Any other write to
``User._overtime_quota`` is a bug.
"""
from typing import Dict, Iterable, Optional

from hr_ledger.core.config import settings


def latest_record(records: Iterable, user_id: str):
    own = [r for r in records if r.user_id == user_id]
    if not own:
        return None
    return max(own, key=lambda r: (r.year, r.month))


def overtime_snapshot(record, hours_per_day: Optional[float] = None) -> float:
    hours_per_day = hours_per_day or settings.hours_per_day
    return max(0.0, round(float(record.remaining_hours) / hours_per_day, 3))


def synchronize_balances(users: Iterable, records: Iterable, touched_ids: Iterable[str]) -> Dict[str, float]:
    """
    Refresh the snapshot of every touched user from their own records.

    All values are computed before any user is written. Users with no
    settlement record keep their current snapshot.
    """
    users = list(users)
    records = list(records)
    touched = set(touched_ids)

    snapshots: Dict[str, float] = {}
    for user in users:
        if user.id not in touched:
            continue
        latest = latest_record(records, user.id)
        if latest is not None:
            snapshots[user.id] = overtime_snapshot(latest)

    for user in users:
        if user.id in snapshots:
            user._overtime_quota = snapshots[user.id]
    return snapshots
