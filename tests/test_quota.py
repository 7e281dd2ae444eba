import pytest
from datetime import date
from types import SimpleNamespace

from hr_ledger.core.exceptions import QuotaExceeded
from hr_ledger.services.duration import Span
from hr_ledger.services.quota import check_quota, quota_info


def _user(annual=None, overtime=0.0):
    return SimpleNamespace(
        id="u1",
        overtime_quota=overtime,
        annual_entitlement=lambda year: (annual or {}).get(year, 0.0),
    )


def test_used_and_pending_are_split_by_status(leave):
    user = _user({2024: 14})
    requests = [
        leave(start="2024-03-04", end="2024-03-06", status="APPROVED"),
        leave(start="2024-04-01", status="IN_PROCESS"),
        leave(start="2024-05-01", status="REJECTED"),
        leave(start="2024-05-02", status="CANCELLED"),
    ]
    info = quota_info(user, requests, "ANNUAL", 2024)
    assert info.used == 3
    assert info.pending == 1
    assert info.remaining == 10

def test_annual_quota_is_scoped_to_year(leave):
    user = _user({2024: 14, 2025: 15})
    requests = [leave(start="2024-12-30", end="2024-12-31")]
    assert quota_info(user, requests, "ANNUAL", 2025).remaining == 15

def test_overtime_balance_is_not_year_scoped(leave):
    user = _user(overtime=2.0)
    requests = [leave(type="COMPENSATORY", start="2023-12-01", status="APPROVED")]
    assert quota_info(user, requests, "COMPENSATORY", 2024).used == 1

def test_edited_request_is_excluded(leave):
    user = _user({2024: 2})
    existing = leave(start="2024-03-04", end="2024-03-05", status="IN_PROCESS")
    span = Span(date(2024, 3, 4), date(2024, 3, 5))
    with pytest.raises(QuotaExceeded):
        check_quota(user, [existing], "ANNUAL", span)
    assert check_quota(user, [existing], "ANNUAL", span, exclude_id=existing.id).remaining == 2

def test_remaining_never_negative(leave):
    user = _user({2024: 1})
    requests = [leave(start="2024-03-04", end="2024-03-08")]
    assert quota_info(user, requests, "ANNUAL", 2024).remaining == 0

def test_exceeded_error_carries_figures(leave):
    user = _user(overtime=0.5)
    span = Span(date(2024, 3, 4), date(2024, 3, 4))
    with pytest.raises(QuotaExceeded) as exc:
        check_quota(user, [], "COMPENSATORY", span)
    assert exc.value.details["requested"] == 1
    assert exc.value.details["remaining"] == 0.5

def test_half_day_fits_half_day_balance():
    user = _user(overtime=0.5)
    span = Span(date(2024, 3, 4), date(2024, 3, 4), True, "09:00", "13:00")
    assert check_quota(user, [], "COMPENSATORY", span).remaining == 0.5

def test_uncapped_categories_are_not_enforced(leave):
    user = _user()
    span = Span(date(2024, 3, 4), date(2024, 3, 20))
    assert check_quota(user, [], "SICK", span) is None
    assert check_quota(user, [], "OVERTIME", span) is None
    info = quota_info(user, [leave(type="SICK")], "SICK", 2024)
    assert info.entitlement is None
    assert info.remaining is None
    assert info.used == 1
