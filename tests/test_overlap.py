import pytest

from hr_ledger.core.exceptions import OverlapConflict
from hr_ledger.services.overlap import ensure_no_overlap, find_overlap


@pytest.fixture
def existing(leave):
    return leave(start="2024-03-10", end="2024-03-12", status="IN_PROCESS")


@pytest.mark.parametrize("start,end,expected", [
    ("2024-03-08", "2024-03-09", False),
    ("2024-03-08", "2024-03-10", True),
    ("2024-03-12", "2024-03-14", True),
    ("2024-03-13", "2024-03-14", False),
    ("2024-03-11", "2024-03-11", True),
    ("2024-03-01", "2024-03-31", True),
])
def test_boundary_days_are_inclusive(existing, start, end, expected):
    assert find_overlap([existing], "u1", start, end).overlap is expected

def test_terminal_requests_do_not_block(leave):
    requests = [
        leave(start="2024-03-10", status="REJECTED"),
        leave(start="2024-03-10", status="CANCELLED"),
    ]
    assert not find_overlap(requests, "u1", "2024-03-10", "2024-03-10").overlap

def test_approved_requests_block(leave):
    approved = leave(start="2024-03-10", status="APPROVED")
    result = find_overlap([approved], "u1", "2024-03-10", "2024-03-10")
    assert result.overlap
    assert result.conflicting_request is approved

def test_other_users_are_ignored(leave):
    other = leave(user_id="u2", start="2024-03-10")
    assert not find_overlap([other], "u1", "2024-03-10", "2024-03-10").overlap

def test_request_being_edited_is_excluded(existing):
    assert not find_overlap([existing], "u1", "2024-03-10", "2024-03-12", exclude_id=existing.id).overlap

def test_partial_days_on_same_date_conflict(leave):
    morning = leave(start="2024-03-10", partial=True, start_time="09:00", end_time="12:00")
    with pytest.raises(OverlapConflict) as exc:
        ensure_no_overlap([morning], "u1", "2024-03-10", "2024-03-10")
    assert exc.value.status_code == 409
    assert exc.value.details["conflicting_request_id"] == morning.id
