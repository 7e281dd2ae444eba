from types import SimpleNamespace

from hr_ledger.services.warning_rules import evaluate_warnings, incidence_count


def _rule(threshold=3, target_type="SICK"):
    return SimpleNamespace(
        id="w1", name="Frequent sick leave", target_type=target_type,
        threshold=threshold, message="Check in with employee", color="red"
    )


def test_partial_days_count_half(leave):
    requests = [
        leave(type="SICK", start="2024-01-08"),
        leave(type="SICK", start="2024-02-05", partial=True, start_time="09:00", end_time="17:00"),
        leave(type="SICK", start="2024-03-04", partial=True, start_time="09:00", end_time="10:00"),
    ]
    assert incidence_count(requests, "u1", "SICK") == 2

def test_rule_fires_at_threshold(leave):
    requests = [
        leave(type="SICK", start="2024-01-08", end="2024-01-09"),
        leave(type="SICK", start="2024-02-05"),
    ]
    warnings = evaluate_warnings("u1", [_rule(3)], requests)
    assert len(warnings) == 1
    assert warnings[0].current_value == 3
    assert warnings[0].color == "red"

def test_rule_below_threshold_is_silent(leave):
    requests = [
        leave(type="SICK", start="2024-01-08", end="2024-01-09"),
        leave(type="SICK", start="2024-02-05", partial=True, start_time="09:00", end_time="12:00"),
    ]
    assert evaluate_warnings("u1", [_rule(3)], requests) == []

def test_only_approved_history_counts(leave):
    requests = [
        leave(type="SICK", start="2024-01-08", end="2024-01-12", status="IN_PROCESS"),
        leave(type="SICK", start="2024-02-05", end="2024-02-09", status="CANCELLED"),
        leave(type="SICK", start="2024-03-04", end="2024-03-08", user_id="u2"),
        leave(type="PERSONAL", start="2024-04-01", end="2024-04-05"),
    ]
    assert evaluate_warnings("u1", [_rule(1)], requests) == []
