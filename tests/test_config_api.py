import pytest
from datetime import date


def test_create_and_fetch_user(client):
    created = client.post("/api/users", json={
        "employee_id": "E900", "name": "Mona", "gender": "FEMALE", "annual_quota": {"2024": 14}
    })
    assert created.status_code == 200
    user = created.json()
    assert user["overtime_quota"] == 0.0
    assert client.get(f"/api/users/{user['id']}").json()["annual_quota"] == {"2024": 14.0}

def test_duplicate_employee_id(client):
    client.post("/api/users", json={"employee_id": "E901", "name": "Mona"})
    response = client.post("/api/users", json={"employee_id": "E901", "name": "Other"})
    assert response.status_code == 400

def test_annual_quota_update_keeps_other_years(client, make_user):
    user = make_user(annual_days=10, year=2024)
    response = client.put(f"/api/users/{user.id}/annual-quota", json={"year": 2025, "days": 12})
    assert response.json()["annual_quota"] == {"2024": 10.0, "2025": 12.0}

def test_overtime_quota_cannot_be_set_directly(client, make_user):
    user = make_user()
    response = client.put(f"/api/users/{user.id}/annual-quota", json={"year": 2024, "days": 5, "overtime_quota": 99})
    assert response.json()["overtime_quota"] == 0.0

def test_categories_respect_gender(client, make_user):
    client.post("/api/categories", json={"name": "ANNUAL"})
    client.post("/api/categories", json={"name": "MATERNITY", "allowed_gender": "FEMALE_ONLY"})
    client.post("/api/categories", json={"name": "PATERNITY", "allowed_gender": "MALE_ONLY"})
    alice = make_user(name="Alice", gender="FEMALE")
    bob = make_user(name="Bob", gender="MALE")
    assert client.get(f"/api/leave/categories/{alice.id}").json() == ["ANNUAL", "MATERNITY"]
    assert client.get(f"/api/leave/categories/{bob.id}").json() == ["ANNUAL", "PATERNITY"]

    response = client.post("/api/leave/requests", json={
        "user_id": bob.id, "type": "MATERNITY",
        "start_date": date(2024, 6, 3).isoformat(), "end_date": date(2024, 6, 3).isoformat(),
    })
    assert response.status_code == 400

def test_workflow_groups(client):
    created = client.post("/api/workflow-groups", json={
        "name": "Ops", "steps": [{"role": "LEAD"}], "title_rules": [{"job_title": "Lead", "max_level": 1}]
    })
    assert created.status_code == 200
    names = [g["name"] for g in client.get("/api/workflow-groups").json()]
    assert "Ops" in names

def test_warning_rules_fire_on_approved_history(client, make_user, db_session):
    from hr_ledger.models.leave_request import LeaveRequest
    user = make_user()
    rule = client.post("/api/warnings/rules", json={
        "name": "Frequent sick leave", "target_type": "SICK", "threshold": 3,
        "message": "Check in", "color": "red",
    }).json()
    for day in (3, 4):
        db_session.add(LeaveRequest(
            user_id=user.id, type="SICK", start_date=date(2024, 6, day), end_date=date(2024, 6, day),
            is_partial_day=False, status="APPROVED", logs=[],
        ))
    db_session.add(LeaveRequest(
        user_id=user.id, type="SICK", start_date=date(2024, 6, 5), end_date=date(2024, 6, 5),
        is_partial_day=True, start_time="09:00", end_time="12:00", status="APPROVED", logs=[],
    ))
    db_session.commit()
    assert client.get(f"/api/warnings/users/{user.id}").json() == []

    db_session.add(LeaveRequest(
        user_id=user.id, type="SICK", start_date=date(2024, 6, 6), end_date=date(2024, 6, 6),
        is_partial_day=True, status="APPROVED", logs=[],
    ))
    db_session.commit()
    warnings = client.get(f"/api/warnings/users/{user.id}").json()
    assert warnings == [{
        "rule_id": rule["id"], "rule_name": "Frequent sick leave",
        "message": "Check in", "color": "red", "current_value": 3.0,
    }]

    assert client.delete(f"/api/warnings/rules/{rule['id']}").json() == {"success": True}
    assert client.get(f"/api/warnings/users/{user.id}").json() == []
