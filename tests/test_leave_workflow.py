import pytest
from datetime import date

YEAR = date.today().year


def _submit(client, user, type="ANNUAL", start=None, end=None, **extra):
    start = start or date(YEAR, 6, 3)
    payload = {
        "user_id": user.id,
        "type": type,
        "start_date": start.isoformat(),
        "end_date": (end or start).isoformat(),
        "reason": "Family trip",
    }
    payload.update(extra)
    return client.post("/api/leave/requests", json=payload)

def _decide(client, req_id, approve=True, name="Manager"):
    return client.post(
        f"/api/leave/requests/{req_id}/decision",
        json={"approve": approve, "approver_name": name, "approver_id": name.lower()}
    )

def test_submit_starts_workflow(client, make_user):
    user = make_user()
    response = _submit(client, user, end=date(YEAR, 6, 4))
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "IN_PROCESS"
    assert data["current_step"] == 1
    assert data["total_steps"] == 2
    assert data["logs"][0]["action"] == "SUBMIT"
    assert data["user_name"] == "Alice"

def test_approval_progresses_through_steps(client, make_user):
    user = make_user()
    req_id = _submit(client, user).json()["id"]

    first = _decide(client, req_id, name="Manager").json()
    assert first["status"] == "IN_PROCESS"
    assert first["current_step"] == 2

    second = _decide(client, req_id, name="HR").json()
    assert second["status"] == "APPROVED"
    assert second["step_approved_by"] == ["manager", "hr"]
    assert [log["action"] for log in second["logs"]] == ["SUBMIT", "APPROVE", "APPROVE"]

def test_title_rule_caps_steps(client, make_user):
    user = make_user(job_title="Manager")
    req_id = _submit(client, user).json()["id"]
    assert _decide(client, req_id).json()["status"] == "APPROVED"

def test_rejected_request_cannot_be_approved(client, make_user):
    user = make_user()
    req_id = _submit(client, user).json()["id"]
    assert _decide(client, req_id, approve=False).json()["status"] == "REJECTED"
    response = _decide(client, req_id)
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "INVALID_TRANSITION"

def test_overlap_is_rejected(client, make_user):
    user = make_user()
    _submit(client, user, start=date(YEAR, 6, 3), end=date(YEAR, 6, 5))
    response = _submit(client, user, type="PERSONAL", start=date(YEAR, 6, 5))
    assert response.status_code == 409
    error = response.json()["errors"][0]
    assert error["code"] == "OVERLAP_CONFLICT"
    assert error["details"]["conflicting_type"] == "ANNUAL"

def test_quota_exceeded_is_rejected(client, make_user):
    user = make_user(annual_days=2)
    response = _submit(client, user, start=date(YEAR, 6, 3), end=date(YEAR, 6, 5))
    assert response.status_code == 400
    error = response.json()["errors"][0]
    assert error["code"] == "QUOTA_EXCEEDED"
    assert error["details"]["remaining"] == 2

def test_pending_requests_reserve_quota(client, make_user):
    user = make_user(annual_days=3)
    _submit(client, user, start=date(YEAR, 6, 3), end=date(YEAR, 6, 4))
    response = client.get(f"/api/leave/quota/{user.id}", params={"category": "ANNUAL", "year": YEAR})
    assert response.json() == {
        "category": "ANNUAL", "year": YEAR, "entitlement": 3.0,
        "used": 0.0, "pending": 2.0, "remaining": 1.0,
    }
    assert _submit(client, user, start=date(YEAR, 7, 1), end=date(YEAR, 7, 2)).status_code == 400

def test_edit_restarts_workflow_and_excludes_itself(client, make_user):
    user = make_user(annual_days=3)
    req_id = _submit(client, user, start=date(YEAR, 6, 3), end=date(YEAR, 6, 5)).json()["id"]
    _decide(client, req_id)

    response = client.put(f"/api/leave/requests/{req_id}", json={
        "user_id": user.id, "type": "ANNUAL",
        "start_date": date(YEAR, 6, 4).isoformat(), "end_date": date(YEAR, 6, 6).isoformat(),
    })
    assert response.status_code == 200
    data = response.json()
    assert data["current_step"] == 1
    assert data["step_approved_by"] == []
    assert data["logs"][-1]["action"] == "UPDATE"

def test_approved_request_cannot_be_edited_or_deleted(client, make_user):
    user = make_user(job_title="Manager")
    req_id = _submit(client, user).json()["id"]
    _decide(client, req_id)
    edit = client.put(f"/api/leave/requests/{req_id}", json={
        "user_id": user.id, "type": "ANNUAL",
        "start_date": date(YEAR, 6, 10).isoformat(), "end_date": date(YEAR, 6, 10).isoformat(),
    })
    assert edit.status_code == 409
    assert client.delete(f"/api/leave/requests/{req_id}").status_code == 409

def test_cancel_frees_the_dates(client, make_user):
    user = make_user()
    req_id = _submit(client, user).json()["id"]
    cancelled = client.post(f"/api/leave/requests/{req_id}/cancel", json={"actor_name": "Alice"})
    assert cancelled.json()["status"] == "CANCELLED"
    assert client.post(f"/api/leave/requests/{req_id}/cancel", json={"actor_name": "Alice"}).status_code == 409
    assert _submit(client, user).status_code == 200

def test_delete_pending_request(client, make_user):
    user = make_user()
    req_id = _submit(client, user).json()["id"]
    assert client.delete(f"/api/leave/requests/{req_id}").json() == {"success": True}
    response = client.get(f"/api/leave/requests/{req_id}")
    assert response.status_code == 404
    assert response.json()["errors"][0]["code"] == "NOT_FOUND"

def test_overlap_check_endpoint(client, make_user):
    user = make_user()
    req_id = _submit(client, user, start=date(YEAR, 6, 3)).json()["id"]
    payload = {"user_id": user.id, "start_date": date(YEAR, 6, 3).isoformat(), "end_date": date(YEAR, 6, 3).isoformat()}
    found = client.post("/api/leave/overlap-check", json=payload).json()
    assert found["overlap"] is True
    assert found["conflicting_request"]["id"] == req_id
    assert client.post("/api/leave/overlap-check", json={**payload, "exclude_id": req_id}).json()["overlap"] is False

def test_partial_day_and_attachments(client, make_user):
    user = make_user()
    response = _submit(
        client, user, type="PERSONAL", is_partial_day=True, start_time="09:00", end_time="12:00",
        attachment_urls=["https://files.example.com/a.pdf", "https://files.example.com/b.pdf"]
    )
    data = response.json()
    assert data["start_time"] == "09:00"
    assert data["attachment_url"] == "https://files.example.com/a.pdf"

def test_invalid_spans(client, make_user):
    user = make_user()
    backwards = _submit(client, user, start=date(YEAR, 6, 5), end=date(YEAR, 6, 3))
    assert backwards.status_code == 400
    bad_clock = _submit(client, user, is_partial_day=True, start_time="9am", end_time="12:00")
    assert bad_clock.status_code == 422
    assert bad_clock.json()["success"] is False

def test_unknown_category_is_rejected(client, make_user):
    user = make_user()
    response = _submit(client, user, type="SABBATICAL")
    assert response.status_code == 400
    assert "ANNUAL" in response.json()["errors"][0]["details"]["allowed"]

def test_missing_workflow_is_reported(client):
    user = client.post("/api/users", json={"employee_id": "X1", "name": "Xavier"}).json()
    response = client.post("/api/leave/requests", json={
        "user_id": user["id"], "type": "SICK",
        "start_date": date(YEAR, 6, 3).isoformat(), "end_date": date(YEAR, 6, 3).isoformat(),
    })
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "WORKFLOW_NOT_CONFIGURED"

def test_clock_allows_midnight_only_as_2400(client, make_user):
    user = make_user()
    late = _submit(client, user, type="PERSONAL", is_partial_day=True, start_time="22:00", end_time="24:30")
    assert late.status_code == 422
    assert late.json()["errors"][0]["field"] == "end_time"
    midnight = _submit(client, user, type="PERSONAL", is_partial_day=True, start_time="22:00", end_time="24:00")
    assert midnight.status_code == 200

def test_list_filters_by_user_and_status(client, make_user):
    alice = make_user()
    bob = make_user(name="Bob")
    approved = _submit(client, alice, start=date(YEAR, 6, 3)).json()["id"]
    _decide(client, approved)
    _decide(client, approved, name="HR")
    pending = _submit(client, alice, start=date(YEAR, 6, 10)).json()["id"]
    _submit(client, bob, start=date(YEAR, 6, 3))

    response = client.get("/api/leave/requests", params={"user_id": alice.id, "status": "APPROVED"})
    assert [r["id"] for r in response.json()] == [approved]
    in_process = client.get("/api/leave/requests", params={"user_id": alice.id, "status": "IN_PROCESS"}).json()
    assert [r["id"] for r in in_process] == [pending]
    assert len(client.get("/api/leave/requests", params={"status": "IN_PROCESS"}).json()) == 2
