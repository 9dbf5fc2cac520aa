import pytest
from datetime import datetime, timedelta, timezone
from fastapi import status

def _check_out(client, headers, minutes=60, **overrides):
    body = {
        "category": "work",
        "destination": "Ministry of Finance",
        "reason": "Submit quarterly report",
        "expected_return_time": (datetime.now(timezone.utc) + timedelta(minutes=minutes)).isoformat(),
    }
    body.update(overrides)
    return client.post("/api/movements/check-out", headers=headers, json=body)

def test_check_out_and_back_in(client, employee_user, auth_headers):
    headers = auth_headers(employee_user)

    response = _check_out(client, headers)
    assert response.status_code == status.HTTP_200_OK
    movement = response.json()
    assert movement["status"] == "OUT_OF_OFFICE"
    assert movement["employee_id"] == "emp01"
    assert movement["employee_name"] == "Eva Employee"
    assert movement["department"] == "Engineering"

    mine = client.get("/api/movements/me", headers=headers).json()
    assert mine["current_status"] == "OUT_OF_OFFICE"
    assert mine["active"]["id"] == movement["id"]
    assert len(mine["history"]) == 1

    response = client.post("/api/movements/check-in", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "ON_TIME"
    assert response.json()["actual_return_timestamp"] is not None

    mine = client.get("/api/movements/me", headers=headers).json()
    assert mine["current_status"] == "IN_OFFICE"
    assert mine["active"] is None

def test_cannot_check_out_twice(client, employee_user, auth_headers):
    headers = auth_headers(employee_user)
    _check_out(client, headers)
    response = _check_out(client, headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["errors"][0]["code"] == "CONFLICT"

def test_check_in_without_check_out(client, employee_user, auth_headers):
    response = client.post("/api/movements/check-in", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["errors"][0]["code"] == "INVALID_STATE"

def test_expected_return_must_be_in_future(client, employee_user, auth_headers):
    response = _check_out(client, auth_headers(employee_user), minutes=-5)
    assert response.status_code == 422
    assert response.json()["errors"][0]["code"] == "VALIDATION_ERROR"

def test_invalid_category(client, employee_user, auth_headers):
    response = _check_out(client, auth_headers(employee_user), category="holiday")
    assert response.status_code == 422

def test_active_board(client, hr_user, manager_user, employee_user, other_employee, auth_headers):
    _check_out(client, auth_headers(employee_user))
    _check_out(client, auth_headers(other_employee))

    for viewer in (hr_user, manager_user):
        response = client.get("/api/movements/active", headers=auth_headers(viewer))
        assert response.status_code == 200
        assert {m["employee_id"] for m in response.json()} == {"emp01", "emp02"}

    response = client.get("/api/movements/active", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_report_filters(client, hr_user, employee_user, other_employee, auth_headers):
    _check_out(client, auth_headers(employee_user))
    _check_out(client, auth_headers(other_employee))
    hr = auth_headers(hr_user)

    response = client.get("/api/movements", params={"department": "Finance"}, headers=hr)
    assert [m["employee_id"] for m in response.json()] == ["emp02"]

    today = datetime.now(timezone.utc).date()
    response = client.get("/api/movements", params={"from_date": (today + timedelta(days=1)).isoformat()}, headers=hr)
    assert response.json() == []

    response = client.get("/api/movements", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_csv_export(client, hr_user, employee_user, auth_headers):
    _check_out(client, auth_headers(employee_user), reason="Line one\nLine two")
    response = client.get("/api/movements/export", headers=auth_headers(hr_user))
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    lines = response.text.strip().split("\n")
    assert lines[0].startswith('"Employee ID","Employee Name"')
    assert len(lines) == 2
    assert '"Line one Line two"' in lines[1]
