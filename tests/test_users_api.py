import pytest
from fastapi import status

def test_hr_creates_user(client, hr_user, auth_headers):
    response = client.post(
        "/api/users",
        headers=auth_headers(hr_user),
        json={"id": "emp03", "name": "New Hire", "role": "employee", "password": "Welcome1!", "email": "new@example.com"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "emp03"
    assert "hashed_password" not in data

    login = client.post("/api/auth/login", json={"id": "emp03", "password": "Welcome1!"})
    assert login.status_code == 200

def test_duplicate_user_id(client, hr_user, employee_user, auth_headers):
    response = client.post(
        "/api/users",
        headers=auth_headers(hr_user),
        json={"id": "emp01", "name": "Dup", "role": "employee", "password": "x"},
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["errors"][0]["msg"] == "User ID already exists"

def test_legacy_evaluator_role_is_accepted(client, hr_user, auth_headers):
    response = client.post(
        "/api/users",
        headers=auth_headers(hr_user),
        json={"id": "mgr09", "name": "Old Style", "role": "evaluator", "password": "x"},
    )
    assert response.status_code == 200
    assert response.json()["role"] == "management"

def test_non_hr_cannot_manage_users(client, manager_user, employee_user, auth_headers):
    assert client.get("/api/users", headers=auth_headers(manager_user)).status_code == 403
    response = client.delete("/api/users/emp01", headers=auth_headers(employee_user))
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_update_and_delete_user(client, hr_user, employee_user, auth_headers):
    hr = auth_headers(hr_user)
    response = client.put("/api/users/emp01", headers=hr, json={"department": "Sales"})
    assert response.status_code == 200
    assert response.json()["department"] == "Sales"
    assert response.json()["name"] == "Eva Employee"

    assert client.delete("/api/users/emp01", headers=hr).status_code == 200
    assert client.delete("/api/users/emp01", headers=hr).status_code == 404

def test_list_users_by_role(client, hr_user, manager_user, employee_user, auth_headers):
    response = client.get("/api/users", params={"role": "management"}, headers=auth_headers(hr_user))
    assert [u["id"] for u in response.json()] == ["mgr01"]

def test_assignment_lifecycle(client, hr_user, manager_user, employee_user, other_employee, auth_headers):
    hr = auth_headers(hr_user)
    response = client.post("/api/evaluator-assignments", headers=hr, json={"evaluator_id": "mgr01", "employee_id": "emp01"})
    assert response.status_code == 200
    assignment = response.json()
    assert assignment["assigned_by"] == "hr01"
    assert assignment["is_active"] is True

    response = client.post("/api/evaluator-assignments", headers=hr, json={"evaluator_id": "mgr01", "employee_id": "emp01"})
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["errors"][0]["msg"] == "Assignment already exists"

    by_employee = client.get("/api/evaluator-assignments/employee/emp01", headers=hr).json()
    assert [a["evaluator_id"] for a in by_employee] == ["mgr01"]

    # Managers only see their assigned employees
    employees = client.get("/api/employees", headers=auth_headers(manager_user)).json()
    assert [e["id"] for e in employees] == ["emp01"]
    everyone = client.get("/api/employees", headers=hr).json()
    assert {e["id"] for e in everyone} == {"emp01", "emp02"}

    assert client.delete(f"/api/evaluator-assignments/{assignment['id']}", headers=hr).status_code == 200
    assert client.get("/api/evaluator-assignments", headers=hr).json() == []
    assert client.get("/api/employees", headers=auth_headers(manager_user)).json() == []

    response = client.post("/api/evaluator-assignments", headers=hr, json={"evaluator_id": "mgr01", "employee_id": "emp01"})
    assert response.status_code == 200

def test_assignment_requires_hr(client, manager_user, employee_user, auth_headers):
    response = client.post(
        "/api/evaluator-assignments",
        headers=auth_headers(manager_user),
        json={"evaluator_id": "mgr01", "employee_id": "emp01"},
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

def test_employee_cannot_list_employees(client, employee_user, auth_headers):
    assert client.get("/api/employees", headers=auth_headers(employee_user)).status_code == 403
