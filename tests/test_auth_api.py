import pytest
from datetime import timedelta
from fastapi import status
from app.models.user import User
from app.services import auth as auth_service

PASSWORD = "Password123!"

def test_login_success(client, hr_user):
    """Test successful login with valid credentials."""
    response = client.post("/api/auth/login", json={"id": "hr01", "password": PASSWORD})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["id"] == "hr01"
    assert data["user"]["role"] == "hr"
    assert "hashed_password" not in data["user"]

def test_login_invalid_credentials(client, hr_user):
    """Test login failure with wrong password."""
    response = client.post("/api/auth/login", json={"id": "hr01", "password": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["code"] == "AUTH_FAILED"

def test_login_unknown_user(client):
    response = client.post("/api/auth/login", json={"id": "nobody", "password": "x"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

def test_login_upgrades_legacy_plaintext_password(client, db_session):
    """Accounts imported with a plaintext password are rehashed on first login."""
    db_session.add(User(id="legacy01", name="Legacy User", role="employee", hashed_password="secret"))
    db_session.commit()

    response = client.post("/api/auth/login", json={"id": "legacy01", "password": "secret"})
    assert response.status_code == status.HTTP_200_OK

    stored = db_session.get(User, "legacy01")
    db_session.refresh(stored)
    assert stored.hashed_password != "secret"
    assert auth_service.verify_password("secret", stored.hashed_password)

def test_me_returns_token_identity(client, employee_user, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers(employee_user))
    assert response.status_code == 200
    assert response.json()["id"] == "emp01"

def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

def test_expired_token_rejected(client, employee_user):
    token = auth_service.create_access_token(
        {"sub": "emp01", "role": "employee", "type": "access"},
        expires_delta=timedelta(minutes=-1),
    )
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["errors"][0]["msg"] == "TOKEN_EXPIRED"

def test_change_password(client, employee_user, auth_headers):
    headers = auth_headers(employee_user)
    response = client.post(
        "/api/auth/change-password",
        headers=headers,
        json={"current_password": PASSWORD, "new_password": "NewPassword456!"},
    )
    assert response.status_code == 200

    login = client.post("/api/auth/login", json={"id": "emp01", "password": "NewPassword456!"})
    assert login.status_code == 200

def test_change_password_wrong_current(client, employee_user, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        headers=auth_headers(employee_user),
        json={"current_password": "wrong", "new_password": "NewPassword456!"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
