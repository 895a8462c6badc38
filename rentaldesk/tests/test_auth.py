"""
Integration tests for the login / session flow.

Covers cookie and bearer sessions, logout revocation and inactive accounts.
"""

import pytest
from sqlalchemy import select

from rentaldesk.app.models.audit_log import AuditLog
from rentaldesk.app.models.enums import UserRole, UserStatus
from rentaldesk.app.services.audit import AuditAction
from conftest import ADMIN_PASSWORD, create_user, auth_headers, login


@pytest.mark.asyncio
async def test_login_returns_token_and_sets_cookie(client, admin_user):
    response = await client.post("/api/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert response.status_code == 200

    data = response.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["username"] == "admin"
    assert data["user"]["role"] == "admin"
    assert "hashed_password" not in data["user"]

    set_cookie = response.headers.get("set-cookie", "")
    assert "token=" in set_cookie
    assert "httponly" in set_cookie.lower()


@pytest.mark.asyncio
async def test_login_with_email(client, admin_user):
    response = await client.post("/api/auth/login", json={"email": "admin@test.com", "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "admin@test.com"


@pytest.mark.asyncio
async def test_username_match_preferred_over_email(client, admin_user, db_session):
    await create_user(db_session, "admin@test.com", "other123", UserRole.WORKER, email="other@test.com")

    response = await client.post("/api/auth/login", json={"username": "admin@test.com", "password": "other123"})
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "other@test.com"

    response = await client.post("/api/auth/login", json={"username": "admin@test.com", "password": ADMIN_PASSWORD})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_wrong_password_is_rejected_and_audited(client, admin_user, db_session):
    response = await client.post("/api/auth/login", json={"username": "admin", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_UNAUTHORIZED"

    result = await db_session.execute(select(AuditLog).where(AuditLog.action == AuditAction.LOGIN_FAILED))
    assert result.scalars().first() is not None


@pytest.mark.asyncio
async def test_login_unknown_user(client):
    response = await client.post("/api/auth/login", json={"username": "ghost", "password": "whatever"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_cannot_login(client, db_session):
    await create_user(db_session, "sleeper", "sleeper123", UserRole.WORKER, status=UserStatus.INACTIVE)

    response = await client.post("/api/auth/login", json={"username": "sleeper", "password": "sleeper123"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_me_with_cookie_session(client, admin_user):
    await login(client, "admin", ADMIN_PASSWORD)

    # No Authorization header: the cookie stored by the client authenticates
    response = await client.get("/api/auth/me")
    assert response.status_code == 200
    assert response.json()["username"] == "admin"


@pytest.mark.asyncio
async def test_me_requires_authentication(client):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_UNAUTHORIZED"


@pytest.mark.asyncio
async def test_invalid_token_rejected(client):
    response = await client.get("/api/auth/me", headers=auth_headers("not-a-jwt"))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_check_reports_session_state(client, admin_user):
    response = await client.get("/api/auth/check")
    assert response.status_code == 200
    assert response.json() == {"authenticated": False, "user": None}

    token = await login(client, "admin", ADMIN_PASSWORD)
    response = await client.get("/api/auth/check", headers=auth_headers(token))
    assert response.status_code == 200
    assert response.json()["authenticated"] is True
    assert response.json()["user"]["username"] == "admin"


@pytest.mark.asyncio
async def test_logout_revokes_token(client, admin_user):
    token = await login(client, "admin", ADMIN_PASSWORD)
    headers = auth_headers(token)

    response = await client.post("/api/auth/logout", headers=headers)
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401

    # A fresh login still works
    new_token = await login(client, "admin", ADMIN_PASSWORD)
    assert new_token != token
    response = await client.get("/api/auth/me", headers=auth_headers(new_token))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_worker_permissions_exposed_on_me(client, worker_headers):
    response = await client.get("/api/auth/me", headers=worker_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "worker"
    assert "bookings.create" in data["permissions"]
    assert "reports.view" not in data["permissions"]
