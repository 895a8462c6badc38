"""
Tests for admin staff management.
"""

import pytest

from rentaldesk.app.core.config import settings
from rentaldesk.app.models.enums import UserRole
from conftest import create_user, login, auth_headers, booking_payload


NEW_WORKER = {
    "username": "counter1",
    "password": "counter123",
    "role": "worker",
    "full_name": "Counter One",
    "email": "counter1@test.com",
    "phone": "9000011111",
}


@pytest.mark.asyncio
async def test_create_worker_with_default_permissions(client, admin_headers):
    response = await client.post("/api/users", json=NEW_WORKER, headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["role"] == "worker"
    assert data["status"] == "active"
    assert "bookings.create" in data["permissions"]
    assert "bookings.delete" not in data["permissions"]

    # The new account can log in straight away
    token = await login(client, "counter1", "counter123")
    response = await client.get("/api/auth/me", headers=auth_headers(token))
    assert response.json()["username"] == "counter1"


@pytest.mark.asyncio
async def test_create_worker_with_explicit_permissions(client, admin_headers):
    response = await client.post(
        "/api/users", json={**NEW_WORKER, "permissions": ["bookings.view", "reports.view"]}, headers=admin_headers
    )
    assert response.status_code == 201
    assert sorted(response.json()["permissions"]) == ["bookings.view", "reports.view"]


@pytest.mark.asyncio
async def test_duplicate_username_conflicts(client, admin_headers):
    await client.post("/api/users", json=NEW_WORKER, headers=admin_headers)

    response = await client.post(
        "/api/users", json={**NEW_WORKER, "email": "other@test.com"}, headers=admin_headers
    )
    assert response.status_code == 409
    assert response.json()["message"] == "Username already exists"

    response = await client.post(
        "/api/users", json={**NEW_WORKER, "username": "counter2"}, headers=admin_headers
    )
    assert response.status_code == 409
    assert response.json()["message"] == "Email already exists"


@pytest.mark.asyncio
async def test_worker_cannot_manage_users(client, worker_headers):
    response = await client.get("/api/users", headers=worker_headers)
    assert response.status_code == 403

    response = await client.post("/api/users", json=NEW_WORKER, headers=worker_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_users(client, admin_headers, worker_user):
    response = await client.get("/api/users", params={"sort": "username", "order": "asc"}, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [u["username"] for u in data["users"]] == ["admin", "worker"]


@pytest.mark.asyncio
async def test_update_user_permissions_apply_immediately(client, admin_headers, worker_user, worker_headers):
    response = await client.get("/api/reports", headers=worker_headers)
    assert response.status_code == 403

    response = await client.put(
        f"/api/users/{worker_user.id}",
        json={"permissions": ["reports.view", "dashboard.stats"]},
        headers=admin_headers,
    )
    assert response.status_code == 200

    # Same token, refreshed permissions
    response = await client.get("/api/reports", headers=worker_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_deactivating_user_revokes_sessions(client, admin_headers, worker_user, worker_headers):
    response = await client.put(
        f"/api/users/{worker_user.id}", json={"status": "inactive"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "inactive"

    response = await client.get("/api/auth/me", headers=worker_headers)
    assert response.status_code == 401

    response = await client.post("/api/auth/login", json={"username": "worker", "password": "worker123"})
    assert response.status_code == 403

    # Reactivation allows a fresh login
    await client.put(f"/api/users/{worker_user.id}", json={"status": "active"}, headers=admin_headers)
    token = await login(client, "worker", "worker123")
    response = await client.get("/api/auth/me", headers=auth_headers(token))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_admin_cannot_demote_or_deactivate_self(client, admin_headers, admin_user):
    response = await client.put(f"/api/users/{admin_user.id}", json={"role": "worker"}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.put(f"/api/users/{admin_user.id}", json={"status": "inactive"}, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_empty_update_rejected(client, admin_headers, worker_user):
    response = await client.put(f"/api/users/{worker_user.id}", json={}, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_password_change(client, admin_headers, worker_user):
    response = await client.put(
        f"/api/users/{worker_user.id}", json={"password": "newpass123"}, headers=admin_headers
    )
    assert response.status_code == 200

    response = await client.post("/api/auth/login", json={"username": "worker", "password": "worker123"})
    assert response.status_code == 401
    await login(client, "worker", "newpass123")


@pytest.mark.asyncio
async def test_delete_user_rules(client, admin_headers, admin_user, worker_user, db_session):
    protected = await create_user(
        db_session, "owner", "owner123", UserRole.ADMIN, email=settings.protected_admin_email
    )

    response = await client.delete(f"/api/users/{protected.id}", headers=admin_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/users/{admin_user.id}", headers=admin_headers)
    assert response.status_code == 400

    response = await client.delete(f"/api/users/{worker_user.id}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/users/{worker_user.id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_deleted_worker_bookings_keep_history(client, admin_headers, worker_user, worker_headers, vehicle):
    response = await client.post("/api/bookings", json=booking_payload(vehicle["id"]), headers=worker_headers)
    booking_pk = response.json()["booking"]["id"]

    response = await client.delete(f"/api/users/{worker_user.id}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/bookings/{booking_pk}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["worker_id"] is None
