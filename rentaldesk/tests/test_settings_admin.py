"""
Tests for business settings, admin maintenance endpoints and app wiring.
"""

import pytest
from sqlalchemy import select, func

from rentaldesk.app.models.customer import Customer
from rentaldesk.app.models.user import User
from rentaldesk.app.models.vehicle import Vehicle
from rentaldesk.app.models.enums import Permission, UserRole
from conftest import create_user, auth_headers, login


@pytest.mark.asyncio
async def test_settings_defaults_created_on_first_read(client, worker_headers):
    response = await client.get("/api/settings", headers=worker_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["company_name"] == "Go On Riders"
    assert data["booking_settings"]["max_booking_duration"] == 30
    assert data["notification_settings"]["sms_notifications"] is True


@pytest.mark.asyncio
async def test_settings_update_merges_nested_blocks(client, admin_headers, admin_user):
    response = await client.put("/api/settings", json={
        "company_name": "City Rides",
        "booking_settings": {"late_return_fee": 750},
        "notification_settings": {"sms_notifications": False},
    }, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["company_name"] == "City Rides"
    assert data["booking_settings"]["late_return_fee"] == 750
    assert data["booking_settings"]["min_booking_duration"] == 1
    assert data["notification_settings"]["sms_notifications"] is False
    assert data["notification_settings"]["email_notifications"] is True
    assert data["updated_by"] == admin_user.id

    response = await client.get("/api/settings", headers=admin_headers)
    assert response.json()["booking_settings"]["late_return_fee"] == 750


@pytest.mark.asyncio
async def test_worker_cannot_update_settings(client, worker_headers):
    response = await client.put("/api/settings", json={"company_name": "Nope"}, headers=worker_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_settings_follow_worker_permissions(client, db_session):
    await create_user(db_session, "counter2", "counter123", UserRole.WORKER, permissions=[])
    headers = auth_headers(await login(client, "counter2", "counter123"))
    response = await client.get("/api/settings", headers=headers)
    assert response.status_code == 403

    await create_user(
        db_session, "manager", "manager123", UserRole.WORKER,
        permissions=[Permission.SETTINGS_VIEW.value, Permission.SETTINGS_UPDATE.value],
    )
    headers = auth_headers(await login(client, "manager", "manager123"))
    response = await client.put("/api/settings", json={"company_name": "City Rides"}, headers=headers)
    assert response.status_code == 200
    response = await client.get("/api/settings", headers=headers)
    assert response.json()["company_name"] == "City Rides"


@pytest.mark.asyncio
async def test_clear_data_requires_confirmation(client, admin_headers, booking):
    response = await client.post("/api/admin/clear-data", json={}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.get(f"/api/bookings/{booking['id']}", headers=admin_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_clear_data_wipes_business_records(client, admin_headers, worker_headers, booking, db_session):
    await client.post("/api/payments", json={"booking_id": booking["id"], "amount": 100}, headers=admin_headers)

    response = await client.post("/api/admin/clear-data", json={"confirm": True}, headers=worker_headers)
    assert response.status_code == 403

    response = await client.post("/api/admin/clear-data", json={"confirm": True}, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["deleted"] == {
        "payments": 1,
        "maintenance_records": 0,
        "bookings": 1,
        "customers": 1,
        "vehicles": 1,
    }

    assert (await db_session.execute(select(func.count(Customer.id)))).scalar() == 0
    assert (await db_session.execute(select(func.count(Vehicle.id)))).scalar() == 0
    # Staff accounts survive
    assert (await db_session.execute(select(func.count(User.id)))).scalar() == 2


@pytest.mark.asyncio
async def test_audit_log_records_changes(client, admin_headers, admin_user, vehicle):
    response = await client.get(
        "/api/admin/audit-logs", params={"resource_type": "vehicle"}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    entry = data["logs"][0]
    assert entry["action"] == "VEHICLE_CREATED"
    assert entry["actor_id"] == admin_user.id
    assert entry["resource_id"] == str(vehicle["id"])

    response = await client.get(
        "/api/admin/audit-logs", params={"action": "LOGIN_SUCCESS"}, headers=admin_headers
    )
    assert response.json()["total"] >= 1


@pytest.mark.asyncio
async def test_health_and_correlation_id(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["redis"] == "up"
    assert response.headers.get("X-Correlation-ID")

    response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND"
