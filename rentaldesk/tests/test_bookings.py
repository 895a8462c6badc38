"""
Integration tests for the booking workflow.

Counter submission (customer upsert, vehicle checks, single transaction),
edits, returns, cancellation and deletion.
"""

import pytest
from sqlalchemy import select, func

from rentaldesk.app.models.audit_log import AuditLog
from rentaldesk.app.models.booking import Booking
from rentaldesk.app.models.customer import Customer
from rentaldesk.app.models.user import User
from rentaldesk.app.services.audit import AuditAction
from rentaldesk.app.services.bookings import generate_booking_reference, resolve_worker_id
from conftest import booking_payload


async def _count(db_session, model):
    return (await db_session.execute(select(func.count(model.id)))).scalar()


@pytest.mark.asyncio
async def test_create_booking_returns_reference(client, admin_headers, admin_user, vehicle):
    response = await client.post("/api/bookings", json=booking_payload(vehicle["id"]), headers=admin_headers)
    assert response.status_code == 201

    data = response.json()
    assert data["success"] is True
    booking = data["booking"]
    assert booking["booking_id"].startswith("BKG")
    assert booking["status"] == "pending"
    assert booking["payment_status"] == "pending"
    assert booking["customer_name"] == "Ravi Kumar"
    assert booking["vehicle_number"] == "KA01AB1234"
    assert booking["worker_id"] == admin_user.id
    assert booking["total_amount"] == 1000
    assert booking["security_deposit"] == 500


@pytest.mark.asyncio
async def test_invalid_vehicle_writes_nothing(client, admin_headers, db_session):
    response = await client.post("/api/bookings", json=booking_payload(9999), headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_BAD_REQUEST_001"
    assert response.json()["message"] == "Invalid vehicle ID"

    assert await _count(db_session, Booking) == 0
    assert await _count(db_session, Customer) == 0


@pytest.mark.asyncio
async def test_end_before_start_rejected(client, admin_headers, vehicle):
    payload = booking_payload(vehicle["id"], start="2026-03-05T10:00:00", end="2026-03-01T10:00:00")
    response = await client.post("/api/bookings", json=payload, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_booking_requires_customer(client, admin_headers, vehicle):
    payload = booking_payload(vehicle["id"])
    payload.pop("customer_details")
    response = await client.post("/api/bookings", json=payload, headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_same_phone_updates_existing_customer(client, admin_headers, vehicle, db_session):
    first = booking_payload(vehicle["id"])
    response = await client.post("/api/bookings", json=first, headers=admin_headers)
    assert response.status_code == 201

    second = booking_payload(vehicle["id"], start="2026-04-01T10:00:00", end="2026-04-02T10:00:00")
    second["customer_details"] = {
        "full_name": "Ravi Shankar Kumar",
        "phone": "9876543210",
        "city": "Mysuru",
    }
    response = await client.post("/api/bookings", json=second, headers=admin_headers)
    assert response.status_code == 201

    assert await _count(db_session, Customer) == 1
    customer = (await db_session.execute(select(Customer))).scalar_one()
    assert customer.first_name == "Ravi"
    assert customer.last_name == "Shankar Kumar"
    assert customer.city == "Mysuru"
    # Fields missing from the second submission are kept
    assert customer.email == "ravi@test.com"


@pytest.mark.asyncio
async def test_booking_with_existing_customer_id(client, admin_headers, vehicle):
    response = await client.post("/api/customers", json={
        "first_name": "Asha",
        "last_name": "Rao",
        "phone": "9000000001",
    }, headers=admin_headers)
    customer_id = response.json()["id"]

    payload = booking_payload(vehicle["id"])
    payload.pop("customer_details")
    payload["customer_id"] = customer_id
    response = await client.post("/api/bookings", json=payload, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["booking"]["customer_id"] == customer_id

    payload["customer_id"] = 424242
    payload["start_date"] = "2026-05-01T10:00:00"
    payload["end_date"] = "2026-05-02T10:00:00"
    response = await client.post("/api/bookings", json=payload, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_overlapping_booking_conflicts(client, admin_headers, booking, vehicle, db_session):
    payload = booking_payload(
        vehicle["id"], phone="9123456780", start="2026-03-02T10:00:00", end="2026-03-04T10:00:00"
    )
    response = await client.post("/api/bookings", json=payload, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT_001"

    # The rejected submission left no customer behind
    assert await _count(db_session, Customer) == 1
    assert await _count(db_session, Booking) == 1




@pytest.mark.asyncio
async def test_only_committed_bookings_are_audited(client, admin_headers, booking, vehicle, db_session):
    response = await client.post(
        "/api/bookings", json=booking_payload(vehicle["id"], phone="9123456780"), headers=admin_headers
    )
    assert response.status_code == 409

    result = await db_session.execute(
        select(AuditLog.resource_id).where(AuditLog.action == AuditAction.BOOKING_CREATED)
    )
    assert result.scalars().all() == [booking["booking_id"]]
@pytest.mark.asyncio
async def test_back_to_back_bookings_allowed(client, admin_headers, booking, vehicle):
    payload = booking_payload(vehicle["id"], start="2026-03-03T10:00:00", end="2026-03-04T10:00:00")
    response = await client.post("/api/bookings", json=payload, headers=admin_headers)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_retired_vehicle_cannot_be_booked(client, admin_headers, vehicle):
    response = await client.patch(
        f"/api/vehicles/{vehicle['id']}/status", json={"status": "retired"}, headers=admin_headers
    )
    assert response.status_code == 200

    response = await client.post("/api/bookings", json=booking_payload(vehicle["id"]), headers=admin_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_status_and_payment_status_edits_persist(client, admin_headers, booking, vehicle):
    response = await client.put(
        f"/api/bookings/{booking['id']}",
        json={"status": "active", "payment_status": "paid", "notes": "Helmet given"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "active"

    response = await client.get(f"/api/bookings/{booking['id']}", headers=admin_headers)
    data = response.json()
    assert data["status"] == "active"
    assert data["payment_status"] == "paid"
    assert data["notes"] == "Helmet given"

    response = await client.get(f"/api/vehicles/{vehicle['id']}", headers=admin_headers)
    assert response.json()["status"] == "rented"


@pytest.mark.asyncio
async def test_empty_update_rejected(client, admin_headers, booking):
    response = await client.put(f"/api/bookings/{booking['id']}", json={}, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_bookings_with_filters(client, admin_headers, booking, vehicle):
    response = await client.get("/api/bookings", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["bookings"][0]["booking_id"] == booking["booking_id"]
    assert data["bookings"][0]["amount"] == 1000

    response = await client.get("/api/bookings", params={"status": "completed"}, headers=admin_headers)
    assert response.json()["total"] == 0

    response = await client.get("/api/bookings", params={"vehicle_id": vehicle["id"]}, headers=admin_headers)
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_get_missing_booking(client, admin_headers):
    response = await client.get("/api/bookings/999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_return_flow(client, admin_headers, booking, vehicle):
    # Only active rentals can be returned
    response = await client.post(f"/api/bookings/{booking['id']}/return", headers=admin_headers)
    assert response.status_code == 400

    await client.put(f"/api/bookings/{booking['id']}", json={"status": "active"}, headers=admin_headers)

    response = await client.post(f"/api/bookings/{booking['id']}/return", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["return_date"] is not None

    response = await client.get(f"/api/vehicles/{vehicle['id']}", headers=admin_headers)
    assert response.json()["status"] == "available"


@pytest.mark.asyncio
async def test_cancel_is_admin_only(client, admin_headers, worker_headers, booking):
    response = await client.post(f"/api/bookings/{booking['id']}/cancel", headers=worker_headers)
    assert response.status_code == 403

    response = await client.post(
        f"/api/bookings/{booking['id']}/cancel", json={"reason": "Customer no-show"}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "cancelled"
    assert "Cancelled: Customer no-show" in data["notes"]

    response = await client.post(f"/api/bookings/{booking['id']}/cancel", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_cancelled_booking_frees_dates(client, admin_headers, booking, vehicle):
    await client.post(f"/api/bookings/{booking['id']}/cancel", headers=admin_headers)

    response = await client.post(
        "/api/bookings", json=booking_payload(vehicle["id"], phone="9123456780"), headers=admin_headers
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_reopening_cancelled_booking_over_new_booking_conflicts(client, admin_headers, booking, vehicle):
    await client.post(f"/api/bookings/{booking['id']}/cancel", headers=admin_headers)
    response = await client.post(
        "/api/bookings", json=booking_payload(vehicle["id"], phone="9123456780"), headers=admin_headers
    )
    assert response.status_code == 201

    response = await client.put(f"/api/bookings/{booking['id']}", json={"status": "pending"}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT_001"

    response = await client.get(f"/api/bookings/{booking['id']}", headers=admin_headers)
    assert response.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_reopening_cancelled_booking_when_dates_free(client, admin_headers, booking):
    await client.post(f"/api/bookings/{booking['id']}/cancel", headers=admin_headers)

    response = await client.put(f"/api/bookings/{booking['id']}", json={"status": "pending"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_reopening_booking_on_retired_vehicle_conflicts(client, admin_headers, booking, vehicle):
    await client.post(f"/api/bookings/{booking['id']}/cancel", headers=admin_headers)
    response = await client.patch(
        f"/api/vehicles/{vehicle['id']}/status", json={"status": "retired"}, headers=admin_headers
    )
    assert response.status_code == 200

    response = await client.put(f"/api/bookings/{booking['id']}", json={"status": "active"}, headers=admin_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_null_status_fields_are_ignored(client, admin_headers, booking):
    response = await client.put(
        f"/api/bookings/{booking['id']}", json={"payment_status": None}, headers=admin_headers
    )
    assert response.status_code == 400

    response = await client.put(
        f"/api/bookings/{booking['id']}",
        json={"status": None, "payment_status": None, "notes": "Called customer"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "pending"
    assert data["payment_status"] == "pending"
    assert data["notes"] == "Called customer"


@pytest.mark.asyncio
async def test_documents_update(client, admin_headers, booking):
    response = await client.put(f"/api/bookings/{booking['id']}/documents", json={}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.put(
        f"/api/bookings/{booking['id']}/documents",
        json={"documents": {"dl_front": "data:image/png;base64,AAAA"}, "signature": "data:image/png;base64,BBBB"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["documents"] == {"dl_front": "data:image/png;base64,AAAA"}
    assert response.json()["signature"] == "data:image/png;base64,BBBB"


@pytest.mark.asyncio
async def test_worker_booking_records_worker(client, worker_headers, worker_user, vehicle):
    response = await client.post("/api/bookings", json=booking_payload(vehicle["id"]), headers=worker_headers)
    assert response.status_code == 201
    assert response.json()["booking"]["worker_id"] == worker_user.id
    assert response.json()["booking"]["worker_name"] == worker_user.full_name


@pytest.mark.asyncio
async def test_delete_booking(client, admin_headers, worker_headers, booking):
    response = await client.delete(f"/api/bookings/{booking['id']}", headers=worker_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/bookings/{booking['id']}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/bookings/{booking['id']}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_bookings_require_authentication(client):
    response = await client.get("/api/bookings")
    assert response.status_code == 401


def test_booking_reference_format():
    reference = generate_booking_reference()
    assert reference.startswith("BKG")
    assert reference[3:].isdigit()
    assert len(reference) == 3 + 13 + 3


@pytest.mark.asyncio
async def test_resolve_worker_falls_back_to_system_user(db_session):
    worker_id = await resolve_worker_id(db_session, 12345)
    await db_session.commit()

    system_user = await db_session.get(User, worker_id)
    assert system_user.username == "system"
    assert system_user.is_system is True
    assert system_user.is_active is False

    # With a user present, that user is reused
    assert await resolve_worker_id(db_session, None) == worker_id
