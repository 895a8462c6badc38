"""
Tests for payments and the booking payment status they drive.
"""

import pytest

from rentaldesk.app.models.enums import BookingPaymentStatus
from rentaldesk.app.services.payments import payment_status_for


async def _pay(client, headers, booking_pk, amount, **extra):
    response = await client.post(
        "/api/payments", json={"booking_id": booking_pk, "amount": amount, **extra}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_payments_drive_booking_payment_status(client, admin_headers, booking):
    first = await _pay(client, admin_headers, booking["id"], 400, method="upi", transaction_id="UPI123")
    assert first["booking_payment_status"] == "partial"
    assert first["booking_reference"] == booking["booking_id"]
    assert first["customer_name"] == "Ravi Kumar"

    response = await client.get(f"/api/bookings/{booking['id']}", headers=admin_headers)
    assert response.json()["payment_status"] == "partial"

    second = await _pay(client, admin_headers, booking["id"], 600)
    assert second["booking_payment_status"] == "paid"

    response = await client.get(f"/api/bookings/{booking['id']}", headers=admin_headers)
    assert response.json()["payment_status"] == "paid"


@pytest.mark.asyncio
async def test_pending_payment_does_not_count(client, admin_headers, booking):
    payment = await _pay(client, admin_headers, booking["id"], 1000, status="pending")
    assert payment["booking_payment_status"] == "pending"

    response = await client.patch(
        f"/api/payments/{payment['id']}", json={"status": "completed"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["booking_payment_status"] == "paid"


@pytest.mark.asyncio
async def test_delete_payment_recomputes(client, admin_headers, worker_headers, booking):
    payment = await _pay(client, admin_headers, booking["id"], 1000)

    response = await client.delete(f"/api/payments/{payment['id']}", headers=worker_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/payments/{payment['id']}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/bookings/{booking['id']}", headers=admin_headers)
    assert response.json()["payment_status"] == "pending"


@pytest.mark.asyncio
async def test_worker_records_payment(client, worker_headers, worker_user, booking):
    payment = await _pay(client, worker_headers, booking["id"], 250, method="card")
    assert payment["received_by"] == worker_user.id
    assert payment["received_by_name"] == worker_user.full_name


@pytest.mark.asyncio
async def test_payment_for_missing_booking(client, admin_headers):
    response = await client.post("/api/payments", json={"booking_id": 999, "amount": 100}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_non_positive_amount_rejected(client, admin_headers, booking):
    response = await client.post(
        "/api/payments", json={"booking_id": booking["id"], "amount": 0}, headers=admin_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_empty_payment_update_rejected(client, admin_headers, booking):
    payment = await _pay(client, admin_headers, booking["id"], 100)
    response = await client.patch(f"/api/payments/{payment['id']}", json={}, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_payments_filters(client, admin_headers, booking):
    await _pay(client, admin_headers, booking["id"], 100, method="cash")
    await _pay(client, admin_headers, booking["id"], 200, method="upi")

    response = await client.get("/api/payments", headers=admin_headers)
    data = response.json()
    assert data["total"] == 2
    assert data["page_size"] == 20

    response = await client.get("/api/payments", params={"method": "upi"}, headers=admin_headers)
    assert [p["amount"] for p in response.json()["payments"]] == [200]

    response = await client.get("/api/payments", params={"customer": "ravi"}, headers=admin_headers)
    assert response.json()["total"] == 2

    response = await client.get(
        "/api/payments", params={"sort_by": "amount", "sort_order": "asc"}, headers=admin_headers
    )
    assert [p["amount"] for p in response.json()["payments"]] == [100, 200]

    response = await client.get("/api/payments", params={"page_size": 500}, headers=admin_headers)
    assert response.status_code == 422


def test_payment_status_for():
    assert payment_status_for(0, 1000) == BookingPaymentStatus.PENDING
    assert payment_status_for(1, 1000) == BookingPaymentStatus.PARTIAL
    assert payment_status_for(1000, 1000) == BookingPaymentStatus.PAID
    assert payment_status_for(1200, 1000) == BookingPaymentStatus.PAID
    assert payment_status_for(0, 0) == BookingPaymentStatus.PENDING
