"""
Booking workflow service.

``create_booking`` runs the whole counter workflow (vehicle check, customer
upsert, worker resolution, insert) inside the caller's session and commits
once at the end; any failure leaves no rows behind.
"""

import logging
import random
import time
from datetime import datetime
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentaldesk.app.core.exceptions import BadRequestError, ConflictError, ResourceNotFoundError
from rentaldesk.app.core.security import generate_unusable_password
from rentaldesk.app.models.booking import Booking
from rentaldesk.app.models.customer import Customer
from rentaldesk.app.models.enums import (
    BookingStatus, BookingPaymentStatus, VehicleStatus, UserRole, UserStatus,
    OPEN_BOOKING_STATUSES,
)
from rentaldesk.app.models.user import User
from rentaldesk.app.models.vehicle import Vehicle
from rentaldesk.app.schemas.booking import BookingCreate
from rentaldesk.app.services.customers import upsert_customer_by_phone

logger = logging.getLogger(__name__)

BOOKING_ID_PREFIX = "BKG"
SYSTEM_USERNAME = "system"
SYSTEM_EMAIL = "system@rentaldesk.com"
MAX_REFERENCE_ATTEMPTS = 5


def generate_booking_reference() -> str:
    """``BKG`` + epoch milliseconds + a random three-digit suffix."""
    return f"{BOOKING_ID_PREFIX}{int(time.time() * 1000)}{random.randint(100, 999)}"


async def _unique_booking_reference(db: AsyncSession) -> str:
    for _ in range(MAX_REFERENCE_ATTEMPTS):
        reference = generate_booking_reference()
        exists = await db.execute(select(Booking.id).where(Booking.booking_id == reference))
        if exists.scalar_one_or_none() is None:
            return reference
    raise ConflictError("Could not allocate a unique booking reference, please retry")


async def resolve_worker_id(db: AsyncSession, user_id: Optional[int]) -> int:
    """
    Pick the user recorded as the booking's worker.

    1. The authenticated user, when that account exists
    2. Otherwise the oldest existing user
    3. Otherwise a synthetic, inactive ``system`` account created on the spot
    """
    if user_id is not None:
        found = await db.execute(select(User.id).where(User.id == user_id))
        if found.scalar_one_or_none() is not None:
            return user_id

    fallback = await db.execute(select(User.id).order_by(User.id).limit(1))
    fallback_id = fallback.scalar_one_or_none()
    if fallback_id is not None:
        logger.warning("Booking worker %s not found, falling back to user %s", user_id, fallback_id)
        return fallback_id

    system_user = User(
        username=SYSTEM_USERNAME,
        email=SYSTEM_EMAIL,
        full_name="System",
        hashed_password=generate_unusable_password(),
        role=UserRole.ADMIN,
        status=UserStatus.INACTIVE,
        permissions=[],
        is_system=True,
    )
    db.add(system_user)
    await db.flush()
    logger.warning("No users exist, created system user %s for booking", system_user.id)
    return system_user.id


async def _lock_vehicle(db: AsyncSession, vehicle_id: int) -> Optional[Vehicle]:
    # Row lock serialises concurrent bookings of one vehicle (no-op on SQLite)
    result = await db.execute(
        select(Vehicle).where(Vehicle.id == vehicle_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def find_overlapping_booking(
    db: AsyncSession,
    vehicle_id: int,
    start_date: datetime,
    end_date: datetime,
    exclude_id: Optional[int] = None,
) -> Optional[Booking]:
    """An open booking of the vehicle whose range intersects [start_date, end_date)."""
    query = select(Booking).where(
        Booking.vehicle_id == vehicle_id,
        Booking.status.in_(OPEN_BOOKING_STATUSES),
        Booking.start_date < end_date,
        Booking.end_date > start_date,
    )
    if exclude_id is not None:
        query = query.where(Booking.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalars().first()


async def ensure_can_reopen(db: AsyncSession, booking: Booking) -> None:
    """
    Refuse to move a closed booking back to an open status when its vehicle
    was retired or rebooked for overlapping dates in the meantime.
    """
    vehicle = await _lock_vehicle(db, booking.vehicle_id)
    if vehicle is None or vehicle.status == VehicleStatus.RETIRED:
        raise ConflictError("Vehicle is retired and cannot be booked", details={"vehicle_id": booking.vehicle_id})

    clash = await find_overlapping_booking(
        db, booking.vehicle_id, booking.start_date, booking.end_date, exclude_id=booking.id
    )
    if clash:
        raise ConflictError(
            "Vehicle is already booked for the requested dates",
            details={"vehicle_id": booking.vehicle_id, "booking_id": clash.booking_id},
        )


async def create_booking(db: AsyncSession, data: BookingCreate, current_user: dict) -> Booking:
    """
    Create a booking from a counter submission.

    Raises:
        BadRequestError: bad date range, unknown vehicle or customer
        ConflictError: retired or already-booked vehicle, or a uniqueness clash
    """
    if data.end_date <= data.start_date:
        raise BadRequestError("end_date must be after start_date")

    try:
        vehicle = await _lock_vehicle(db, data.vehicle_id)
        if not vehicle:
            raise BadRequestError("Invalid vehicle ID", details={"vehicle_id": data.vehicle_id})
        if vehicle.status == VehicleStatus.RETIRED:
            raise ConflictError("Vehicle is retired and cannot be booked", details={"vehicle_id": vehicle.id})

        clash = await find_overlapping_booking(db, vehicle.id, data.start_date, data.end_date)
        if clash:
            raise ConflictError(
                "Vehicle is already booked for the requested dates",
                details={"vehicle_id": vehicle.id, "booking_id": clash.booking_id},
            )

        if data.customer_id is not None:
            customer = await db.get(Customer, data.customer_id)
            if not customer:
                raise BadRequestError("Invalid customer ID", details={"customer_id": data.customer_id})
        else:
            customer, _ = await upsert_customer_by_phone(db, data.customer_details)

        worker_id = await resolve_worker_id(db, current_user.get("user_id"))
        reference = await _unique_booking_reference(db)

        pricing = data.pricing
        booking = Booking(
            booking_id=reference,
            customer_id=customer.id,
            vehicle_id=vehicle.id,
            worker_id=worker_id,
            start_date=data.start_date,
            end_date=data.end_date,
            status=BookingStatus.PENDING,
            base_price=pricing.base_price,
            security_deposit=pricing.security_deposit,
            total_amount=pricing.total_amount if pricing.total_amount is not None else pricing.base_price,
            payment_status=BookingPaymentStatus.PENDING,
            payment_method=data.payment_method,
            notes=data.notes,
            documents=data.documents,
            signature=data.signature,
            father_phone=data.father_phone,
            mother_phone=data.mother_phone,
            emergency_contact1=data.emergency_contact1,
            emergency_contact2=data.emergency_contact2,
        )
        db.add(booking)
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Booking insert rejected by the database: %s", exc.orig)
        raise ConflictError("Booking conflicts with existing data, nothing was saved")
    except Exception:
        await db.rollback()
        raise

    logger.info("Created booking %s for customer %s on vehicle %s", reference, customer.id, vehicle.id)
    return booking


async def get_booking_or_404(db: AsyncSession, booking_pk: int) -> Booking:
    """Load a booking with its customer, vehicle and worker."""
    result = await db.execute(
        select(Booking)
        .where(Booking.id == booking_pk)
        .options(
            selectinload(Booking.customer),
            selectinload(Booking.vehicle),
            selectinload(Booking.worker),
        )
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise ResourceNotFoundError("Booking", booking_pk)
    return booking


async def sync_vehicle_status(db: AsyncSession, booking: Booking, new_status: BookingStatus) -> None:
    """
    Keep the vehicle's status in step with a booking transition.

    Activating a booking marks the vehicle rented. Completing or cancelling it
    frees the vehicle unless another active rental still holds it or the
    vehicle was taken out of service meanwhile.
    """
    vehicle = booking.vehicle
    if vehicle is None:
        return

    if new_status == BookingStatus.ACTIVE:
        if vehicle.status == VehicleStatus.AVAILABLE:
            vehicle.status = VehicleStatus.RENTED
        return

    if new_status in (BookingStatus.COMPLETED, BookingStatus.CANCELLED) and vehicle.status == VehicleStatus.RENTED:
        others = await db.execute(
            select(func.count(Booking.id)).where(
                Booking.vehicle_id == vehicle.id,
                Booking.id != booking.id,
                Booking.status.in_([BookingStatus.ACTIVE, BookingStatus.OVERDUE]),
            )
        )
        if not others.scalar():
            vehicle.status = VehicleStatus.AVAILABLE


async def mark_returned(db: AsyncSession, booking: Booking) -> Booking:
    """Close an active rental: completed, stamped with the return time, vehicle freed."""
    if booking.status not in (BookingStatus.ACTIVE, BookingStatus.OVERDUE):
        raise BadRequestError(
            f"Cannot return a booking that is {booking.status.value}",
            details={"status": booking.status.value},
        )
    booking.status = BookingStatus.COMPLETED
    booking.return_date = datetime.utcnow()
    await sync_vehicle_status(db, booking, BookingStatus.COMPLETED)
    await db.commit()
    return booking


async def cancel_booking(db: AsyncSession, booking: Booking, reason: Optional[str]) -> Booking:
    """Cancel an open booking, appending the reason to its notes."""
    if booking.status in (BookingStatus.COMPLETED, BookingStatus.CANCELLED):
        raise BadRequestError(
            f"Cannot cancel a booking that is {booking.status.value}",
            details={"status": booking.status.value},
        )
    booking.status = BookingStatus.CANCELLED
    if reason:
        note = f"Cancelled: {reason}"
        booking.notes = f"{booking.notes}\n{note}" if booking.notes else note
    await sync_vehicle_status(db, booking, BookingStatus.CANCELLED)
    await db.commit()
    return booking
