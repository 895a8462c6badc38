"""
Dashboard statistics for admins and workers.
"""

from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentaldesk.app.models.booking import Booking
from rentaldesk.app.models.customer import Customer
from rentaldesk.app.models.enums import (
    BookingStatus, BookingPaymentStatus, PaymentStatus, VehicleStatus,
)
from rentaldesk.app.models.payment import Payment
from rentaldesk.app.models.vehicle import Vehicle
from rentaldesk.app.schemas.booking import BookingListItem
from rentaldesk.app.schemas.report import AdminDashboardStats, WorkerDashboardStats

RECENT_LIMIT = 5
ACTIVE_STATUSES = [BookingStatus.ACTIVE, BookingStatus.OVERDUE]


def _start_of_today() -> datetime:
    return datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)


async def _recent_bookings(db: AsyncSession, *filters) -> list:
    result = await db.execute(
        select(Booking)
        .where(*filters)
        .options(selectinload(Booking.customer), selectinload(Booking.vehicle))
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(RECENT_LIMIT)
    )
    return [BookingListItem.from_booking(b) for b in result.scalars().all()]


class DashboardService:

    @staticmethod
    async def admin_stats(db: AsyncSession) -> AdminDashboardStats:
        """Business-wide totals."""
        today = _start_of_today()

        total_customers = (await db.execute(select(func.count(Customer.id)))).scalar() or 0
        total_vehicles = (await db.execute(select(func.count(Vehicle.id)))).scalar() or 0
        available_vehicles = (await db.execute(
            select(func.count(Vehicle.id)).where(Vehicle.status == VehicleStatus.AVAILABLE)
        )).scalar() or 0
        total_bookings = (await db.execute(select(func.count(Booking.id)))).scalar() or 0
        active_bookings = (await db.execute(
            select(func.count(Booking.id)).where(Booking.status.in_(ACTIVE_STATUSES))
        )).scalar() or 0

        # Money actually received
        total_revenue = (await db.execute(
            select(func.sum(Payment.amount)).where(Payment.status == PaymentStatus.COMPLETED)
        )).scalar() or 0.0
        today_revenue = (await db.execute(
            select(func.sum(Payment.amount)).where(
                Payment.status == PaymentStatus.COMPLETED,
                Payment.created_at >= today,
            )
        )).scalar() or 0.0

        # Outstanding = booked value of unpaid bookings minus what was paid on them
        open_filters = [
            Booking.status != BookingStatus.CANCELLED,
            Booking.payment_status != BookingPaymentStatus.PAID,
        ]
        outstanding_total = (await db.execute(
            select(func.sum(Booking.total_amount)).where(*open_filters)
        )).scalar() or 0.0
        outstanding_paid = (await db.execute(
            select(func.sum(Payment.amount))
            .join(Booking, Payment.booking_id == Booking.id)
            .where(Payment.status == PaymentStatus.COMPLETED, *open_filters)
        )).scalar() or 0.0

        return AdminDashboardStats(
            total_customers=total_customers,
            total_vehicles=total_vehicles,
            available_vehicles=available_vehicles,
            total_bookings=total_bookings,
            active_bookings=active_bookings,
            total_revenue=round(total_revenue, 2),
            today_revenue=round(today_revenue, 2),
            pending_payments=round(max(outstanding_total - outstanding_paid, 0.0), 2),
            recent_bookings=await _recent_bookings(db),
        )

    @staticmethod
    async def worker_stats(db: AsyncSession, worker_id: int) -> WorkerDashboardStats:
        """The worker's own activity."""
        today = _start_of_today()

        today_bookings = (await db.execute(
            select(func.count(Booking.id)).where(
                Booking.worker_id == worker_id,
                Booking.created_at >= today,
            )
        )).scalar() or 0
        active_bookings = (await db.execute(
            select(func.count(Booking.id)).where(
                Booking.worker_id == worker_id,
                Booking.status.in_(ACTIVE_STATUSES),
            )
        )).scalar() or 0
        today_revenue = (await db.execute(
            select(func.sum(Payment.amount)).where(
                Payment.received_by == worker_id,
                Payment.status == PaymentStatus.COMPLETED,
                Payment.created_at >= today,
            )
        )).scalar() or 0.0

        return WorkerDashboardStats(
            today_bookings=today_bookings,
            active_bookings=active_bookings,
            today_revenue=round(today_revenue, 2),
            recent_bookings=await _recent_bookings(db, Booking.worker_id == worker_id),
        )
