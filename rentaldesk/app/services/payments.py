"""
Payment bookkeeping.
"""

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from rentaldesk.app.models.booking import Booking
from rentaldesk.app.models.enums import BookingPaymentStatus, PaymentStatus
from rentaldesk.app.models.payment import Payment


def payment_status_for(paid: float, total: float) -> BookingPaymentStatus:
    """
    Booking payment status from the completed amount.

    paid >= total -> PAID, paid > 0 -> PARTIAL, otherwise PENDING.
    A zero-value booking with nothing paid stays PENDING.
    """
    if paid > 0 and paid >= total:
        return BookingPaymentStatus.PAID
    if paid > 0:
        return BookingPaymentStatus.PARTIAL
    return BookingPaymentStatus.PENDING


async def completed_total(db: AsyncSession, booking_pk: int) -> float:
    query = select(func.sum(Payment.amount)).where(
        Payment.booking_id == booking_pk,
        Payment.status == PaymentStatus.COMPLETED,
    )
    return float((await db.execute(query)).scalar() or 0.0)


async def recompute_booking_payment_status(db: AsyncSession, booking: Booking) -> BookingPaymentStatus:
    """
    Re-derive ``booking.payment_status`` from its completed payments.

    Pending writes are flushed first so the sum sees them; the caller commits.
    """
    await db.flush()
    paid = await completed_total(db, booking.id)
    booking.payment_status = payment_status_for(paid, booking.total_amount or 0.0)
    return booking.payment_status
