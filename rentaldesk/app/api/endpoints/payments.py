"""
Payment endpoints.

Every write re-derives the parent booking's payment status.
"""

from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from rentaldesk.app.core.exceptions import BadRequestError, ResourceNotFoundError
from rentaldesk.app.core.guards import require_admin, require_permission
from rentaldesk.app.db.session import get_db
from rentaldesk.app.models.booking import Booking
from rentaldesk.app.models.customer import Customer
from rentaldesk.app.models.enums import Permission, PaymentMethod, PaymentStatus
from rentaldesk.app.models.payment import Payment
from rentaldesk.app.schemas.common import MessageResponse, total_pages
from rentaldesk.app.schemas.payment import PaymentCreate, PaymentUpdate, PaymentResponse, PaymentListResponse
from rentaldesk.app.services.audit import log_record_change, AuditAction
from rentaldesk.app.services.payments import recompute_booking_payment_status

router = APIRouter(prefix="/payments", tags=["Payments"])

SORTABLE_FIELDS = {
    "created_at": Payment.created_at,
    "amount": Payment.amount,
    "method": Payment.method,
    "status": Payment.status,
}


async def _get_payment_or_404(db: AsyncSession, payment_id: int) -> Payment:
    result = await db.execute(
        select(Payment)
        .where(Payment.id == payment_id)
        .options(
            selectinload(Payment.booking).selectinload(Booking.customer),
            selectinload(Payment.receiver),
        )
        .execution_options(populate_existing=True)
    )
    payment = result.scalar_one_or_none()
    if not payment:
        raise ResourceNotFoundError("Payment", payment_id)
    return payment


@router.get("", response_model=PaymentListResponse)
async def list_payments(
    booking_id: Optional[int] = Query(None),
    method: Optional[PaymentMethod] = Query(None),
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    customer: Optional[str] = Query(None, max_length=100, description="Customer name or phone"),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(require_permission(Permission.PAYMENTS_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    filters = []
    if booking_id:
        filters.append(Payment.booking_id == booking_id)
    if method:
        filters.append(Payment.method == method)
    if status_filter:
        filters.append(Payment.status == status_filter)
    if start_date:
        filters.append(Payment.created_at >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        filters.append(Payment.created_at < datetime.combine(end_date + timedelta(days=1), datetime.min.time()))
    if customer and customer.strip():
        pattern = f"%{customer.strip()}%"
        matching_bookings = (
            select(Booking.id)
            .join(Customer, Booking.customer_id == Customer.id)
            .where(or_(
                Customer.first_name.ilike(pattern),
                Customer.last_name.ilike(pattern),
                Customer.phone.ilike(pattern),
            ))
        )
        filters.append(Payment.booking_id.in_(matching_bookings))

    column = SORTABLE_FIELDS.get(sort_by, Payment.created_at)
    ordering = column.asc() if sort_order == "asc" else column.desc()

    total = (await db.execute(select(func.count(Payment.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Payment)
        .where(*filters)
        .options(
            selectinload(Payment.booking).selectinload(Booking.customer),
            selectinload(Payment.receiver),
        )
        .order_by(ordering, Payment.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return PaymentListResponse(
        payments=[PaymentResponse.from_payment(p) for p in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    )


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payment_data: PaymentCreate,
    current_user: dict = Depends(require_permission(Permission.PAYMENTS_CREATE)),
    db: AsyncSession = Depends(get_db)
):
    """Record a payment received by the current user."""
    booking = await db.get(Booking, payment_data.booking_id)
    if not booking:
        raise ResourceNotFoundError("Booking", payment_data.booking_id)

    payment = Payment(
        booking_id=booking.id,
        amount=payment_data.amount,
        method=payment_data.method,
        status=payment_data.status,
        transaction_id=payment_data.transaction_id,
        notes=payment_data.notes,
        received_by=current_user["user_id"],
    )
    db.add(payment)
    await recompute_booking_payment_status(db, booking)
    await db.commit()

    await log_record_change(
        db, current_user, AuditAction.PAYMENT_RECORDED, "payment", payment.id,
        metadata={"booking_id": booking.booking_id, "amount": payment.amount, "method": payment.method.value},
    )
    return PaymentResponse.from_payment(await _get_payment_or_404(db, payment.id))


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: int,
    current_user: dict = Depends(require_permission(Permission.PAYMENTS_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    return PaymentResponse.from_payment(await _get_payment_or_404(db, payment_id))


@router.patch("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: int,
    payment_data: PaymentUpdate,
    current_user: dict = Depends(require_permission(Permission.PAYMENTS_UPDATE)),
    db: AsyncSession = Depends(get_db)
):
    """Correct a payment's amount, method, status or notes."""
    update_data = payment_data.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise BadRequestError("No fields to update")

    payment = await _get_payment_or_404(db, payment_id)
    for field, value in update_data.items():
        setattr(payment, field, value)
    await recompute_booking_payment_status(db, payment.booking)
    await db.commit()

    await log_record_change(
        db, current_user, AuditAction.PAYMENT_UPDATED, "payment", payment.id,
        metadata={"fields": sorted(update_data.keys())},
    )
    return PaymentResponse.from_payment(await _get_payment_or_404(db, payment_id))


@router.delete("/{payment_id}", response_model=MessageResponse)
async def delete_payment(
    payment_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a payment (admin-only)."""
    payment = await _get_payment_or_404(db, payment_id)
    booking = payment.booking

    await db.delete(payment)
    await recompute_booking_payment_status(db, booking)
    await db.commit()

    await log_record_change(
        db, admin, AuditAction.PAYMENT_DELETED, "payment", payment_id,
        metadata={"booking_id": booking.booking_id},
    )
    return MessageResponse(message="Payment deleted")
