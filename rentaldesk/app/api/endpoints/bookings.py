"""
Booking endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from rentaldesk.app.core.exceptions import BadRequestError
from rentaldesk.app.core.guards import require_admin, require_permission
from rentaldesk.app.db.session import get_db
from rentaldesk.app.models.booking import Booking
from rentaldesk.app.models.enums import Permission, BookingStatus, OPEN_BOOKING_STATUSES
from rentaldesk.app.schemas.booking import (
    BookingCreate, BookingUpdate, BookingDocumentsUpdate, BookingCancelRequest,
    BookingListItem, BookingDetail, BookingListResponse, BookingCreateResponse,
)
from rentaldesk.app.schemas.common import MessageResponse
from rentaldesk.app.services import bookings as booking_service
from rentaldesk.app.services.audit import log_record_change, AuditAction

router = APIRouter(prefix="/bookings", tags=["Bookings"])

SORTABLE_FIELDS = {
    "created_at": Booking.created_at,
    "start_date": Booking.start_date,
    "end_date": Booking.end_date,
    "total_amount": Booking.total_amount,
}


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    sort: str = Query("created_at", description="created_at, start_date, end_date or total_amount"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    customer_id: Optional[int] = Query(None),
    vehicle_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_permission(Permission.BOOKINGS_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    """Bookings with customer and vehicle columns for the list view."""
    filters = []
    if status_filter:
        filters.append(Booking.status == status_filter)
    if customer_id:
        filters.append(Booking.customer_id == customer_id)
    if vehicle_id:
        filters.append(Booking.vehicle_id == vehicle_id)

    column = SORTABLE_FIELDS.get(sort, Booking.created_at)
    ordering = column.asc() if order == "asc" else column.desc()

    total = (await db.execute(select(func.count(Booking.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Booking)
        .where(*filters)
        .options(selectinload(Booking.customer), selectinload(Booking.vehicle))
        .order_by(ordering, Booking.id.desc())
        .offset(offset)
        .limit(limit)
    )

    return BookingListResponse(
        bookings=[BookingListItem.from_booking(b) for b in result.scalars().all()],
        total=total,
    )


@router.post("", response_model=BookingCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    current_user: dict = Depends(require_permission(Permission.BOOKINGS_CREATE)),
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a booking from the counter form.

    The customer is matched by phone (updated if found, created otherwise),
    the vehicle must exist and be free for the dates, and everything is saved
    in one transaction.
    """
    booking = await booking_service.create_booking(db, booking_data, current_user)

    await log_record_change(
        db, current_user, AuditAction.BOOKING_CREATED, "booking", booking.booking_id,
        metadata={"vehicle_id": booking.vehicle_id, "customer_id": booking.customer_id},
    )

    booking = await booking_service.get_booking_or_404(db, booking.id)
    return BookingCreateResponse(success=True, booking=BookingDetail.from_booking(booking))


@router.get("/{booking_id}", response_model=BookingDetail)
async def get_booking(
    booking_id: int,
    current_user: dict = Depends(require_permission(Permission.BOOKINGS_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return BookingDetail.from_booking(booking)


@router.put("/{booking_id}", response_model=BookingDetail)
async def update_booking(
    booking_id: int,
    booking_data: BookingUpdate,
    current_user: dict = Depends(require_permission(Permission.BOOKINGS_UPDATE)),
    db: AsyncSession = Depends(get_db)
):
    """
    Partially update a booking.

    Status changes carry over to the vehicle (active -> rented,
    completed/cancelled -> available).
    """
    update_data = booking_data.model_dump(exclude_unset=True)
    for required in ("status", "payment_status"):
        if required in update_data and update_data[required] is None:
            update_data.pop(required)
    if not update_data:
        raise BadRequestError("No fields to update")

    booking = await booking_service.get_booking_or_404(db, booking_id)
    previous_status = booking.status

    new_status = update_data.pop("status", None)
    if new_status in OPEN_BOOKING_STATUSES and previous_status not in OPEN_BOOKING_STATUSES:
        await booking_service.ensure_can_reopen(db, booking)

    for field, value in update_data.items():
        setattr(booking, field, value)

    if new_status is not None and new_status != previous_status:
        booking.status = new_status
        await booking_service.sync_vehicle_status(db, booking, new_status)

    await db.commit()

    metadata = {"fields": sorted(booking_data.model_dump(exclude_unset=True).keys())}
    if new_status is not None:
        metadata["status"] = {"from": previous_status.value, "to": booking.status.value}
    await log_record_change(db, current_user, AuditAction.BOOKING_UPDATED, "booking", booking.booking_id, metadata)

    booking = await booking_service.get_booking_or_404(db, booking_id)
    return BookingDetail.from_booking(booking)


@router.put("/{booking_id}/documents", response_model=BookingDetail)
async def update_booking_documents(
    booking_id: int,
    documents_data: BookingDocumentsUpdate,
    current_user: dict = Depends(require_permission(Permission.BOOKINGS_UPDATE)),
    db: AsyncSession = Depends(get_db)
):
    """Replace captured documents and/or signature."""
    if documents_data.documents is None and documents_data.signature is None:
        raise BadRequestError("No documents or signature provided")

    booking = await booking_service.get_booking_or_404(db, booking_id)
    if documents_data.documents is not None:
        booking.documents = documents_data.documents
    if documents_data.signature is not None:
        booking.signature = documents_data.signature
    await db.commit()

    await log_record_change(
        db, current_user, AuditAction.BOOKING_UPDATED, "booking", booking.booking_id,
        metadata={"fields": ["documents" if documents_data.documents is not None else "signature"]},
    )
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return BookingDetail.from_booking(booking)


@router.post("/{booking_id}/return", response_model=BookingDetail)
async def return_booking(
    booking_id: int,
    current_user: dict = Depends(require_permission(Permission.BOOKINGS_RETURN)),
    db: AsyncSession = Depends(get_db)
):
    """Check a vehicle back in; only active rentals can be returned."""
    booking = await booking_service.get_booking_or_404(db, booking_id)
    await booking_service.mark_returned(db, booking)

    await log_record_change(db, current_user, AuditAction.BOOKING_RETURNED, "booking", booking.booking_id)
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return BookingDetail.from_booking(booking)


@router.post("/{booking_id}/cancel", response_model=BookingDetail)
async def cancel_booking(
    booking_id: int,
    cancel_data: Optional[BookingCancelRequest] = None,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Cancel an open booking (admin-only)."""
    reason = cancel_data.reason if cancel_data else None
    booking = await booking_service.get_booking_or_404(db, booking_id)
    await booking_service.cancel_booking(db, booking, reason)

    await log_record_change(
        db, admin, AuditAction.BOOKING_CANCELLED, "booking", booking.booking_id,
        metadata={"reason": reason} if reason else None,
    )
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return BookingDetail.from_booking(booking)


@router.delete("/{booking_id}", response_model=MessageResponse)
async def delete_booking(
    booking_id: int,
    current_user: dict = Depends(require_permission(Permission.BOOKINGS_DELETE)),
    db: AsyncSession = Depends(get_db)
):
    """Delete a booking and its payments, freeing the vehicle if it was out on it."""
    booking = await booking_service.get_booking_or_404(db, booking_id)
    reference = booking.booking_id

    if booking.status in (BookingStatus.ACTIVE, BookingStatus.OVERDUE):
        await booking_service.sync_vehicle_status(db, booking, BookingStatus.CANCELLED)

    await db.delete(booking)
    await db.commit()

    await log_record_change(db, current_user, AuditAction.BOOKING_DELETED, "booking", reference)
    return MessageResponse(message=f"Booking {reference} deleted")
