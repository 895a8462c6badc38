"""
Customer endpoints.
"""

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from rentaldesk.app.core.exceptions import ConflictError, ResourceNotFoundError
from rentaldesk.app.core.guards import require_permission
from rentaldesk.app.db.session import get_db
from rentaldesk.app.models.booking import Booking
from rentaldesk.app.models.customer import Customer
from rentaldesk.app.models.enums import Permission, OPEN_BOOKING_STATUSES
from rentaldesk.app.schemas.common import MessageResponse, total_pages
from rentaldesk.app.schemas.customer import (
    CustomerCreate, CustomerUpdate, CustomerResponse, CustomerDetailResponse,
    CustomerListResponse, CustomerBookingItem,
)
from rentaldesk.app.services.audit import log_record_change, AuditAction
from rentaldesk.app.services.customers import ensure_phone_available

router = APIRouter(prefix="/customers", tags=["Customers"])


async def _paginate(db: AsyncSession, filters: list, page: int, page_size: int) -> CustomerListResponse:
    total = (await db.execute(select(func.count(Customer.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Customer)
        .where(*filters)
        .order_by(Customer.created_at.desc(), Customer.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return CustomerListResponse(
        customers=[CustomerResponse.model_validate(c) for c in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    )


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    current_user: dict = Depends(require_permission(Permission.CUSTOMERS_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    """All customers, newest first."""
    return await _paginate(db, [], page, page_size)


@router.get("/search", response_model=CustomerListResponse)
async def search_customers(
    q: str = Query("", max_length=100, description="Matches first/last name, phone or email"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(require_permission(Permission.CUSTOMERS_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    """Case-insensitive customer search."""
    filters = []
    term = q.strip()
    if term:
        pattern = f"%{term}%"
        filters.append(or_(
            Customer.first_name.ilike(pattern),
            Customer.last_name.ilike(pattern),
            Customer.phone.ilike(pattern),
            Customer.email.ilike(pattern),
        ))
    return await _paginate(db, filters, page, limit)


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    current_user: dict = Depends(require_permission(Permission.CUSTOMERS_CREATE)),
    db: AsyncSession = Depends(get_db)
):
    await ensure_phone_available(db, customer_data.phone)

    customer = Customer(**customer_data.model_dump())
    db.add(customer)
    await db.commit()

    await log_record_change(db, current_user, AuditAction.CUSTOMER_CREATED, "customer", customer.id)
    await db.refresh(customer)
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerDetailResponse)
async def get_customer(
    customer_id: int,
    current_user: dict = Depends(require_permission(Permission.CUSTOMERS_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    """Customer profile with their bookings (newest first)."""
    result = await db.execute(
        select(Customer)
        .where(Customer.id == customer_id)
        .options(selectinload(Customer.bookings).selectinload(Booking.vehicle))
    )
    customer = result.scalar_one_or_none()
    if not customer:
        raise ResourceNotFoundError("Customer", customer_id)

    return CustomerDetailResponse(
        **CustomerResponse.model_validate(customer).model_dump(),
        bookings=[CustomerBookingItem.from_booking(b) for b in customer.bookings],
    )


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: int,
    customer_data: CustomerUpdate,
    current_user: dict = Depends(require_permission(Permission.CUSTOMERS_UPDATE)),
    db: AsyncSession = Depends(get_db)
):
    """Edit a customer; the phone must stay unique."""
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise ResourceNotFoundError("Customer", customer_id)

    update_data = customer_data.model_dump(exclude_unset=True)
    for required in ("first_name", "last_name", "phone"):
        if required in update_data and update_data[required] is None:
            update_data.pop(required)

    if "phone" in update_data and update_data["phone"] != customer.phone:
        await ensure_phone_available(db, update_data["phone"], exclude_id=customer.id)

    for field, value in update_data.items():
        setattr(customer, field, value)
    await db.commit()

    await log_record_change(
        db, current_user, AuditAction.CUSTOMER_UPDATED, "customer", customer.id,
        metadata={"fields": sorted(update_data.keys())},
    )
    await db.refresh(customer)
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", response_model=MessageResponse)
async def delete_customer(
    customer_id: int,
    current_user: dict = Depends(require_permission(Permission.CUSTOMERS_DELETE)),
    db: AsyncSession = Depends(get_db)
):
    """Delete a customer who has no bookings."""
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise ResourceNotFoundError("Customer", customer_id)

    open_count = (await db.execute(
        select(func.count(Booking.id)).where(
            Booking.customer_id == customer_id,
            Booking.status.in_(OPEN_BOOKING_STATUSES),
        )
    )).scalar() or 0
    if open_count:
        raise ConflictError(
            "Cannot delete customer with active bookings",
            details={"open_bookings": open_count},
        )

    history_count = (await db.execute(
        select(func.count(Booking.id)).where(Booking.customer_id == customer_id)
    )).scalar() or 0
    if history_count:
        raise ConflictError(
            "Cannot delete customer with booking history",
            details={"bookings": history_count},
        )

    await db.delete(customer)
    await db.commit()

    await log_record_change(db, current_user, AuditAction.CUSTOMER_DELETED, "customer", customer_id)
    return MessageResponse(message="Customer deleted")
