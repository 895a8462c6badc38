"""
Customer lookup and upsert helpers.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentaldesk.app.core.exceptions import ConflictError
from rentaldesk.app.models.customer import Customer
from rentaldesk.app.schemas.booking import BookingCustomerDetails

logger = logging.getLogger(__name__)

# Profile fields a booking submission may refresh on an existing customer
UPSERT_FIELDS = (
    "email", "address", "city", "state", "pincode",
    "father_phone", "mother_phone", "emergency_contact1", "emergency_contact2",
    "dl_number", "dl_expiry", "dob", "aadhar_number",
)


def split_full_name(full_name: str) -> Tuple[str, str]:
    """
    Split on the first space: "Asha Rani Verma" -> ("Asha", "Rani Verma").

    A single word becomes the first name with an empty last name.
    """
    parts = full_name.strip().split(" ", 1)
    first_name = parts[0]
    last_name = parts[1].strip() if len(parts) > 1 else ""
    return first_name, last_name


def resolve_names(details: BookingCustomerDetails) -> Tuple[str, str]:
    if details.full_name and details.full_name.strip():
        return split_full_name(details.full_name)
    return details.first_name.strip(), (details.last_name or "").strip()


async def find_customer_by_phone(db: AsyncSession, phone: str) -> Optional[Customer]:
    """First customer registered with this exact phone number."""
    result = await db.execute(
        select(Customer).where(Customer.phone == phone).order_by(Customer.id).limit(1)
    )
    return result.scalars().first()


async def ensure_phone_available(db: AsyncSession, phone: str, exclude_id: Optional[int] = None) -> None:
    """Raise 409 if another customer already uses ``phone``."""
    query = select(Customer.id).where(Customer.phone == phone)
    if exclude_id is not None:
        query = query.where(Customer.id != exclude_id)
    if (await db.execute(query.limit(1))).scalar_one_or_none() is not None:
        raise ConflictError(
            "A customer with this phone number already exists",
            details={"phone": phone},
        )


async def upsert_customer_by_phone(
    db: AsyncSession,
    details: BookingCustomerDetails
) -> Tuple[Customer, bool]:
    """
    Match the submitted customer by phone, updating or inserting.

    Only non-empty submitted values overwrite stored ones, so a sparse
    re-submission never blanks out an existing profile. The caller owns the
    transaction; this only flushes.

    Returns:
        (customer, created)
    """
    first_name, last_name = resolve_names(details)
    submitted = {
        field: getattr(details, field)
        for field in UPSERT_FIELDS
        if getattr(details, field) not in (None, "")
    }

    customer = await find_customer_by_phone(db, details.phone)
    if customer:
        customer.first_name = first_name
        if last_name:
            customer.last_name = last_name
        for field, value in submitted.items():
            setattr(customer, field, value)
        await db.flush()
        logger.info("Updated existing customer %s from booking submission", customer.id)
        return customer, False

    customer = Customer(
        first_name=first_name,
        last_name=last_name,
        phone=details.phone,
        **submitted,
    )
    db.add(customer)
    await db.flush()
    logger.info("Created customer %s from booking submission", customer.id)
    return customer, True
