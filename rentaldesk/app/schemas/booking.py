"""
Booking Pydantic schemas.

``BookingCreate`` mirrors the counter form: pricing block, customer details
(or an existing customer id), captured documents and signature.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from datetime import date, datetime
from typing import Optional, List, Dict, Any
from rentaldesk.app.models.enums import BookingStatus, BookingPaymentStatus, PaymentMethod
from rentaldesk.app.schemas.common import PHONE_PATTERN, to_naive_utc


class BookingPricing(BaseModel):
    base_price: float = Field(..., ge=0, description="Rental charge before deposit")
    security_deposit: float = Field(0.0, ge=0)
    total_amount: Optional[float] = Field(None, ge=0, description="Defaults to base_price when omitted")


class BookingCustomerDetails(BaseModel):
    """Customer block of a booking submission, matched to existing customers by phone."""
    full_name: Optional[str] = Field(None, max_length=200, description="Split into first/last name on the first space")
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    pincode: Optional[str] = Field(None, max_length=20)
    father_phone: Optional[str] = Field(None, max_length=20)
    mother_phone: Optional[str] = Field(None, max_length=20)
    emergency_contact1: Optional[str] = Field(None, max_length=20)
    emergency_contact2: Optional[str] = Field(None, max_length=20)
    dl_number: Optional[str] = Field(None, max_length=50)
    dl_expiry: Optional[date] = None
    dob: Optional[date] = None
    aadhar_number: Optional[str] = Field(None, max_length=20)

    @model_validator(mode="after")
    def require_name(self):
        if not (self.full_name and self.full_name.strip()) and not (self.first_name and self.first_name.strip()):
            raise ValueError("full_name or first_name is required")
        return self


class BookingCreate(BaseModel):
    """Schema for submitting a new booking."""
    vehicle_id: int
    start_date: datetime
    end_date: datetime
    pricing: BookingPricing
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None

    customer_id: Optional[int] = Field(None, description="Existing customer; alternative to customer_details")
    customer_details: Optional[BookingCustomerDetails] = None

    documents: Optional[Dict[str, Any]] = Field(None, description="Base64 document images keyed by document type")
    signature: Optional[str] = Field(None, description="Base64 signature image")

    father_phone: Optional[str] = Field(None, max_length=20)
    mother_phone: Optional[str] = Field(None, max_length=20)
    emergency_contact1: Optional[str] = Field(None, max_length=20)
    emergency_contact2: Optional[str] = Field(None, max_length=20)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_timezone(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @model_validator(mode="after")
    def require_customer(self):
        if self.customer_id is None and self.customer_details is None:
            raise ValueError("customer_id or customer_details is required")
        return self


class BookingUpdate(BaseModel):
    """Partial edit of an existing booking."""
    status: Optional[BookingStatus] = None
    payment_status: Optional[BookingPaymentStatus] = None
    notes: Optional[str] = None
    documents: Optional[Dict[str, Any]] = None
    signature: Optional[str] = None
    father_phone: Optional[str] = Field(None, max_length=20)
    mother_phone: Optional[str] = Field(None, max_length=20)
    emergency_contact1: Optional[str] = Field(None, max_length=20)
    emergency_contact2: Optional[str] = Field(None, max_length=20)


class BookingDocumentsUpdate(BaseModel):
    documents: Optional[Dict[str, Any]] = None
    signature: Optional[str] = None


class BookingCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500, description="Appended to the booking notes")


class BookingListItem(BaseModel):
    """Booking row with the customer and vehicle columns the list view shows."""
    id: int
    booking_id: str
    customer_id: int
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    vehicle_id: int
    vehicle_model: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_number: Optional[str] = None
    worker_id: Optional[int] = None
    start_date: datetime
    end_date: datetime
    return_date: Optional[datetime] = None
    status: BookingStatus
    amount: float
    payment_status: BookingPaymentStatus
    payment_method: PaymentMethod
    created_at: datetime

    @classmethod
    def base_fields(cls, booking) -> Dict[str, Any]:
        customer = booking.customer
        vehicle = booking.vehicle
        return dict(
            id=booking.id,
            booking_id=booking.booking_id,
            customer_id=booking.customer_id,
            customer_name=customer.full_name if customer else None,
            customer_phone=customer.phone if customer else None,
            vehicle_id=booking.vehicle_id,
            vehicle_model=vehicle.model if vehicle else None,
            vehicle_type=vehicle.type if vehicle else None,
            vehicle_number=vehicle.number_plate if vehicle else None,
            worker_id=booking.worker_id,
            start_date=booking.start_date,
            end_date=booking.end_date,
            return_date=booking.return_date,
            status=booking.status,
            amount=booking.total_amount,
            payment_status=booking.payment_status,
            payment_method=booking.payment_method,
            created_at=booking.created_at,
        )

    @classmethod
    def from_booking(cls, booking) -> "BookingListItem":
        return cls(**cls.base_fields(booking))


class BookingDetail(BookingListItem):
    """Full booking view, including captured documents."""
    customer_email: Optional[str] = None
    worker_name: Optional[str] = None
    base_price: float
    security_deposit: float
    total_amount: float
    notes: Optional[str] = None
    documents: Dict[str, Any] = {}
    signature: Optional[str] = None
    father_phone: Optional[str] = None
    mother_phone: Optional[str] = None
    emergency_contact1: Optional[str] = None
    emergency_contact2: Optional[str] = None
    updated_at: datetime

    @classmethod
    def from_booking(cls, booking) -> "BookingDetail":
        worker = booking.worker
        return cls(
            **cls.base_fields(booking),
            customer_email=booking.customer.email if booking.customer else None,
            worker_name=worker.full_name if worker else None,
            base_price=booking.base_price,
            security_deposit=booking.security_deposit,
            total_amount=booking.total_amount,
            notes=booking.notes,
            documents=booking.documents or {},
            signature=booking.signature,
            father_phone=booking.father_phone,
            mother_phone=booking.mother_phone,
            emergency_contact1=booking.emergency_contact1,
            emergency_contact2=booking.emergency_contact2,
            updated_at=booking.updated_at,
        )


class BookingListResponse(BaseModel):
    bookings: List[BookingListItem]
    total: int


class BookingCreateResponse(BaseModel):
    success: bool = True
    booking: BookingDetail
