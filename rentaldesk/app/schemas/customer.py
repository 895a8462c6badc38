"""
Customer Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import date, datetime
from typing import Optional, List
from rentaldesk.app.models.enums import BookingStatus, BookingPaymentStatus
from rentaldesk.app.schemas.common import PHONE_PATTERN


class CustomerFields(BaseModel):
    """Optional profile fields shared by create and update payloads."""
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
    photo_url: Optional[str] = None
    dl_front_url: Optional[str] = None
    dl_back_url: Optional[str] = None
    aadhar_front_url: Optional[str] = None
    aadhar_back_url: Optional[str] = None
    notes: Optional[str] = None


class CustomerCreate(CustomerFields):
    """Schema for registering a customer directly."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., pattern=PHONE_PATTERN, description="10-digit mobile number, unique per customer")


class CustomerUpdate(CustomerFields):
    """Schema for editing a customer. Only provided fields change."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)


class CustomerResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    full_name: str
    email: Optional[str] = None
    phone: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    father_phone: Optional[str] = None
    mother_phone: Optional[str] = None
    emergency_contact1: Optional[str] = None
    emergency_contact2: Optional[str] = None
    dl_number: Optional[str] = None
    dl_expiry: Optional[date] = None
    dob: Optional[date] = None
    aadhar_number: Optional[str] = None
    photo_url: Optional[str] = None
    dl_front_url: Optional[str] = None
    dl_back_url: Optional[str] = None
    aadhar_front_url: Optional[str] = None
    aadhar_back_url: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomerBookingItem(BaseModel):
    """A booking as shown on the customer's page."""
    id: int
    booking_id: str
    status: BookingStatus
    start_date: datetime
    end_date: datetime
    total_amount: float
    payment_status: BookingPaymentStatus
    vehicle_id: int
    vehicle_model: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_number: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_booking(cls, booking) -> "CustomerBookingItem":
        vehicle = booking.vehicle
        return cls(
            id=booking.id,
            booking_id=booking.booking_id,
            status=booking.status,
            start_date=booking.start_date,
            end_date=booking.end_date,
            total_amount=booking.total_amount,
            payment_status=booking.payment_status,
            vehicle_id=booking.vehicle_id,
            vehicle_model=vehicle.model if vehicle else None,
            vehicle_type=vehicle.type if vehicle else None,
            vehicle_number=vehicle.number_plate if vehicle else None,
            created_at=booking.created_at,
        )


class CustomerDetailResponse(CustomerResponse):
    bookings: List[CustomerBookingItem] = []


class CustomerListResponse(BaseModel):
    customers: List[CustomerResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
