"""
Payment Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from rentaldesk.app.models.enums import PaymentMethod, PaymentStatus, BookingPaymentStatus


class PaymentCreate(BaseModel):
    """Schema for recording money received against a booking."""
    booking_id: int = Field(..., description="Booking primary key")
    amount: float = Field(..., gt=0)
    method: PaymentMethod = PaymentMethod.CASH
    status: PaymentStatus = PaymentStatus.COMPLETED
    transaction_id: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    amount: Optional[float] = Field(None, gt=0)
    method: Optional[PaymentMethod] = None
    status: Optional[PaymentStatus] = None
    transaction_id: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    booking_id: int
    booking_reference: Optional[str] = None
    customer_name: Optional[str] = None
    amount: float
    method: PaymentMethod
    status: PaymentStatus
    transaction_id: Optional[str] = None
    received_by: Optional[int] = None
    received_by_name: Optional[str] = None
    notes: Optional[str] = None
    booking_payment_status: Optional[BookingPaymentStatus] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_payment(cls, payment) -> "PaymentResponse":
        booking = payment.booking
        customer = booking.customer if booking else None
        receiver = payment.receiver
        return cls(
            id=payment.id,
            booking_id=payment.booking_id,
            booking_reference=booking.booking_id if booking else None,
            customer_name=customer.full_name if customer else None,
            amount=payment.amount,
            method=payment.method,
            status=payment.status,
            transaction_id=payment.transaction_id,
            received_by=payment.received_by,
            received_by_name=receiver.full_name if receiver else None,
            notes=payment.notes,
            booking_payment_status=booking.payment_status if booking else None,
            created_at=payment.created_at,
            updated_at=payment.updated_at,
        )


class PaymentListResponse(BaseModel):
    payments: List[PaymentResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
