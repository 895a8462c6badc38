"""
Booking database model.
"""

from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Enum, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rentaldesk.app.db.session import Base
from rentaldesk.app.models.enums import BookingStatus, BookingPaymentStatus, PaymentMethod


class Booking(Base):
    """
    Reservation of a vehicle by a customer for a date range.

    ``booking_id`` is the human-facing reference printed on receipts; ``id``
    is the surrogate key used by foreign keys and URLs.
    """
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    booking_id = Column(String(50), unique=True, index=True, nullable=False)

    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="RESTRICT"), nullable=False, index=True)
    worker_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    return_date = Column(DateTime, nullable=True)

    status = Column(Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False, index=True)

    # Pricing
    base_price = Column(Float, nullable=False, default=0.0)
    security_deposit = Column(Float, nullable=False, default=0.0)
    total_amount = Column(Float, nullable=False, default=0.0)
    payment_status = Column(Enum(BookingPaymentStatus), default=BookingPaymentStatus.PENDING, nullable=False)
    payment_method = Column(Enum(PaymentMethod), default=PaymentMethod.CASH, nullable=False)

    notes = Column(Text, nullable=True)

    # Captured at the counter: base64 document images and signature
    documents = Column(JSON, nullable=True)
    signature = Column(Text, nullable=True)

    # Contact snapshot at booking time
    father_phone = Column(String(20), nullable=True)
    mother_phone = Column(String(20), nullable=True)
    emergency_contact1 = Column(String(20), nullable=True)
    emergency_contact2 = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    customer = relationship("Customer", back_populates="bookings")
    vehicle = relationship("Vehicle", back_populates="bookings")
    worker = relationship("User")
    payments = relationship(
        "Payment",
        back_populates="booking",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Booking(id={self.id}, booking_id='{self.booking_id}', status='{self.status.value}')>"
