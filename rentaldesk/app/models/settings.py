"""
Business settings database model (single row).
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from rentaldesk.app.db.session import Base


DEFAULT_BOOKING_SETTINGS = {
    "min_booking_duration": 1,
    "max_booking_duration": 30,
    "advance_booking_days": 30,
    "cancellation_period": 24,
    "late_return_fee": 500,
}

DEFAULT_NOTIFICATION_SETTINGS = {
    "email_notifications": True,
    "sms_notifications": True,
    "booking_confirmation": True,
    "booking_reminder": True,
    "payment_reminder": True,
    "return_reminder": True,
}


class BusinessSettings(Base):
    """Company profile plus booking and notification preferences."""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_name = Column(String(200), nullable=False, default="Go On Riders")
    contact_email = Column(String(255), nullable=False, default="")
    contact_phone = Column(String(20), nullable=False, default="")
    address = Column(Text, nullable=False, default="")
    city = Column(String(100), nullable=False, default="")
    state = Column(String(100), nullable=False, default="")
    pincode = Column(String(20), nullable=False, default="")
    gst_number = Column(String(50), nullable=False, default="")
    booking_settings = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_BOOKING_SETTINGS))
    notification_settings = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_NOTIFICATION_SETTINGS))
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<BusinessSettings(id={self.id}, company='{self.company_name}')>"
