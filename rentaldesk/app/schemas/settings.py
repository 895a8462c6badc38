"""
Business settings schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class BookingSettings(BaseModel):
    min_booking_duration: int = Field(1, ge=1, description="Days")
    max_booking_duration: int = Field(30, ge=1, description="Days")
    advance_booking_days: int = Field(30, ge=0)
    cancellation_period: int = Field(24, ge=0, description="Hours before start")
    late_return_fee: float = Field(500, ge=0)


class NotificationSettings(BaseModel):
    email_notifications: bool = True
    sms_notifications: bool = True
    booking_confirmation: bool = True
    booking_reminder: bool = True
    payment_reminder: bool = True
    return_reminder: bool = True


class BookingSettingsUpdate(BaseModel):
    min_booking_duration: Optional[int] = Field(None, ge=1)
    max_booking_duration: Optional[int] = Field(None, ge=1)
    advance_booking_days: Optional[int] = Field(None, ge=0)
    cancellation_period: Optional[int] = Field(None, ge=0)
    late_return_fee: Optional[float] = Field(None, ge=0)


class NotificationSettingsUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    booking_confirmation: Optional[bool] = None
    booking_reminder: Optional[bool] = None
    payment_reminder: Optional[bool] = None
    return_reminder: Optional[bool] = None


class SettingsUpdate(BaseModel):
    """Partial settings update; nested blocks are merged key by key."""
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_email: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    pincode: Optional[str] = Field(None, max_length=20)
    gst_number: Optional[str] = Field(None, max_length=50)
    booking_settings: Optional[BookingSettingsUpdate] = None
    notification_settings: Optional[NotificationSettingsUpdate] = None


class SettingsResponse(BaseModel):
    company_name: str
    contact_email: str
    contact_phone: str
    address: str
    city: str
    state: str
    pincode: str
    gst_number: str
    booking_settings: BookingSettings
    notification_settings: NotificationSettings
    updated_by: Optional[int] = None
    updated_at: datetime

    class Config:
        from_attributes = True
