"""
Vehicle and maintenance Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List
from rentaldesk.app.models.enums import VehicleStatus, BookingStatus


class VehicleCreate(BaseModel):
    """Schema for adding a vehicle to the fleet."""
    type: str = Field(..., min_length=1, max_length=50, description="Vehicle category, e.g. scooter, bike, car")
    model: str = Field(..., min_length=1, max_length=100)
    number_plate: str = Field(..., min_length=1, max_length=50, description="Unique registration number")
    daily_rate: float = Field(..., gt=0, description="Rental price per day")
    hourly_rate: Optional[float] = Field(None, ge=0)
    weekly_rate: Optional[float] = Field(None, ge=0)
    status: VehicleStatus = VehicleStatus.AVAILABLE
    manufacturer: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    color: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class VehicleUpdate(BaseModel):
    """Schema for editing a vehicle. Status changes go through the status endpoint."""
    type: Optional[str] = Field(None, min_length=1, max_length=50)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    number_plate: Optional[str] = Field(None, min_length=1, max_length=50)
    daily_rate: Optional[float] = Field(None, gt=0)
    hourly_rate: Optional[float] = Field(None, ge=0)
    weekly_rate: Optional[float] = Field(None, ge=0)
    manufacturer: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    color: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class VehicleStatusUpdate(BaseModel):
    status: VehicleStatus


class VehicleResponse(BaseModel):
    id: int
    type: str
    model: str
    number_plate: str
    status: VehicleStatus
    hourly_rate: Optional[float] = None
    daily_rate: float
    weekly_rate: Optional[float] = None
    manufacturer: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    last_maintenance_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleBookingItem(BaseModel):
    """Entry in a vehicle's rental history."""
    id: int
    booking_id: str
    status: BookingStatus
    start_date: datetime
    end_date: datetime
    return_date: Optional[datetime] = None
    total_amount: float
    customer_id: int
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None

    @classmethod
    def from_booking(cls, booking) -> "VehicleBookingItem":
        customer = booking.customer
        return cls(
            id=booking.id,
            booking_id=booking.booking_id,
            status=booking.status,
            start_date=booking.start_date,
            end_date=booking.end_date,
            return_date=booking.return_date,
            total_amount=booking.total_amount,
            customer_id=booking.customer_id,
            customer_name=customer.full_name if customer else None,
            customer_phone=customer.phone if customer else None,
        )


class VehicleDetailResponse(VehicleResponse):
    booking_history: List[VehicleBookingItem] = []


class VehicleListResponse(BaseModel):
    vehicles: List[VehicleResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class VehicleDeleteResponse(BaseModel):
    success: bool = True
    message: str
    retired: bool = False
    vehicle: Optional[VehicleResponse] = None


class MaintenanceCreate(BaseModel):
    """Schema for recording a service visit."""
    service_type: str = Field(..., min_length=1, max_length=100, description="e.g. oil change, tyre replacement")
    service_date: date
    cost: float = Field(0.0, ge=0)
    vendor: Optional[str] = Field(None, max_length=200)
    invoice_number: Optional[str] = Field(None, max_length=100)
    odometer_reading: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class MaintenanceResponse(BaseModel):
    id: int
    vehicle_id: int
    service_type: str
    service_date: date
    cost: float
    vendor: Optional[str] = None
    invoice_number: Optional[str] = None
    odometer_reading: Optional[int] = None
    performed_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
