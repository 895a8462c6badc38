"""
Report and dashboard schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List, Dict
from rentaldesk.app.models.enums import BookingStatus, BookingPaymentStatus
from rentaldesk.app.schemas.booking import BookingListItem


class VehicleTypeRevenue(BaseModel):
    vehicle_type: str
    bookings: int
    revenue: float


class MonthlyRevenue(BaseModel):
    month: str  # YYYY-MM
    bookings: int
    revenue: float


class VehicleUtilization(BaseModel):
    total: int = 0
    available: int = 0
    rented: int = 0
    maintenance: int = 0
    retired: int = 0
    utilization_rate: float = 0.0


class ReportSummary(BaseModel):
    range: str
    start_date: Optional[datetime] = None
    end_date: datetime
    total_bookings: int
    pending_bookings: int
    active_bookings: int
    completed_bookings: int
    cancelled_bookings: int
    total_revenue: float
    vehicle_utilization: VehicleUtilization
    revenue_by_vehicle_type: List[VehicleTypeRevenue]
    monthly_revenue: List[MonthlyRevenue]


class BookingReportStats(BaseModel):
    total_bookings: int
    pending: int
    active: int
    completed: int
    cancelled: int
    total_revenue: float
    average_booking_value: float
    average_duration_days: float


class TypeStats(BaseModel):
    count: int
    revenue: float


class BookingReportRow(BaseModel):
    id: int
    booking_id: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_number: Optional[str] = None
    start_date: datetime
    end_date: datetime
    duration_days: int
    status: BookingStatus
    total_amount: float
    payment_status: BookingPaymentStatus


class BookingReport(BaseModel):
    start_date: datetime
    end_date: datetime
    stats: BookingReportStats
    duration_distribution: Dict[str, int]
    vehicle_type_stats: Dict[str, TypeStats]
    bookings: List[BookingReportRow]


class MethodStats(BaseModel):
    count: int = 0
    amount: float = 0.0


class PaymentReportGroup(BaseModel):
    key: str
    label: str
    count: int
    total_amount: float
    average_amount: float
    unique_bookings: int
    unique_customers: int
    by_method: Dict[str, MethodStats]


class PaymentReportSummary(BaseModel):
    total_payments: int
    total_amount: float
    average_amount: float
    unique_bookings: int
    unique_customers: int
    by_method: Dict[str, MethodStats]


class PaymentReport(BaseModel):
    type: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    summary: PaymentReportSummary
    groups: List[PaymentReportGroup]


class AdminDashboardStats(BaseModel):
    total_customers: int
    total_vehicles: int
    available_vehicles: int
    total_bookings: int
    active_bookings: int
    total_revenue: float
    today_revenue: float
    pending_payments: float
    recent_bookings: List[BookingListItem]


class WorkerDashboardStats(BaseModel):
    today_bookings: int
    active_bookings: int
    today_revenue: float
    recent_bookings: List[BookingListItem]
