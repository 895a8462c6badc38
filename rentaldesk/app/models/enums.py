"""
Enumerations shared by the rental back-office models.
"""

import enum


class UserRole(str, enum.Enum):
    """
    Staff roles.

    Roles:
        ADMIN: Full access, holds every permission
        WORKER: Front-desk staff, limited to the permissions on their record
    """
    ADMIN = "admin"
    WORKER = "worker"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Permission(str, enum.Enum):
    """Fine-grained capabilities a worker can be granted."""
    DASHBOARD_STATS = "dashboard.stats"
    BOOKINGS_VIEW = "bookings.view"
    BOOKINGS_CREATE = "bookings.create"
    BOOKINGS_UPDATE = "bookings.update"
    BOOKINGS_DELETE = "bookings.delete"
    BOOKINGS_RETURN = "bookings.return"
    VEHICLES_VIEW = "vehicles.view"
    VEHICLES_CREATE = "vehicles.create"
    VEHICLES_UPDATE = "vehicles.update"
    VEHICLES_DELETE = "vehicles.delete"
    CUSTOMERS_VIEW = "customers.view"
    CUSTOMERS_CREATE = "customers.create"
    CUSTOMERS_UPDATE = "customers.update"
    CUSTOMERS_DELETE = "customers.delete"
    PAYMENTS_VIEW = "payments.view"
    PAYMENTS_CREATE = "payments.create"
    PAYMENTS_UPDATE = "payments.update"
    REPORTS_VIEW = "reports.view"
    SETTINGS_VIEW = "settings.view"
    SETTINGS_UPDATE = "settings.update"
    ALL = "*"


DEFAULT_WORKER_PERMISSIONS = [
    Permission.DASHBOARD_STATS,
    Permission.BOOKINGS_VIEW,
    Permission.BOOKINGS_CREATE,
    Permission.BOOKINGS_UPDATE,
    Permission.BOOKINGS_RETURN,
    Permission.VEHICLES_VIEW,
    Permission.CUSTOMERS_VIEW,
    Permission.CUSTOMERS_CREATE,
    Permission.PAYMENTS_VIEW,
    Permission.PAYMENTS_CREATE,
    Permission.SETTINGS_VIEW,
]


class VehicleStatus(str, enum.Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class BookingStatus(str, enum.Enum):
    """
    Booking lifecycle.

    PENDING -> ACTIVE -> COMPLETED, with CANCELLED reachable from any open
    state and OVERDUE set on active bookings past their end date.
    """
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"


# Bookings that still hold the vehicle
OPEN_BOOKING_STATUSES = [BookingStatus.PENDING, BookingStatus.ACTIVE, BookingStatus.OVERDUE]


class BookingPaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    OTHER = "other"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
