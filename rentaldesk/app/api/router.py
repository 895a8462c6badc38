"""
API Router.

Aggregates all endpoint routers; mounted under ``settings.api_prefix``.
"""

from fastapi import APIRouter
from rentaldesk.app.api.endpoints import (
    auth, users, customers, vehicles, bookings, payments,
    reports, dashboard, settings, admin,
)

router = APIRouter()

router.include_router(auth.router)
router.include_router(users.router)

# Business records
router.include_router(customers.router)
router.include_router(vehicles.router)
router.include_router(bookings.router)
router.include_router(payments.router)

# Read-only aggregates
router.include_router(reports.router)
router.include_router(dashboard.admin_router)
router.include_router(dashboard.worker_router)

router.include_router(settings.router)
router.include_router(admin.router)
