"""
Report endpoints.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from rentaldesk.app.core.exceptions import BadRequestError
from rentaldesk.app.core.guards import require_permission
from rentaldesk.app.db.session import get_db
from rentaldesk.app.models.enums import Permission, PaymentMethod
from rentaldesk.app.schemas.report import ReportSummary, BookingReport, PaymentReport
from rentaldesk.app.services.reports import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("", response_model=ReportSummary)
async def get_report_summary(
    range_name: str = Query(
        "last30days",
        alias="range",
        description="today, last7days, last30days, thisMonth, lastMonth, thisYear or all",
    ),
    current_user: dict = Depends(require_permission(Permission.REPORTS_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    return await ReportService.summary(db, range_name)


@router.get("/bookings", response_model=BookingReport)
async def get_booking_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: dict = Depends(require_permission(Permission.REPORTS_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    """Bookings created between start_date and end_date (both required, inclusive)."""
    if start_date is None or end_date is None:
        raise BadRequestError("start_date and end_date are required")
    return await ReportService.booking_report(db, start_date, end_date)


@router.get("/payments", response_model=PaymentReport)
async def get_payment_report(
    report_type: str = Query(
        "daily",
        alias="type",
        description="daily, weekly, monthly, yearly, payment_method or worker",
    ),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    method: Optional[PaymentMethod] = Query(None),
    current_user: dict = Depends(require_permission(Permission.REPORTS_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    return await ReportService.payment_report(db, report_type, start_date, end_date, method)
