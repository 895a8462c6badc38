"""
Report aggregation service.

Read-only queries behind the reports pages. Counts and sums run in SQL;
calendar bucketing (months, weeks) is done in Python so the same code works on
PostgreSQL and SQLite.
"""

import math
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rentaldesk.app.core.exceptions import BadRequestError
from rentaldesk.app.models.booking import Booking
from rentaldesk.app.models.enums import BookingStatus, PaymentMethod, PaymentStatus, VehicleStatus
from rentaldesk.app.models.payment import Payment
from rentaldesk.app.models.vehicle import Vehicle
from rentaldesk.app.schemas.report import (
    ReportSummary, VehicleUtilization, VehicleTypeRevenue, MonthlyRevenue,
    BookingReport, BookingReportStats, BookingReportRow, TypeStats,
    PaymentReport, PaymentReportGroup, PaymentReportSummary, MethodStats,
)

REPORT_RANGES = ("today", "last7days", "last30days", "thisMonth", "lastMonth", "thisYear", "all")
PAYMENT_GROUPINGS = ("daily", "weekly", "monthly", "yearly", "payment_method", "worker")
DURATION_BUCKETS = ("1 day", "2-3 days", "4-7 days", "7+ days")


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def resolve_range(name: str, now: Optional[datetime] = None) -> Tuple[Optional[datetime], datetime]:
    """
    Translate a named range into [start, end) bounds (naive UTC).

    ``all`` has no lower bound.
    """
    now = now or datetime.utcnow()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    month_start = midnight.replace(day=1)

    if name == "today":
        return midnight, now
    if name == "last7days":
        return now - timedelta(days=7), now
    if name == "last30days":
        return now - timedelta(days=30), now
    if name == "thisMonth":
        return month_start, now
    if name == "lastMonth":
        year, month = _shift_month(month_start.year, month_start.month, -1)
        return month_start.replace(year=year, month=month), month_start
    if name == "thisYear":
        return month_start.replace(month=1), now
    if name == "all":
        return None, now
    raise BadRequestError(
        f"Unknown report range '{name}'",
        details={"allowed": list(REPORT_RANGES)},
    )


def duration_days(start: datetime, end: datetime) -> int:
    """Rental length in whole days, rounded up, at least one."""
    return max(1, math.ceil((end - start).total_seconds() / 86400))


def duration_bucket(days: int) -> str:
    if days <= 1:
        return "1 day"
    if days <= 3:
        return "2-3 days"
    if days <= 7:
        return "4-7 days"
    return "7+ days"


def _round(value: float) -> float:
    return round(value or 0.0, 2)


class ReportService:

    @staticmethod
    async def summary(db: AsyncSession, range_name: str) -> ReportSummary:
        """Booking, revenue and fleet overview for a named range."""
        start, end = resolve_range(range_name)
        in_range = [Booking.created_at < end]
        if start is not None:
            in_range.append(Booking.created_at >= start)
        billable = in_range + [Booking.status != BookingStatus.CANCELLED]

        # 1. Booking counts by status
        status_rows = await db.execute(
            select(Booking.status, func.count(Booking.id)).where(*in_range).group_by(Booking.status)
        )
        by_status = {status: count for status, count in status_rows.all()}

        # 2. Booked revenue (cancelled bookings excluded)
        revenue = (await db.execute(
            select(func.sum(Booking.total_amount)).where(*billable)
        )).scalar() or 0.0

        # 3. Fleet utilisation right now
        fleet_rows = await db.execute(select(Vehicle.status, func.count(Vehicle.id)).group_by(Vehicle.status))
        fleet = {status: count for status, count in fleet_rows.all()}
        in_service = sum(fleet.values()) - fleet.get(VehicleStatus.RETIRED, 0)
        utilization = VehicleUtilization(
            total=sum(fleet.values()),
            available=fleet.get(VehicleStatus.AVAILABLE, 0),
            rented=fleet.get(VehicleStatus.RENTED, 0),
            maintenance=fleet.get(VehicleStatus.MAINTENANCE, 0),
            retired=fleet.get(VehicleStatus.RETIRED, 0),
            utilization_rate=_round(fleet.get(VehicleStatus.RENTED, 0) * 100 / in_service) if in_service else 0.0,
        )

        # 4. Revenue by vehicle type
        type_rows = await db.execute(
            select(Vehicle.type, func.count(Booking.id), func.sum(Booking.total_amount))
            .join(Vehicle, Booking.vehicle_id == Vehicle.id)
            .where(*billable)
            .group_by(Vehicle.type)
            .order_by(func.sum(Booking.total_amount).desc())
        )
        by_type = [
            VehicleTypeRevenue(vehicle_type=vehicle_type, bookings=count, revenue=_round(total))
            for vehicle_type, count, total in type_rows.all()
        ]

        return ReportSummary(
            range=range_name,
            start_date=start,
            end_date=end,
            total_bookings=sum(by_status.values()),
            pending_bookings=by_status.get(BookingStatus.PENDING, 0),
            active_bookings=by_status.get(BookingStatus.ACTIVE, 0) + by_status.get(BookingStatus.OVERDUE, 0),
            completed_bookings=by_status.get(BookingStatus.COMPLETED, 0),
            cancelled_bookings=by_status.get(BookingStatus.CANCELLED, 0),
            total_revenue=_round(revenue),
            vehicle_utilization=utilization,
            revenue_by_vehicle_type=by_type,
            monthly_revenue=await ReportService.monthly_revenue(db, end),
        )

    @staticmethod
    async def monthly_revenue(db: AsyncSession, now: datetime, months: int = 12) -> List[MonthlyRevenue]:
        """Booked revenue per calendar month, oldest first, zero-filled."""
        year, month = _shift_month(now.year, now.month, -(months - 1))
        window_start = datetime(year, month, 1)

        rows = await db.execute(
            select(Booking.created_at, Booking.total_amount).where(
                Booking.created_at >= window_start,
                Booking.status != BookingStatus.CANCELLED,
            )
        )
        buckets: Dict[str, List[float]] = {}
        for offset in range(months):
            y, m = _shift_month(year, month, offset)
            buckets[f"{y:04d}-{m:02d}"] = [0, 0.0]
        for created_at, amount in rows.all():
            key = created_at.strftime("%Y-%m")
            if key in buckets:
                buckets[key][0] += 1
                buckets[key][1] += amount or 0.0

        return [
            MonthlyRevenue(month=key, bookings=count, revenue=_round(total))
            for key, (count, total) in buckets.items()
        ]

    @staticmethod
    async def booking_report(db: AsyncSession, start_date: date, end_date: date) -> BookingReport:
        """Bookings created between two dates (both inclusive)."""
        if end_date < start_date:
            raise BadRequestError("end_date must not be before start_date")
        start = datetime.combine(start_date, datetime.min.time())
        end = datetime.combine(end_date + timedelta(days=1), datetime.min.time())

        result = await db.execute(
            select(Booking)
            .where(Booking.created_at >= start, Booking.created_at < end)
            .options(selectinload(Booking.customer), selectinload(Booking.vehicle))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        bookings = result.scalars().all()

        counts = defaultdict(int)
        distribution = {bucket: 0 for bucket in DURATION_BUCKETS}
        type_stats: Dict[str, TypeStats] = {}
        rows = []
        revenue = 0.0
        billable = 0
        total_days = 0

        for booking in bookings:
            days = duration_days(booking.start_date, booking.end_date)
            counts[booking.status] += 1
            distribution[duration_bucket(days)] += 1
            total_days += days

            vehicle_type = booking.vehicle.type if booking.vehicle else "unknown"
            stats = type_stats.setdefault(vehicle_type, TypeStats(count=0, revenue=0.0))
            stats.count += 1
            if booking.status != BookingStatus.CANCELLED:
                revenue += booking.total_amount
                billable += 1
                stats.revenue = _round(stats.revenue + booking.total_amount)

            rows.append(BookingReportRow(
                id=booking.id,
                booking_id=booking.booking_id,
                customer_name=booking.customer.full_name if booking.customer else None,
                customer_phone=booking.customer.phone if booking.customer else None,
                vehicle_type=vehicle_type,
                vehicle_model=booking.vehicle.model if booking.vehicle else None,
                vehicle_number=booking.vehicle.number_plate if booking.vehicle else None,
                start_date=booking.start_date,
                end_date=booking.end_date,
                duration_days=days,
                status=booking.status,
                total_amount=booking.total_amount,
                payment_status=booking.payment_status,
            ))

        stats = BookingReportStats(
            total_bookings=len(bookings),
            pending=counts[BookingStatus.PENDING],
            active=counts[BookingStatus.ACTIVE] + counts[BookingStatus.OVERDUE],
            completed=counts[BookingStatus.COMPLETED],
            cancelled=counts[BookingStatus.CANCELLED],
            total_revenue=_round(revenue),
            average_booking_value=_round(revenue / billable) if billable else 0.0,
            average_duration_days=_round(total_days / len(bookings)) if bookings else 0.0,
        )

        return BookingReport(
            start_date=start,
            end_date=end,
            stats=stats,
            duration_distribution=distribution,
            vehicle_type_stats=type_stats,
            bookings=rows,
        )

    @staticmethod
    async def payment_report(
        db: AsyncSession,
        grouping: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        method: Optional[PaymentMethod] = None,
    ) -> PaymentReport:
        """Completed payments grouped by period, method or receiving worker."""
        if grouping not in PAYMENT_GROUPINGS:
            raise BadRequestError(
                f"Unknown report type '{grouping}'",
                details={"allowed": list(PAYMENT_GROUPINGS)},
            )

        filters = [Payment.status == PaymentStatus.COMPLETED]
        start = end = None
        if start_date:
            start = datetime.combine(start_date, datetime.min.time())
            filters.append(Payment.created_at >= start)
        if end_date:
            end = datetime.combine(end_date + timedelta(days=1), datetime.min.time())
            filters.append(Payment.created_at < end)
        if method:
            filters.append(Payment.method == method)

        result = await db.execute(
            select(Payment)
            .where(*filters)
            .options(selectinload(Payment.booking), selectinload(Payment.receiver))
            .order_by(Payment.created_at)
        )
        payments = result.scalars().all()

        groups: Dict[str, dict] = {}
        for payment in payments:
            key, label = _group_key(grouping, payment)
            group = groups.setdefault(key, {"label": label, "payments": []})
            group["payments"].append(payment)

        report_groups = [
            PaymentReportGroup(key=key, label=group["label"], **_aggregate(group["payments"]))
            for key, group in groups.items()
        ]
        if grouping in ("payment_method", "worker"):
            report_groups.sort(key=lambda g: g.total_amount, reverse=True)
        else:
            report_groups.sort(key=lambda g: g.key, reverse=True)

        overall = _aggregate(payments)
        return PaymentReport(
            type=grouping,
            start_date=start,
            end_date=end,
            summary=PaymentReportSummary(total_payments=overall.pop("count"), **overall),
            groups=report_groups,
        )


def _group_key(grouping: str, payment: Payment) -> Tuple[str, str]:
    created = payment.created_at
    if grouping == "daily":
        return created.strftime("%Y-%m-%d"), created.strftime("%d %b %Y")
    if grouping == "weekly":
        iso_year, iso_week, _ = created.isocalendar()
        monday = (created - timedelta(days=created.weekday())).date()
        return f"{iso_year}-W{iso_week:02d}", f"Week of {monday.strftime('%d %b %Y')}"
    if grouping == "monthly":
        return created.strftime("%Y-%m"), created.strftime("%B %Y")
    if grouping == "yearly":
        return created.strftime("%Y"), created.strftime("%Y")
    if grouping == "payment_method":
        return payment.method.value, payment.method.value.upper()
    # worker
    if payment.received_by is None:
        return "unassigned", "Unassigned"
    name = payment.receiver.full_name if payment.receiver else f"User {payment.received_by}"
    return str(payment.received_by), name


def _aggregate(payments) -> dict:
    total = sum(p.amount for p in payments)
    by_method: Dict[str, MethodStats] = {m.value: MethodStats() for m in PaymentMethod}
    for payment in payments:
        stats = by_method[payment.method.value]
        stats.count += 1
        stats.amount = _round(stats.amount + payment.amount)
    return {
        "count": len(payments),
        "total_amount": _round(total),
        "average_amount": _round(total / len(payments)) if payments else 0.0,
        "unique_bookings": len({p.booking_id for p in payments}),
        "unique_customers": len({p.booking.customer_id for p in payments if p.booking}),
        "by_method": by_method,
    }
