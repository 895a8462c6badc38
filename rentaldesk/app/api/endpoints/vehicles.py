"""
Vehicle fleet endpoints, including maintenance history.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from rentaldesk.app.core.exceptions import ConflictError, ResourceNotFoundError
from rentaldesk.app.core.guards import require_permission
from rentaldesk.app.db.session import get_db
from rentaldesk.app.models.booking import Booking
from rentaldesk.app.models.enums import Permission, VehicleStatus, BookingStatus, OPEN_BOOKING_STATUSES
from rentaldesk.app.models.vehicle import Vehicle, MaintenanceRecord
from rentaldesk.app.schemas.common import total_pages
from rentaldesk.app.schemas.vehicle import (
    VehicleCreate, VehicleUpdate, VehicleStatusUpdate, VehicleResponse, VehicleDetailResponse,
    VehicleListResponse, VehicleBookingItem, VehicleDeleteResponse,
    MaintenanceCreate, MaintenanceResponse,
)
from rentaldesk.app.services.audit import log_record_change, AuditAction

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


async def _get_vehicle_or_404(db: AsyncSession, vehicle_id: int) -> Vehicle:
    vehicle = await db.get(Vehicle, vehicle_id)
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", vehicle_id)
    return vehicle


async def _ensure_plate_available(db: AsyncSession, number_plate: str, exclude_id: Optional[int] = None):
    query = select(Vehicle.id).where(func.upper(Vehicle.number_plate) == number_plate.upper())
    if exclude_id is not None:
        query = query.where(Vehicle.id != exclude_id)
    if (await db.execute(query.limit(1))).scalar_one_or_none() is not None:
        raise ConflictError(
            "A vehicle with this number plate already exists",
            details={"number_plate": number_plate},
        )


async def _count_bookings(db: AsyncSession, vehicle_id: int, statuses=None) -> int:
    query = select(func.count(Booking.id)).where(Booking.vehicle_id == vehicle_id)
    if statuses is not None:
        query = query.where(Booking.status.in_(statuses))
    return (await db.execute(query)).scalar() or 0


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    status_filter: Optional[VehicleStatus] = Query(None, alias="status"),
    vehicle_type: Optional[str] = Query(None, alias="type"),
    search: Optional[str] = Query(None, max_length=100, description="Matches model or number plate"),
    current_user: dict = Depends(require_permission(Permission.VEHICLES_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    filters = []
    if status_filter:
        filters.append(Vehicle.status == status_filter)
    if vehicle_type:
        filters.append(Vehicle.type == vehicle_type)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        filters.append(or_(Vehicle.model.ilike(pattern), Vehicle.number_plate.ilike(pattern)))

    total = (await db.execute(select(func.count(Vehicle.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Vehicle)
        .where(*filters)
        .order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in result.scalars().all()],
        total=total,
        page=page,
        page_size=limit,
        total_pages=total_pages(total, limit),
    )


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(require_permission(Permission.VEHICLES_CREATE)),
    db: AsyncSession = Depends(get_db)
):
    await _ensure_plate_available(db, vehicle_data.number_plate)

    vehicle = Vehicle(**vehicle_data.model_dump())
    db.add(vehicle)
    await db.commit()

    await log_record_change(
        db, current_user, AuditAction.VEHICLE_CREATED, "vehicle", vehicle.id,
        metadata={"number_plate": vehicle.number_plate},
    )
    await db.refresh(vehicle)
    return VehicleResponse.model_validate(vehicle)


@router.get("/{vehicle_id}", response_model=VehicleDetailResponse)
async def get_vehicle(
    vehicle_id: int,
    current_user: dict = Depends(require_permission(Permission.VEHICLES_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    """Vehicle with its booking history."""
    result = await db.execute(
        select(Vehicle)
        .where(Vehicle.id == vehicle_id)
        .options(selectinload(Vehicle.bookings).selectinload(Booking.customer))
    )
    vehicle = result.scalar_one_or_none()
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", vehicle_id)

    return VehicleDetailResponse(
        **VehicleResponse.model_validate(vehicle).model_dump(),
        booking_history=[VehicleBookingItem.from_booking(b) for b in vehicle.bookings],
    )


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: int,
    vehicle_data: VehicleUpdate,
    current_user: dict = Depends(require_permission(Permission.VEHICLES_UPDATE)),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await _get_vehicle_or_404(db, vehicle_id)
    update_data = vehicle_data.model_dump(exclude_unset=True)
    for required in ("type", "model", "number_plate", "daily_rate"):
        if required in update_data and update_data[required] is None:
            update_data.pop(required)

    if "number_plate" in update_data and update_data["number_plate"] != vehicle.number_plate:
        await _ensure_plate_available(db, update_data["number_plate"], exclude_id=vehicle.id)

    for field, value in update_data.items():
        setattr(vehicle, field, value)
    await db.commit()

    await log_record_change(
        db, current_user, AuditAction.VEHICLE_UPDATED, "vehicle", vehicle.id,
        metadata={"fields": sorted(update_data.keys())},
    )
    await db.refresh(vehicle)
    return VehicleResponse.model_validate(vehicle)


@router.patch("/{vehicle_id}/status", response_model=VehicleResponse)
async def update_vehicle_status(
    vehicle_id: int,
    status_data: VehicleStatusUpdate,
    current_user: dict = Depends(require_permission(Permission.VEHICLES_UPDATE)),
    db: AsyncSession = Depends(get_db)
):
    """
    Change a vehicle's status.

    A vehicle out on an active rental cannot be marked available, and one with
    open bookings cannot be retired.
    """
    vehicle = await _get_vehicle_or_404(db, vehicle_id)
    new_status = status_data.status

    if new_status == VehicleStatus.AVAILABLE:
        active = await _count_bookings(db, vehicle.id, [BookingStatus.ACTIVE, BookingStatus.OVERDUE])
        if active:
            raise ConflictError(
                "Cannot mark vehicle as available while it has active bookings",
                details={"active_bookings": active},
            )
    elif new_status == VehicleStatus.RETIRED:
        open_count = await _count_bookings(db, vehicle.id, OPEN_BOOKING_STATUSES)
        if open_count:
            raise ConflictError(
                "Cannot retire a vehicle with open bookings",
                details={"open_bookings": open_count},
            )

    previous = vehicle.status
    vehicle.status = new_status
    await db.commit()

    await log_record_change(
        db, current_user, AuditAction.VEHICLE_STATUS_CHANGED, "vehicle", vehicle.id,
        metadata={"from": previous.value, "to": new_status.value},
    )
    await db.refresh(vehicle)
    return VehicleResponse.model_validate(vehicle)


@router.delete("/{vehicle_id}", response_model=VehicleDeleteResponse)
async def delete_vehicle(
    vehicle_id: int,
    retire: bool = Query(False, description="Retire instead of failing when the vehicle has rental history"),
    current_user: dict = Depends(require_permission(Permission.VEHICLES_DELETE)),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a vehicle that was never rented.

    Vehicles with booking history are kept for reporting: the request is
    refused with 409 unless ``retire=true``, which retires the vehicle instead.
    """
    vehicle = await _get_vehicle_or_404(db, vehicle_id)

    history = await _count_bookings(db, vehicle.id)
    if history:
        if not retire:
            raise ConflictError(
                "Vehicle has booking history and cannot be deleted; retire it instead",
                details={"bookings": history},
            )
        open_count = await _count_bookings(db, vehicle.id, OPEN_BOOKING_STATUSES)
        if open_count:
            raise ConflictError(
                "Cannot retire a vehicle with open bookings",
                details={"open_bookings": open_count},
            )
        vehicle.status = VehicleStatus.RETIRED
        await db.commit()
        await log_record_change(db, current_user, AuditAction.VEHICLE_RETIRED, "vehicle", vehicle.id)
        await db.refresh(vehicle)
        return VehicleDeleteResponse(
            message="Vehicle retired",
            retired=True,
            vehicle=VehicleResponse.model_validate(vehicle),
        )

    await db.delete(vehicle)
    await db.commit()
    await log_record_change(db, current_user, AuditAction.VEHICLE_DELETED, "vehicle", vehicle_id)
    return VehicleDeleteResponse(message="Vehicle deleted")


@router.get("/{vehicle_id}/maintenance", response_model=list[MaintenanceResponse])
async def list_maintenance(
    vehicle_id: int,
    current_user: dict = Depends(require_permission(Permission.VEHICLES_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    await _get_vehicle_or_404(db, vehicle_id)
    result = await db.execute(
        select(MaintenanceRecord)
        .where(MaintenanceRecord.vehicle_id == vehicle_id)
        .order_by(MaintenanceRecord.service_date.desc(), MaintenanceRecord.id.desc())
    )
    return [MaintenanceResponse.model_validate(r) for r in result.scalars().all()]


@router.post(
    "/{vehicle_id}/maintenance",
    response_model=MaintenanceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_maintenance(
    vehicle_id: int,
    record_data: MaintenanceCreate,
    current_user: dict = Depends(require_permission(Permission.VEHICLES_UPDATE)),
    db: AsyncSession = Depends(get_db)
):
    """Record a service visit and stamp the vehicle's last maintenance date."""
    vehicle = await _get_vehicle_or_404(db, vehicle_id)

    record = MaintenanceRecord(
        vehicle_id=vehicle.id,
        performed_by=current_user["user_id"],
        **record_data.model_dump(),
    )
    db.add(record)
    if vehicle.last_maintenance_date is None or record.service_date > vehicle.last_maintenance_date:
        vehicle.last_maintenance_date = record.service_date
    await db.commit()

    await log_record_change(
        db, current_user, AuditAction.MAINTENANCE_RECORDED, "vehicle", vehicle.id,
        metadata={"service_type": record.service_type, "cost": record.cost},
    )
    await db.refresh(record)
    return MaintenanceResponse.model_validate(record)
