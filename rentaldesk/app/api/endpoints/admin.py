"""
Admin maintenance endpoints: audit trail and data reset.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete
from rentaldesk.app.core.exceptions import BadRequestError
from rentaldesk.app.core.guards import require_admin
from rentaldesk.app.db.session import get_db
from rentaldesk.app.models.booking import Booking
from rentaldesk.app.models.customer import Customer
from rentaldesk.app.models.payment import Payment
from rentaldesk.app.models.vehicle import Vehicle, MaintenanceRecord
from rentaldesk.app.schemas.admin import (
    ClearDataRequest, ClearDataResponse, AuditTrailResponse, AuditLogResponse,
)
from rentaldesk.app.services.audit import log_record_change, AuditAction, get_audit_trail

router = APIRouter(prefix="/admin", tags=["Admin"])

# Children before parents so foreign keys never block a delete
CLEARABLE_TABLES = (
    ("payments", Payment),
    ("maintenance_records", MaintenanceRecord),
    ("bookings", Booking),
    ("customers", Customer),
    ("vehicles", Vehicle),
)


@router.post("/clear-data", response_model=ClearDataResponse)
async def clear_data(
    request: ClearDataRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Wipe all business data in one transaction.

    Users and settings are kept. Requires ``{"confirm": true}``.
    """
    if not request.confirm:
        raise BadRequestError("Set confirm to true to clear all business data")

    deleted = {}
    for name, model in CLEARABLE_TABLES:
        result = await db.execute(delete(model))
        deleted[name] = result.rowcount or 0
    await db.commit()
    db.expunge_all()

    await log_record_change(db, admin, AuditAction.DATA_CLEARED, "system", None, metadata=deleted)
    return ClearDataResponse(success=True, message="All business data cleared", deleted=deleted)


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def list_audit_logs(
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    actor_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    logs, total = await get_audit_trail(
        db, action=action, resource_type=resource_type, actor_id=actor_id, limit=limit, offset=offset
    )
    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
    )
