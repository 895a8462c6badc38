"""
Audit logging service for logins, staff management and record changes.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, func
from rentaldesk.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"

    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    USER_DELETED = "USER_DELETED"
    ROLE_CHANGED = "ROLE_CHANGED"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"

    CUSTOMER_CREATED = "CUSTOMER_CREATED"
    CUSTOMER_UPDATED = "CUSTOMER_UPDATED"
    CUSTOMER_DELETED = "CUSTOMER_DELETED"

    VEHICLE_CREATED = "VEHICLE_CREATED"
    VEHICLE_UPDATED = "VEHICLE_UPDATED"
    VEHICLE_STATUS_CHANGED = "VEHICLE_STATUS_CHANGED"
    VEHICLE_RETIRED = "VEHICLE_RETIRED"
    VEHICLE_DELETED = "VEHICLE_DELETED"
    MAINTENANCE_RECORDED = "MAINTENANCE_RECORDED"

    BOOKING_CREATED = "BOOKING_CREATED"
    BOOKING_UPDATED = "BOOKING_UPDATED"
    BOOKING_RETURNED = "BOOKING_RETURNED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    BOOKING_DELETED = "BOOKING_DELETED"

    PAYMENT_RECORDED = "PAYMENT_RECORDED"
    PAYMENT_UPDATED = "PAYMENT_UPDATED"
    PAYMENT_DELETED = "PAYMENT_DELETED"

    SETTINGS_UPDATED = "SETTINGS_UPDATED"
    DATA_CLEARED = "DATA_CLEARED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    target_user_id: Optional[int] = None,
    target_username: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[Any] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Write one audit entry and commit it.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of the staff user performing the action
        actor_username: Username of actor
        target_user_id: Staff account acted upon, for user management
        target_username: Username of target
        resource_type: Kind of business record touched ("booking", "vehicle", ...)
        resource_id: Identifier of that record
        metadata: Additional context as JSON
        ip_address: Client address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        target_user_id=target_user_id,
        target_username=target_username,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def log_admin_action(
    db: AsyncSession,
    admin_id: int,
    admin_username: str,
    action: str,
    target_user_id: int,
    target_username: str,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log a staff-management action performed by an admin."""
    return await log_event(
        db=db,
        action=action,
        actor_id=admin_id,
        actor_username=admin_username,
        target_user_id=target_user_id,
        target_username=target_username,
        resource_type="user",
        resource_id=target_user_id,
        metadata=metadata
    )


async def log_record_change(
    db: AsyncSession,
    current_user: dict,
    action: str,
    resource_type: str,
    resource_id: Any,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log a change to a business record by the authenticated user."""
    return await log_event(
        db=db,
        action=action,
        actor_id=current_user.get("user_id"),
        actor_username=current_user.get("sub"),
        resource_type=resource_type,
        resource_id=resource_id,
        metadata=metadata
    )


async def log_auth_event(
    db: AsyncSession,
    action: str,
    user_id: Optional[int],
    username: Optional[str],
    ip_address: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log a login, failed login or logout."""
    return await log_event(
        db=db,
        action=action,
        actor_id=user_id,
        actor_username=username,
        ip_address=ip_address,
        metadata=metadata
    )


async def get_audit_trail(
    db: AsyncSession,
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    actor_id: Optional[int] = None,
    limit: int = 100,
    offset: int = 0
) -> tuple[List[AuditLog], int]:
    """
    Retrieve the audit trail, most recent first.

    Returns:
        (entries, total matching entries)
    """
    filters = []
    if action:
        filters.append(AuditLog.action == action)
    if resource_type:
        filters.append(AuditLog.resource_type == resource_type)
    if actor_id:
        filters.append(AuditLog.actor_id == actor_id)

    total = (await db.execute(select(func.count(AuditLog.id)).where(*filters))).scalar() or 0

    query = (
        select(AuditLog)
        .where(*filters)
        .order_by(desc(AuditLog.timestamp), desc(AuditLog.id))
        .offset(offset)
        .limit(limit)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total
