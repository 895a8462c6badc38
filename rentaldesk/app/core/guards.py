"""
Security guards for role-based and permission-based access control.
"""

from fastapi import Depends, HTTPException, status
from rentaldesk.app.models.enums import UserRole, Permission
from rentaldesk.app.core.dependencies import get_current_user


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """Dependency for admin-only endpoints."""
    if current_user.get("role") != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )

    return current_user


def has_permission(current_user: dict, permission: Permission) -> bool:
    """Admins hold every permission; workers need it listed (or the wildcard)."""
    if current_user.get("role") == UserRole.ADMIN.value:
        return True
    granted = set(current_user.get("permissions") or [])
    return Permission.ALL.value in granted or permission.value in granted


def require_permission(permission: Permission):
    """
    Dependency factory for permission checks.

    Usage:
        @router.post("/bookings")
        async def create(current_user: dict = Depends(require_permission(Permission.BOOKINGS_CREATE))):
            ...
    """
    async def permission_checker(current_user: dict = Depends(get_current_user)) -> dict:
        if not has_permission(current_user, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Missing permission: {permission.value}"
            )
        return current_user

    return permission_checker
