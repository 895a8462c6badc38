"""
Dashboard endpoints.

Split into an admin router and a worker router, mounted under different
prefixes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from rentaldesk.app.core.guards import require_admin, require_permission
from rentaldesk.app.db.session import get_db
from rentaldesk.app.models.enums import Permission
from rentaldesk.app.schemas.report import AdminDashboardStats, WorkerDashboardStats
from rentaldesk.app.services.dashboard import DashboardService

admin_router = APIRouter(prefix="/admin/dashboard", tags=["Dashboard"])
worker_router = APIRouter(prefix="/worker/dashboard", tags=["Dashboard"])


@admin_router.get("/stats", response_model=AdminDashboardStats)
async def get_admin_stats(
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await DashboardService.admin_stats(db)


@worker_router.get("/stats", response_model=WorkerDashboardStats)
async def get_worker_stats(
    current_user: dict = Depends(require_permission(Permission.DASHBOARD_STATS)),
    db: AsyncSession = Depends(get_db)
):
    """Stats for the calling user's own bookings and collections."""
    return await DashboardService.worker_stats(db, current_user["user_id"])
