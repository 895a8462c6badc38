"""
Business settings endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from rentaldesk.app.core.guards import require_permission
from rentaldesk.app.db.session import get_db
from rentaldesk.app.models.enums import Permission
from rentaldesk.app.schemas.settings import SettingsResponse, SettingsUpdate
from rentaldesk.app.services.audit import log_record_change, AuditAction
from rentaldesk.app.services.settings import get_or_create_settings, update_settings

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=SettingsResponse)
async def get_settings(
    current_user: dict = Depends(require_permission(Permission.SETTINGS_VIEW)),
    db: AsyncSession = Depends(get_db)
):
    """Current settings; defaults are stored on first read."""
    return SettingsResponse.model_validate(await get_or_create_settings(db))


@router.put("", response_model=SettingsResponse)
async def put_settings(
    settings_data: SettingsUpdate,
    current_user: dict = Depends(require_permission(Permission.SETTINGS_UPDATE)),
    db: AsyncSession = Depends(get_db)
):
    row = await update_settings(db, settings_data, current_user["user_id"])
    await log_record_change(
        db, current_user, AuditAction.SETTINGS_UPDATED, "settings", row.id,
        metadata={"fields": sorted(settings_data.model_dump(exclude_unset=True).keys())},
    )
    await db.refresh(row)
    return SettingsResponse.model_validate(row)
