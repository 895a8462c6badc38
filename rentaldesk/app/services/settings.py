"""
Business settings access (single-row table).
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rentaldesk.app.models.settings import (
    BusinessSettings, DEFAULT_BOOKING_SETTINGS, DEFAULT_NOTIFICATION_SETTINGS,
)
from rentaldesk.app.schemas.settings import SettingsUpdate


async def get_or_create_settings(db: AsyncSession) -> BusinessSettings:
    """Return the settings row, inserting the defaults on first access."""
    result = await db.execute(select(BusinessSettings).order_by(BusinessSettings.id).limit(1))
    row = result.scalars().first()
    if row:
        return row

    row = BusinessSettings(
        booking_settings=dict(DEFAULT_BOOKING_SETTINGS),
        notification_settings=dict(DEFAULT_NOTIFICATION_SETTINGS),
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


async def update_settings(db: AsyncSession, data: SettingsUpdate, user_id: int) -> BusinessSettings:
    """Apply a partial update; nested JSON blocks are merged, not replaced."""
    row = await get_or_create_settings(db)
    update_data = data.model_dump(
        exclude_unset=True,
        exclude_none=True,
        exclude={"booking_settings", "notification_settings"},
    )
    for field, value in update_data.items():
        setattr(row, field, value)

    # JSON columns need a new object to register as changed
    if data.booking_settings is not None:
        row.booking_settings = {
            **(row.booking_settings or DEFAULT_BOOKING_SETTINGS),
            **data.booking_settings.model_dump(exclude_none=True),
        }
    if data.notification_settings is not None:
        row.notification_settings = {
            **(row.notification_settings or DEFAULT_NOTIFICATION_SETTINGS),
            **data.notification_settings.model_dump(exclude_none=True),
        }

    row.updated_by = user_id
    await db.commit()
    await db.refresh(row)
    return row
