"""
Database seeding script for initial staff accounts.

Creates the main administrator and one counter worker for development.
Run this after the database is reachable; missing tables are created first.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rentaldesk.app.core.config import settings
from rentaldesk.app.db.session import AsyncSessionLocal, Base, engine
from rentaldesk.app.models.user import User
from rentaldesk.app.models.enums import UserRole, UserStatus, DEFAULT_WORKER_PERMISSIONS
from rentaldesk.app.core.security import get_password_hash
from rentaldesk.app.services.settings import get_or_create_settings
# Import models to ensure they are registered with Base
from rentaldesk.app.models.customer import Customer  # noqa: F401
from rentaldesk.app.models.vehicle import Vehicle, MaintenanceRecord  # noqa: F401
from rentaldesk.app.models.booking import Booking  # noqa: F401
from rentaldesk.app.models.payment import Payment  # noqa: F401
from rentaldesk.app.models.settings import BusinessSettings  # noqa: F401
from rentaldesk.app.models.audit_log import AuditLog  # noqa: F401
from sqlalchemy import select


async def seed_users():
    """
    Seed the initial staff accounts.

    Creates:
    - the protected ADMIN (``settings.protected_admin_email``)
    - 1 WORKER with the default counter permissions
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting user seeding...")

        result = await db.execute(
            select(User).where(User.email == settings.protected_admin_email)
        )
        if result.scalar_one_or_none():
            print("ℹ️  ADMIN user already exists, skipping seeding")
            return

        admin_user = User(
            email=settings.protected_admin_email,
            username="admin",
            full_name="Administrator",
            hashed_password=get_password_hash("admin123"),
            role=UserRole.ADMIN,
            status=UserStatus.ACTIVE,
            permissions=[],
        )
        db.add(admin_user)
        print(f"✅ Created ADMIN user (username: admin, email: {settings.protected_admin_email}, password: admin123)")

        worker = User(
            email="worker@rentaldesk.com",
            username="worker",
            full_name="Counter Staff",
            hashed_password=get_password_hash("worker123"),
            role=UserRole.WORKER,
            status=UserStatus.ACTIVE,
            permissions=[p.value for p in DEFAULT_WORKER_PERMISSIONS],
        )
        db.add(worker)
        print("✅ Created WORKER user (username: worker, password: worker123)")

        await db.commit()

        # Business settings row with defaults
        await get_or_create_settings(db)

        print("\n🎉 User seeding completed successfully!")
        print("\nSeeded users:")
        print("  - ADMIN:  admin / admin123")
        print("  - WORKER: worker / worker123")
        print("\nNote: further staff accounts are created by an admin via POST /api/users")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_users())
