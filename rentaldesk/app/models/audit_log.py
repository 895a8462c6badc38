"""
Audit Log Database Model.

Tracks logins, staff management and business-record changes.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from rentaldesk.app.db.session import Base


class AuditLog(Base):
    """
    Audit trail entry.

    Events logged:
    - LOGIN_SUCCESS / LOGIN_FAILED / LOGOUT
    - USER_CREATED / USER_UPDATED / USER_DELETED
    - BOOKING_*, PAYMENT_*, VEHICLE_*, CUSTOMER_* changes
    - SETTINGS_UPDATED / DATA_CLEARED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for anonymous login attempts)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # Staff account acted upon (user management only)
    target_user_id = Column(Integer, index=True, nullable=True)
    target_username = Column(String(100), nullable=True)

    # Business record acted upon
    resource_type = Column(String(50), nullable=True, index=True)
    resource_id = Column(String(50), nullable=True)

    meta_data = Column(JSON, nullable=True)
    ip_address = Column(String(50), nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username})>"
