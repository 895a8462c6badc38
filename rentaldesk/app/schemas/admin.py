"""
Admin API Schema Definitions.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Dict


class ClearDataRequest(BaseModel):
    confirm: bool = Field(False, description="Must be true; guards against accidental wipes")


class ClearDataResponse(BaseModel):
    success: bool
    message: str
    deleted: Dict[str, int]


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[int]
    actor_username: Optional[str]
    action: str
    target_user_id: Optional[int]
    target_username: Optional[str]
    resource_type: Optional[str]
    resource_id: Optional[str]
    meta_data: Optional[dict]
    ip_address: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Schema for audit trail list."""
    logs: List[AuditLogResponse]
    total: int
