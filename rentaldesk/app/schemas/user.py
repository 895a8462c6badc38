"""
Staff user schemas (admin user management and auth responses).
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional, List
from rentaldesk.app.models.enums import UserRole, UserStatus, Permission
from rentaldesk.app.schemas.common import PHONE_PATTERN


class UserCreate(BaseModel):
    """Schema for creating a staff account."""
    username: str = Field(..., min_length=3, max_length=100, description="Unique login name")
    password: str = Field(..., min_length=6, max_length=128, description="Plain password, stored as a bcrypt hash")
    role: UserRole = Field(..., description="admin or worker")
    full_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr = Field(..., description="Unique email, also usable to log in")
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    permissions: Optional[List[Permission]] = Field(
        None, description="Worker permissions; defaults to the standard worker set"
    )


class UserUpdate(BaseModel):
    """Schema for updating a staff account. Only provided fields change."""
    role: Optional[UserRole] = None
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    status: Optional[UserStatus] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    permissions: Optional[List[Permission]] = None


class UserResponse(BaseModel):
    """Staff account as returned by the API (never includes the hash)."""
    id: int
    username: str
    email: str
    full_name: str
    phone: Optional[str] = None
    role: UserRole
    status: UserStatus
    permissions: List[str] = []
    is_system: bool = False
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
