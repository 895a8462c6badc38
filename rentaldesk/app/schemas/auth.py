"""
Authentication schemas.
"""

from pydantic import AliasChoices, BaseModel, Field
from typing import Optional
from rentaldesk.app.schemas.user import UserResponse


class UserLogin(BaseModel):
    """Login with either username or email."""
    username: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("username", "email"),
        description="Username or email address",
    )
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse


class AuthCheckResponse(BaseModel):
    authenticated: bool
    user: Optional[UserResponse] = None
