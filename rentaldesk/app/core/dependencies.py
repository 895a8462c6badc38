"""
Authentication dependencies for FastAPI.

The session token is read from the httpOnly cookie set at login, or from an
``Authorization: Bearer`` header (header wins when both are present).
"""

from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from rentaldesk.app.core.config import settings
from rentaldesk.app.core.jwt import decode_access_token
from rentaldesk.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from rentaldesk.app.db.session import get_db
from rentaldesk.app.models.user import User

# Bearer is optional because browsers authenticate with the cookie
security = HTTPBearer(auto_error=False)


def get_request_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Raw session token from the Authorization header or the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.auth_cookie_name)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Optional[str] = Depends(get_request_token),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Resolve the authenticated staff user.

    Checks, in order:
    1. A token is present and its signature/expiry are valid
    2. The token has not been revoked (logout)
    3. The user's tokens have not been revoked wholesale (deactivation)
    4. The user still exists and is active

    Returns:
        Token payload, refreshed with the user's current role and permissions

    Raises:
        HTTPException: 401 on any authentication failure, 403 for inactive users
    """
    if not token:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    if await is_token_revoked(token):
        raise _unauthorized("Token has been revoked")

    if await are_user_tokens_revoked(user_id):
        raise _unauthorized("User access has been revoked")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    # Role and permissions may have changed since the token was issued
    payload["sub"] = user.username
    payload["role"] = user.role.value
    payload["permissions"] = list(user.permissions or [])
    payload["token"] = token
    return payload
