"""
Authentication API endpoints.

Login sets the JWT in an httpOnly cookie (and returns it for API clients);
logout revokes it.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from rentaldesk.app.core.config import settings
from rentaldesk.app.db.session import get_db
from rentaldesk.app.models.user import User
from rentaldesk.app.schemas.auth import UserLogin, TokenResponse, AuthCheckResponse
from rentaldesk.app.schemas.common import MessageResponse
from rentaldesk.app.schemas.user import UserResponse
from rentaldesk.app.core.security import verify_password
from rentaldesk.app.core.jwt import create_access_token
from rentaldesk.app.core.dependencies import get_current_user, get_request_token
from rentaldesk.app.core.token_revocation import revoke_token
from rentaldesk.app.services.audit import log_auth_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """
    Log in with username or email and password.

    Failed and successful attempts are written to the audit log.
    """
    # A username match wins over another account's email
    result = await db.execute(select(User).where(User.username == credentials.username))
    user = result.scalar_one_or_none()
    if user is None:
        result = await db.execute(select(User).where(User.email == credentials.username))
        user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id if user else None,
            username=credentials.username,
            ip_address=_client_ip(request),
            metadata={"reason": "Invalid password" if user else "User not found"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            username=user.username,
            ip_address=_client_ip(request),
            metadata={"reason": "Account is inactive"}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    access_token = create_access_token(data={
        "sub": user.username,
        "user_id": user.id,
        "role": user.role.value,
    })

    user.last_login_at = datetime.utcnow()
    await db.commit()

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=user.id,
        username=user.username,
        ip_address=_client_ip(request)
    )
    await db.refresh(user)

    max_age = settings.access_token_expire_minutes * 60
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=access_token,
        max_age=max_age,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
        path="/",
    )

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=max_age,
        user=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_request_token),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the current token and clear the session cookie."""
    await revoke_token(token, current_user["user_id"])
    await log_auth_event(
        db=db,
        action=AuditAction.LOGOUT,
        user_id=current_user["user_id"],
        username=current_user.get("sub")
    )
    response.delete_cookie(settings.auth_cookie_name, path="/")
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Current authenticated user, including permissions."""
    result = await db.execute(select(User).where(User.id == current_user["user_id"]))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(user)


@router.get("/check", response_model=AuthCheckResponse)
async def check_session(
    token: Optional[str] = Depends(get_request_token),
    db: AsyncSession = Depends(get_db)
):
    """Report whether the caller holds a valid session, without failing."""
    if not token:
        return AuthCheckResponse(authenticated=False)
    try:
        payload = await get_current_user(token=token, db=db)
    except HTTPException:
        return AuthCheckResponse(authenticated=False)

    user = await db.get(User, payload["user_id"])
    return AuthCheckResponse(authenticated=True, user=UserResponse.model_validate(user))
