"""
Staff user management endpoints (admin-only).
"""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from rentaldesk.app.core.config import settings
from rentaldesk.app.core.guards import require_admin
from rentaldesk.app.core.security import get_password_hash
from rentaldesk.app.core.token_revocation import revoke_all_user_tokens, clear_user_token_revocation
from rentaldesk.app.db.session import get_db
from rentaldesk.app.models.enums import UserRole, UserStatus, DEFAULT_WORKER_PERMISSIONS
from rentaldesk.app.models.user import User
from rentaldesk.app.schemas.common import MessageResponse, total_pages
from rentaldesk.app.schemas.user import UserCreate, UserUpdate, UserResponse, UserListResponse
from rentaldesk.app.services.audit import log_admin_action, AuditAction

router = APIRouter(prefix="/users", tags=["Users"])

SORTABLE_FIELDS = {
    "created_at": User.created_at,
    "username": User.username,
    "full_name": User.full_name,
    "role": User.role,
    "last_login_at": User.last_login_at,
}


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


async def _ensure_unique(db: AsyncSession, username: str = None, email: str = None, exclude_id: int = None):
    conditions = []
    if username:
        conditions.append(User.username == username)
    if email:
        conditions.append(User.email == email)
    if not conditions:
        return
    query = select(User).where(or_(*conditions))
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    existing = (await db.execute(query.limit(1))).scalars().first()
    if existing:
        field = "Username" if username and existing.username == username else "Email"
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{field} already exists"
        )


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    sort: str = Query("created_at", description="Sort field"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List staff accounts, excluding the synthetic system user."""
    base = select(User).where(User.is_system == False)  # noqa: E712
    total = (await db.execute(
        select(func.count(User.id)).where(User.is_system == False)  # noqa: E712
    )).scalar() or 0

    column = SORTABLE_FIELDS.get(sort, User.created_at)
    ordering = column.asc() if order == "asc" else column.desc()
    query = base.order_by(ordering, User.id.desc()).offset((page - 1) * page_size).limit(page_size)
    users = (await db.execute(query)).scalars().all()

    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create an admin or worker account."""
    await _ensure_unique(db, username=user_data.username, email=user_data.email)

    if user_data.role == UserRole.ADMIN:
        permissions = []
    elif user_data.permissions is not None:
        permissions = [p.value for p in user_data.permissions]
    else:
        permissions = [p.value for p in DEFAULT_WORKER_PERMISSIONS]

    user = User(
        username=user_data.username,
        email=user_data.email,
        full_name=user_data.full_name,
        phone=user_data.phone,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
        status=UserStatus.ACTIVE,
        permissions=permissions,
    )
    db.add(user)
    await db.commit()

    await log_admin_action(
        db=db,
        admin_id=admin["user_id"],
        admin_username=admin["sub"],
        action=AuditAction.USER_CREATED,
        target_user_id=user.id,
        target_username=user.username,
        metadata={"role": user.role.value}
    )
    await db.refresh(user)
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return UserResponse.model_validate(await _get_user_or_404(db, user_id))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a staff account.

    Deactivation revokes every token the user holds; reactivation lifts that.
    """
    update_data = user_data.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update"
        )

    user = await _get_user_or_404(db, user_id)
    await _ensure_unique(db, email=update_data.get("email"), exclude_id=user.id)

    if user.id == admin["user_id"] and (
        update_data.get("status") == UserStatus.INACTIVE or update_data.get("role") == UserRole.WORKER
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot deactivate or demote your own account"
        )

    previous_role = user.role
    previous_status = user.status

    password = update_data.pop("password", None)
    if password:
        user.hashed_password = get_password_hash(password)
    if "permissions" in update_data:
        update_data["permissions"] = [p.value for p in update_data["permissions"]]
    for field, value in update_data.items():
        setattr(user, field, value)

    await db.commit()

    if user.status == UserStatus.INACTIVE and previous_status == UserStatus.ACTIVE:
        await revoke_all_user_tokens(user.id)
        action = AuditAction.USER_DEACTIVATED
    elif user.status == UserStatus.ACTIVE and previous_status == UserStatus.INACTIVE:
        await clear_user_token_revocation(user.id)
        action = AuditAction.USER_UPDATED
    elif user.role != previous_role:
        action = AuditAction.ROLE_CHANGED
    elif password:
        action = AuditAction.PASSWORD_CHANGED
    else:
        action = AuditAction.USER_UPDATED

    await log_admin_action(
        db=db,
        admin_id=admin["user_id"],
        admin_username=admin["sub"],
        action=action,
        target_user_id=user.id,
        target_username=user.username,
        metadata={"fields": sorted(user_data.model_dump(exclude_unset=True).keys())}
    )
    await db.refresh(user)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a staff account.

    The main administrator cannot be deleted, and nobody can delete themselves.
    Bookings and payments they handled keep their history with no worker.
    """
    user = await _get_user_or_404(db, user_id)

    if user.email == settings.protected_admin_email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="The main administrator account cannot be deleted"
        )

    if user.id == admin["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )

    username = user.username
    await db.delete(user)
    await db.commit()
    await revoke_all_user_tokens(user_id)

    await log_admin_action(
        db=db,
        admin_id=admin["user_id"],
        admin_username=admin["sub"],
        action=AuditAction.USER_DELETED,
        target_user_id=user_id,
        target_username=username
    )
    return MessageResponse(message=f"User '{username}' deleted")
