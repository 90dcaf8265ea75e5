from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from priming.core.database import get_db
from priming.core.errors import not_found
from priming.core.permissions import AdminIdentity, CurrentIdentity
from priming.models.user import User
from priming.schemas import AdminUserUpdateRequest, PasswordChangeRequest, ProfileUpdateRequest
from priming.services.accounts import change_password, delete_account, update_account
from priming.services.profiles import (
    BasicUser,
    UserResponse,
    basic_user,
    list_users_with_profiles,
    require_user_with_profile,
    user_response,
)

router = APIRouter()


class MessageResponse(BaseModel):
    message: str


class ProfileUpdateResponse(MessageResponse):
    user: UserResponse


# Own account
@router.get("/user", response_model=BasicUser)
async def get_user(identity: CurrentIdentity, db: AsyncSession = Depends(get_db)):
    user = await db.get(User, identity.id)
    if not user:
        raise not_found("User not found")
    return basic_user(user)


@router.get("/perfil", response_model=UserResponse)
async def get_profile(identity: CurrentIdentity, db: AsyncSession = Depends(get_db)):
    """Get the caller's user record with its role data."""
    user = await require_user_with_profile(db, identity.id)
    return user_response(user)


@router.put("/perfil", response_model=ProfileUpdateResponse)
async def update_profile(
    data: ProfileUpdateRequest,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    """
    Update the caller's profile.

    Name and email are always required. Evaluators may also change their
    code and type; children their age, grade, school and shift.
    """
    user = await require_user_with_profile(db, identity.id)
    await update_account(
        db,
        user,
        data.user_patch(),
        evaluator_patch=data.evaluator_patch(),
        child_patch=data.child_patch(),
        require_name_and_email=True,
    )
    return ProfileUpdateResponse(message="Profile updated successfully", user=user_response(user))


@router.put("/cambiar-password", response_model=MessageResponse)
async def update_password(
    data: PasswordChangeRequest,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    user = await db.get(User, identity.id)
    if not user:
        raise not_found("User not found")
    await change_password(db, user, data.password)
    return MessageResponse(message="Password updated successfully")


# Administration
@router.get("/users", response_model=list[UserResponse])
async def list_users(_: AdminIdentity, db: AsyncSession = Depends(get_db)):
    """List every user with its role data."""
    users = await list_users_with_profiles(db)
    return [user_response(u) for u in users]


@router.put("/users/{user_id}", response_model=ProfileUpdateResponse)
async def admin_update_user(
    user_id: int,
    data: AdminUserUpdateRequest,
    _: AdminIdentity,
    db: AsyncSession = Depends(get_db),
):
    user = await require_user_with_profile(db, user_id)
    await update_account(
        db,
        user,
        data.user_patch(),
        evaluator_patch=data.evaluator_patch(),
        child_patch=data.child_patch(),
    )
    return ProfileUpdateResponse(message="User updated successfully", user=user_response(user))


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def admin_delete_user(
    user_id: int,
    _: AdminIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Delete a user and everything it owns."""
    user = await require_user_with_profile(db, user_id)
    await delete_account(db, user)
    return MessageResponse(message="User deleted successfully")
