from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from priming.core.config import get_settings
from priming.core.database import get_db
from priming.core.errors import ApiError, ErrorCode
from priming.core.permissions import CurrentIdentity
from priming.core.security import create_access_token, verify_password
from priming.models.user import Role, User
from priming.schemas import LoginRequest, RegisterRequest
from priming.services.accounts import (
    create_account,
    ensure_code_available,
    ensure_email_available,
)
from priming.services.profiles import UserResponse, require_user_with_profile, user_response
from priming.services.validation import validate_login, validate_registration

router = APIRouter()
settings = get_settings()


# Schemas
class RegisterResponse(BaseModel):
    message: str
    user_id: int


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


class VerifyTokenResponse(BaseModel):
    valid: bool
    user: UserResponse


class StatusResponse(BaseModel):
    message: str
    cors_origin: str
    environment: str


# Endpoints
@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Register a user of any role together with its profile."""
    validate_registration(data)

    # Fast rejects; the unique constraints still decide inside the transaction
    await ensure_email_available(db, data.email.strip())
    if data.role == Role.EVALUATOR.value:
        await ensure_code_available(db, data.code.strip())

    user = await create_account(db, data)

    return RegisterResponse(message="User registered successfully", user_id=user.id)


@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login with email and password."""
    validate_login(data)

    result = await db.execute(
        select(User)
        .where(User.email == data.email.strip())
        .options(selectinload(User.evaluator), selectinload(User.child))
    )
    user = result.scalar_one_or_none()

    if not user:
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            ErrorCode.USER_NOT_FOUND,
            "User not found",
        )

    if not verify_password(data.password, user.hashed_password):
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            ErrorCode.WRONG_PASSWORD,
            "Wrong password",
        )

    return LoginResponse(
        token=create_access_token(user.id, user.role),
        user=user_response(user),
    )


@router.get("/verify-token", response_model=VerifyTokenResponse)
async def verify_token_endpoint(identity: CurrentIdentity, db: AsyncSession = Depends(get_db)):
    """Check a token and return the user it belongs to."""
    user = await require_user_with_profile(db, identity.id)
    return VerifyTokenResponse(valid=True, user=user_response(user))


@router.get("/status", response_model=StatusResponse)
async def api_status():
    return StatusResponse(
        message="API running",
        cors_origin=settings.cors_origin,
        environment=settings.environment,
    )
