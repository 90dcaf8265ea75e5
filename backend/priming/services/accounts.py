"""
Account writes.

Each function here that touches more than one table runs inside
``transaction()``: the user row is flushed first so its generated id can be
used by the profile row, and any failure rolls the whole unit back.
"""

import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from priming.core.database import transaction
from priming.core.errors import ErrorCode, bad_request
from priming.core.security import hash_password
from priming.models.child import Child, Shift
from priming.models.evaluator import Evaluator, EvaluatorType
from priming.models.survey import Survey
from priming.models.user import Role, User
from priming.schemas import (
    AssignChildRequest,
    ChildPatch,
    EvaluatorPatch,
    RegisterRequest,
    UserPatch,
)
from priming.services.validation import (
    validate_child_patch,
    validate_evaluator_patch,
    validate_password_change,
    validate_user_patch,
)

logger = logging.getLogger(__name__)


async def ensure_email_available(
    db: AsyncSession, email: str, exclude_user_id: int | None = None
) -> None:
    stmt = select(func.count()).select_from(User).where(User.email == email)
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    if await db.scalar(stmt):
        raise bad_request("The email is already registered", ErrorCode.EMAIL_EXISTS)


async def ensure_code_available(
    db: AsyncSession, code: str, exclude_user_id: int | None = None
) -> None:
    stmt = select(func.count()).select_from(Evaluator).where(Evaluator.code == code)
    if exclude_user_id is not None:
        stmt = stmt.where(Evaluator.user_id != exclude_user_id)
    if await db.scalar(stmt):
        raise bad_request("The evaluator code is already registered", ErrorCode.CODE_EXISTS)


async def create_account(db: AsyncSession, data: RegisterRequest) -> User:
    """Create a user and its role profile atomically."""
    role = Role(data.role)
    hashed = hash_password(data.password)

    async with transaction(db):
        user = User(
            name=data.name.strip(),
            email=data.email.strip(),
            hashed_password=hashed,
            role=role,
        )
        db.add(user)
        await db.flush()  # Get the ID

        if role == Role.EVALUATOR:
            db.add(
                Evaluator(
                    user_id=user.id,
                    code=data.code.strip(),
                    evaluator_type=EvaluatorType(data.evaluator_type),
                    document_type=data.document_type,
                )
            )
        elif role == Role.CHILD:
            db.add(
                Child(
                    user_id=user.id,
                    age=data.age,
                    grade=data.grade,
                    school=data.school.strip(),
                    shift=Shift(data.shift),
                )
            )
        await db.flush()

    logger.info("Registered user %s with role %s", user.id, role.value)
    return user


async def assign_new_child(
    db: AsyncSession, evaluator_user_id: int, data: AssignChildRequest
) -> Survey:
    """
    Register a child and open its first survey with the calling evaluator.

    User, child profile and survey are written in one transaction; if the
    caller has no evaluator profile nothing is kept.
    """
    hashed = hash_password(data.password)

    async with transaction(db):
        user = User(
            name=data.name.strip(),
            email=data.email.strip(),
            hashed_password=hashed,
            role=Role.CHILD,
        )
        db.add(user)
        await db.flush()

        child = Child(
            user_id=user.id,
            age=data.age,
            grade=data.grade,
            school=data.school.strip(),
            shift=Shift(data.shift),
        )
        db.add(child)
        await db.flush()

        evaluator = await db.scalar(
            select(Evaluator).where(Evaluator.user_id == evaluator_user_id)
        )
        if evaluator is None:
            raise bad_request(
                "You do not have evaluator permissions to perform this action",
                ErrorCode.NOT_EVALUATOR,
            )

        survey = Survey(
            child_id=child.id,
            evaluator_id=evaluator.id,
            attempts=0,
            session_number=1,
            notes="",
        )
        db.add(survey)
        await db.flush()

    logger.info("Evaluator %s registered child %s (survey %s)", evaluator.id, child.id, survey.id)
    return survey


async def update_account(
    db: AsyncSession,
    user: User,
    user_patch: UserPatch,
    evaluator_patch: EvaluatorPatch | None = None,
    child_patch: ChildPatch | None = None,
    require_name_and_email: bool = False,
) -> User:
    """
    Apply a profile update to a user loaded with its profiles.

    Role patches that do not match the user's role are ignored.
    """
    validate_user_patch(user_patch, require_all=require_name_and_email)
    if user.role == Role.EVALUATOR and evaluator_patch is not None:
        validate_evaluator_patch(evaluator_patch)
    if user.role == Role.CHILD and child_patch is not None:
        validate_child_patch(child_patch)

    new_email = user_patch.changes().get("email")
    if new_email:
        await ensure_email_available(db, new_email, exclude_user_id=user.id)

    async with transaction(db):
        user_patch.apply(user)

        if (
            user.role == Role.EVALUATOR
            and user.evaluator is not None
            and evaluator_patch is not None
            and not evaluator_patch.is_empty()
        ):
            new_code = evaluator_patch.changes().get("code")
            if new_code:
                # Checked inside the transaction so it matches what we write
                await ensure_code_available(db, new_code, exclude_user_id=user.id)
            evaluator_patch.apply(user.evaluator)

        if (
            user.role == Role.CHILD
            and user.child is not None
            and child_patch is not None
            and not child_patch.is_empty()
        ):
            child_patch.apply(user.child)

        await db.flush()

    return user


async def change_password(db: AsyncSession, user: User, password: str | None) -> None:
    validate_password_change(password)
    async with transaction(db):
        user.hashed_password = hash_password(password)


async def delete_account(db: AsyncSession, user: User) -> None:
    """Delete a user together with its profile, surveys and progress."""
    async with transaction(db):
        await db.delete(user)
    logger.info("Deleted user %s", user.id)
