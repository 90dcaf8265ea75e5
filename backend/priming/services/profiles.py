"""
User profile assembly.

A user is returned as its base fields plus ``role_data``, a tagged union picked
by role: admins carry nothing extra, evaluators and children carry their
profile row.
"""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from priming.core.errors import not_found
from priming.models.child import Child
from priming.models.user import Role, User


class AdminData(BaseModel):
    kind: Literal["admin"] = "admin"


class EvaluatorData(BaseModel):
    kind: Literal["evaluator"] = "evaluator"
    evaluator_id: int
    code: str
    evaluator_type: str
    document_type: str | None


class ChildData(BaseModel):
    kind: Literal["child"] = "child"
    child_id: int
    age: int
    grade: int
    school: str
    shift: str


RoleData = Annotated[Union[AdminData, EvaluatorData, ChildData], Field(discriminator="kind")]


class BasicUser(BaseModel):
    id: int
    name: str
    email: str
    role: Role


class UserResponse(BasicUser):
    created_at: datetime
    role_data: RoleData | None = None


def basic_user(user: User) -> BasicUser:
    return BasicUser(id=user.id, name=user.name, email=user.email, role=user.role)


def child_data(child: Child) -> ChildData:
    return ChildData(
        child_id=child.id,
        age=child.age,
        grade=child.grade,
        school=child.school,
        shift=child.shift.value,
    )


def role_data(user: User) -> RoleData | None:
    """Select the role-specific part of a user. Requires the profiles to be loaded."""
    if user.role == Role.ADMIN:
        return AdminData()
    if user.role == Role.EVALUATOR and user.evaluator is not None:
        evaluator = user.evaluator
        return EvaluatorData(
            evaluator_id=evaluator.id,
            code=evaluator.code,
            evaluator_type=evaluator.evaluator_type.value,
            document_type=evaluator.document_type,
        )
    if user.role == Role.CHILD and user.child is not None:
        return child_data(user.child)
    return None


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        created_at=user.created_at,
        role_data=role_data(user),
    )


def _with_profiles(stmt):
    return stmt.options(selectinload(User.evaluator), selectinload(User.child))


async def get_user_with_profile(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(_with_profiles(select(User).where(User.id == user_id)))
    return result.scalar_one_or_none()


async def require_user_with_profile(db: AsyncSession, user_id: int) -> User:
    user = await get_user_with_profile(db, user_id)
    if not user:
        raise not_found("User not found")
    return user


async def list_users_with_profiles(db: AsyncSession) -> list[User]:
    result = await db.execute(_with_profiles(select(User).order_by(User.id.asc())))
    return list(result.scalars().all())
