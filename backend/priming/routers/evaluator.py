from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from priming.core.database import get_db
from priming.core.permissions import EvaluatorIdentity
from priming.models.child import Child
from priming.models.evaluator import Evaluator
from priming.models.survey import Survey
from priming.schemas import AssignChildRequest, ChildPatch, PasswordChangeRequest, UserPatch
from priming.services.accounts import (
    assign_new_child,
    change_password,
    ensure_email_available,
    update_account,
)
from priming.services.profiles import require_user_with_profile
from priming.services.progress import ProgressResponse, list_progress
from priming.services.surveys import (
    SurveyResponse,
    require_assigned_child,
    require_evaluator_profile,
)
from priming.services.validation import validate_child_assignment

router = APIRouter()


# Schemas
class AssignChildResponse(BaseModel):
    message: str
    survey_id: int


class AssignedChild(BaseModel):
    survey_id: int
    child_id: int
    child_name: str
    child_email: str
    age: int
    grade: int
    school: str
    shift: str
    created_at: datetime
    attempts: int
    session_number: int
    notes: str


class ChildDetail(BaseModel):
    id: int
    name: str
    email: str
    age: int
    grade: int
    school: str
    shift: str


class ChildResultsResponse(BaseModel):
    child: ChildDetail
    surveys: list[SurveyResponse]
    progress: list[ProgressResponse]


class EditChildRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    age: int | None = None
    grade: int | None = None
    school: str | None = None
    shift: str | None = None


class MessageResponse(BaseModel):
    message: str


class CountBy(BaseModel):
    value: int | str
    count: int


class EvaluatorStatistics(BaseModel):
    total_children: int
    total_surveys: int
    by_age: list[CountBy]
    by_grade: list[CountBy]
    by_school: list[CountBy]


def child_detail(child: Child) -> ChildDetail:
    return ChildDetail(
        id=child.id,
        name=child.user.name,
        email=child.user.email,
        age=child.age,
        grade=child.grade,
        school=child.school,
        shift=child.shift.value,
    )


# Endpoints
@router.post("/asignar-nino", response_model=AssignChildResponse, status_code=status.HTTP_201_CREATED)
async def assign_child(
    data: AssignChildRequest,
    identity: EvaluatorIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Register a new child and start a survey with the caller."""
    validate_child_assignment(data)
    await ensure_email_available(db, data.email.strip())

    survey = await assign_new_child(db, identity.id, data)

    return AssignChildResponse(
        message="Child registered and survey started successfully",
        survey_id=survey.id,
    )


@router.get("/ninos", response_model=list[AssignedChild])
async def list_assigned_children(identity: EvaluatorIdentity, db: AsyncSession = Depends(get_db)):
    """One row per survey the caller holds, newest first."""
    result = await db.execute(
        select(Survey)
        .join(Evaluator, Survey.evaluator_id == Evaluator.id)
        .where(Evaluator.user_id == identity.id)
        .options(selectinload(Survey.child).selectinload(Child.user))
        .order_by(Survey.created_at.desc(), Survey.id.desc())
    )
    return [
        AssignedChild(
            survey_id=s.id,
            child_id=s.child.id,
            child_name=s.child.user.name,
            child_email=s.child.user.email,
            age=s.child.age,
            grade=s.child.grade,
            school=s.child.school,
            shift=s.child.shift.value,
            created_at=s.created_at,
            attempts=s.attempts,
            session_number=s.session_number,
            notes=s.notes,
        )
        for s in result.scalars().all()
    ]


@router.get("/resultados/{child_id}", response_model=ChildResultsResponse)
async def child_results(
    child_id: int,
    identity: EvaluatorIdentity,
    db: AsyncSession = Depends(get_db),
):
    """The caller's surveys of a child plus the child's game progress."""
    child = await require_assigned_child(db, identity.id, child_id, action="view the results of")

    surveys = await db.execute(
        select(Survey)
        .join(Evaluator, Survey.evaluator_id == Evaluator.id)
        .where(Survey.child_id == child.id, Evaluator.user_id == identity.id)
        .order_by(Survey.created_at.desc(), Survey.id.desc())
    )
    progress = await list_progress(db, child.user_id)

    return ChildResultsResponse(
        child=child_detail(child),
        surveys=[SurveyResponse.model_validate(s) for s in surveys.scalars().all()],
        progress=[ProgressResponse.model_validate(p) for p in progress],
    )


@router.put("/ninos/{child_id}", response_model=MessageResponse)
async def edit_child(
    child_id: int,
    data: EditChildRequest,
    identity: EvaluatorIdentity,
    db: AsyncSession = Depends(get_db),
):
    child = await require_assigned_child(db, identity.id, child_id, action="edit")
    user = await require_user_with_profile(db, child.user_id)

    await update_account(
        db,
        user,
        UserPatch(**data.model_dump(include={"name", "email"}, exclude_unset=True)),
        child_patch=ChildPatch(
            **data.model_dump(include={"age", "grade", "school", "shift"}, exclude_unset=True)
        ),
    )
    return MessageResponse(message="Child data updated successfully")


@router.put("/ninos/{child_id}/password", response_model=MessageResponse)
async def reset_child_password(
    child_id: int,
    data: PasswordChangeRequest,
    identity: EvaluatorIdentity,
    db: AsyncSession = Depends(get_db),
):
    child = await require_assigned_child(db, identity.id, child_id, action="change the password of")
    await change_password(db, child.user, data.password)
    return MessageResponse(message="Child password updated successfully")


@router.get("/estadisticas", response_model=EvaluatorStatistics)
async def evaluator_statistics(identity: EvaluatorIdentity, db: AsyncSession = Depends(get_db)):
    """Counts over the caller's surveys, grouped by child attributes."""
    evaluator = await require_evaluator_profile(db, identity.id)

    total_children = await db.scalar(
        select(func.count(func.distinct(Survey.child_id))).where(
            Survey.evaluator_id == evaluator.id
        )
    )
    total_surveys = await db.scalar(
        select(func.count(Survey.id)).where(Survey.evaluator_id == evaluator.id)
    )

    async def count_by(column, order_by_count: bool = False) -> list[CountBy]:
        count = func.count(Survey.id).label("count")
        stmt = (
            select(column, count)
            .select_from(Survey)
            .join(Child, Survey.child_id == Child.id)
            .where(Survey.evaluator_id == evaluator.id)
            .group_by(column)
            .order_by(count.desc() if order_by_count else column.asc())
        )
        result = await db.execute(stmt)
        return [CountBy(value=value, count=n) for value, n in result.all()]

    return EvaluatorStatistics(
        total_children=total_children or 0,
        total_surveys=total_surveys or 0,
        by_age=await count_by(Child.age),
        by_grade=await count_by(Child.grade),
        by_school=await count_by(Child.school, order_by_count=True),
    )
