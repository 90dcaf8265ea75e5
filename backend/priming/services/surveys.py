"""
Survey lifecycle.

A survey links one evaluator with one child. Results are appended, never
replaced: each submission inserts a new ``SurveyResult`` and bumps the
survey's ``attempts`` counter in the same transaction.
"""

import logging
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from priming.core.database import transaction
from priming.core.errors import ErrorCode, bad_request, forbidden, not_found
from priming.models.child import Child
from priming.models.evaluator import Evaluator
from priming.models.survey import Survey, SurveyResult
from priming.schemas import SurveyCreateRequest, SurveyPatch, SurveyResultFields
from priming.services.validation import validate_survey, validate_survey_patch

logger = logging.getLogger(__name__)


# Response schemas
class SurveyResponse(BaseModel):
    id: int
    child_id: int
    evaluator_id: int
    created_at: datetime
    attempts: int
    session_number: int
    notes: str

    class Config:
        from_attributes = True


class SurveyWithChild(SurveyResponse):
    child_name: str


class SurveyResultResponse(BaseModel):
    id: int
    survey_id: int
    created_at: datetime
    mental_exam_summary: str | None
    clinical_history: str | None
    learning_diagnosis: str | None
    academic_problems: str | None
    literacy_problems: str | None
    pretest_evaluation: str | None
    posttest_evaluation: str | None
    session_notes: str | None
    behavioral_observation: str | None
    recommendations: str | None
    achievement_indicators: str | None
    game_type: str | None
    difficulty: str | None
    current_level: int | None
    accumulated_score: int | None
    last_played: datetime | None

    class Config:
        from_attributes = True


class SurveyResultsResponse(BaseModel):
    survey: SurveyWithChild
    results: list[SurveyResultResponse]


class AdminSurveyResponse(SurveyWithChild):
    evaluator_name: str
    results: list[SurveyResultResponse]


def survey_with_child(survey: Survey) -> SurveyWithChild:
    """Requires ``survey.child.user`` to be loaded."""
    return SurveyWithChild(
        id=survey.id,
        child_id=survey.child_id,
        evaluator_id=survey.evaluator_id,
        created_at=survey.created_at,
        attempts=survey.attempts,
        session_number=survey.session_number,
        notes=survey.notes,
        child_name=survey.child.user.name,
    )


# Lookups
async def require_evaluator_profile(db: AsyncSession, user_id: int) -> Evaluator:
    """The caller's evaluator profile. Admins without one are turned away here."""
    result = await db.execute(select(Evaluator).where(Evaluator.user_id == user_id))
    evaluator = result.scalar_one_or_none()
    if not evaluator:
        raise bad_request(
            "You do not have evaluator permissions to perform this action",
            ErrorCode.NOT_EVALUATOR,
        )
    return evaluator


async def get_owned_survey(db: AsyncSession, evaluator: Evaluator, survey_id: int) -> Survey:
    result = await db.execute(
        select(Survey)
        .where(Survey.id == survey_id, Survey.evaluator_id == evaluator.id)
        .options(selectinload(Survey.child).selectinload(Child.user))
    )
    survey = result.scalar_one_or_none()
    if not survey:
        raise not_found(
            "Survey not found or you do not have permission to access it",
            ErrorCode.ACCESS_DENIED,
        )
    return survey


async def require_assigned_child(
    db: AsyncSession, evaluator_user_id: int, child_id: int, action: str = "view"
) -> Child:
    """
    Return the child if at least one survey links it to the calling evaluator.

    Raises 403 otherwise, including when the child does not exist.
    """
    result = await db.execute(
        select(Child)
        .join(Survey, Survey.child_id == Child.id)
        .join(Evaluator, Survey.evaluator_id == Evaluator.id)
        .where(Child.id == child_id, Evaluator.user_id == evaluator_user_id)
        .options(selectinload(Child.user))
        .limit(1)
    )
    child = result.scalar_one_or_none()
    if not child:
        raise forbidden(f"You do not have permission to {action} this child")
    return child


# Writes
async def create_survey(
    db: AsyncSession, evaluator_user_id: int, data: SurveyCreateRequest
) -> Survey:
    validate_survey(data)

    child = await db.get(Child, data.child_id)
    if not child:
        raise not_found("Child not found")

    evaluator = await require_evaluator_profile(db, evaluator_user_id)

    async with transaction(db):
        survey = Survey(
            child_id=child.id,
            evaluator_id=evaluator.id,
            attempts=0,
            session_number=1,
            notes=data.notes or "",
        )
        db.add(survey)
        await db.flush()

    logger.info("Evaluator %s opened survey %s for child %s", evaluator.id, survey.id, child.id)
    return survey


async def update_survey(db: AsyncSession, survey: Survey, patch: SurveyPatch) -> Survey:
    if patch.is_empty():
        raise bad_request("No fields to update", ErrorCode.MISSING_DATA)
    validate_survey_patch(patch)

    async with transaction(db):
        patch.apply(survey)
    return survey


async def add_result(
    db: AsyncSession, survey: Survey, fields: SurveyResultFields
) -> SurveyResult:
    """Append a result row and count the attempt atomically."""
    async with transaction(db):
        result = SurveyResult(survey_id=survey.id, **fields.changes())
        db.add(result)
        await db.execute(
            update(Survey)
            .where(Survey.id == survey.id)
            .values(attempts=Survey.attempts + 1)
            .execution_options(synchronize_session=False)
        )
        await db.flush()

    await db.refresh(survey, ["attempts"])
    return result


async def update_result(
    db: AsyncSession, result_id: int, fields: SurveyResultFields
) -> SurveyResult:
    result = await db.get(SurveyResult, result_id)
    if not result:
        # Unknown ids are a bad reference in the request, not a missing user
        raise not_found("Result not found", ErrorCode.MISSING_DATA)
    if fields.is_empty():
        raise bad_request("No fields to update", ErrorCode.MISSING_DATA)

    async with transaction(db):
        fields.apply(result)
    return result


# Reads
async def list_child_surveys(
    db: AsyncSession, evaluator: Evaluator, child_id: int
) -> list[SurveyWithChild]:
    result = await db.execute(
        select(Survey)
        .where(Survey.child_id == child_id, Survey.evaluator_id == evaluator.id)
        .options(selectinload(Survey.child).selectinload(Child.user))
        .order_by(Survey.created_at.desc(), Survey.id.desc())
    )
    return [survey_with_child(s) for s in result.scalars().all()]


async def survey_results(db: AsyncSession, survey: Survey) -> SurveyResultsResponse:
    result = await db.execute(
        select(SurveyResult)
        .where(SurveyResult.survey_id == survey.id)
        .order_by(SurveyResult.id.asc())
    )
    return SurveyResultsResponse(
        survey=survey_with_child(survey),
        results=[SurveyResultResponse.model_validate(r) for r in result.scalars().all()],
    )


async def admin_child_surveys(db: AsyncSession, user_id: int) -> list[AdminSurveyResponse]:
    """Every survey of a child user across all evaluators, with results attached."""
    child_result = await db.execute(
        select(Child).where(Child.user_id == user_id).options(selectinload(Child.user))
    )
    child = child_result.scalar_one_or_none()
    if not child:
        return []

    result = await db.execute(
        select(Survey)
        .where(Survey.child_id == child.id)
        .options(
            selectinload(Survey.evaluator).selectinload(Evaluator.user),
            selectinload(Survey.results),
        )
        .order_by(Survey.created_at.desc(), Survey.id.desc())
    )

    return [
        AdminSurveyResponse(
            id=s.id,
            child_id=s.child_id,
            evaluator_id=s.evaluator_id,
            created_at=s.created_at,
            attempts=s.attempts,
            session_number=s.session_number,
            notes=s.notes,
            child_name=child.user.name,
            evaluator_name=s.evaluator.user.name,
            results=[SurveyResultResponse.model_validate(r) for r in s.results],
        )
        for s in result.scalars().all()
    ]
