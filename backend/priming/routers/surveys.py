from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from priming.core.database import get_db
from priming.core.permissions import AdminIdentity, EvaluatorIdentity
from priming.schemas import SurveyCreateRequest, SurveyPatch, SurveyResultFields
from priming.services.surveys import (
    AdminSurveyResponse,
    SurveyResultResponse,
    SurveyResultsResponse,
    SurveyWithChild,
    add_result,
    admin_child_surveys,
    create_survey,
    get_owned_survey,
    list_child_surveys,
    require_evaluator_profile,
    survey_results,
    update_result,
    update_survey,
)

router = APIRouter()


# Schemas
class SurveyCreatedResponse(BaseModel):
    message: str
    survey_id: int


class ResultCreatedResponse(BaseModel):
    message: str
    result_id: int


class MessageResponse(BaseModel):
    message: str


class ResultUpdatedResponse(BaseModel):
    message: str
    result: SurveyResultResponse


# Administration
@router.get("/admin/usuario/{user_id}", response_model=list[AdminSurveyResponse])
async def admin_list_surveys(
    user_id: int,
    _: AdminIdentity,
    db: AsyncSession = Depends(get_db),
):
    """All surveys of a child user, from every evaluator, with their results."""
    return await admin_child_surveys(db, user_id)


@router.put("/admin/resultados/{result_id}", response_model=ResultUpdatedResponse)
async def admin_update_result(
    result_id: int,
    data: SurveyResultFields,
    _: AdminIdentity,
    db: AsyncSession = Depends(get_db),
):
    result = await update_result(db, result_id, data)
    return ResultUpdatedResponse(
        message="Result updated successfully",
        result=SurveyResultResponse.model_validate(result),
    )


# Evaluators
@router.post("", response_model=SurveyCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create(
    data: SurveyCreateRequest,
    identity: EvaluatorIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Open a new survey between the caller and an existing child."""
    survey = await create_survey(db, identity.id, data)
    return SurveyCreatedResponse(message="Survey created successfully", survey_id=survey.id)


@router.get("/nino/{child_id}", response_model=list[SurveyWithChild])
async def list_for_child(
    child_id: int,
    identity: EvaluatorIdentity,
    db: AsyncSession = Depends(get_db),
):
    evaluator = await require_evaluator_profile(db, identity.id)
    return await list_child_surveys(db, evaluator, child_id)


@router.put("/{survey_id}", response_model=MessageResponse)
async def update(
    survey_id: int,
    data: SurveyPatch,
    identity: EvaluatorIdentity,
    db: AsyncSession = Depends(get_db),
):
    evaluator = await require_evaluator_profile(db, identity.id)
    survey = await get_owned_survey(db, evaluator, survey_id)
    await update_survey(db, survey, data)
    return MessageResponse(message="Survey updated successfully")


@router.post(
    "/{survey_id}/resultados",
    response_model=ResultCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_results(
    survey_id: int,
    data: SurveyResultFields,
    identity: EvaluatorIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Append a result to one of the caller's surveys."""
    evaluator = await require_evaluator_profile(db, identity.id)
    survey = await get_owned_survey(db, evaluator, survey_id)
    result = await add_result(db, survey, data)
    return ResultCreatedResponse(message="Results recorded successfully", result_id=result.id)


@router.get("/{survey_id}/resultados", response_model=SurveyResultsResponse)
async def get_results(
    survey_id: int,
    identity: EvaluatorIdentity,
    db: AsyncSession = Depends(get_db),
):
    evaluator = await require_evaluator_profile(db, identity.id)
    survey = await get_owned_survey(db, evaluator, survey_id)
    return await survey_results(db, survey)
