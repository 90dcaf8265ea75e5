from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from priming.core.database import get_db
from priming.core.errors import not_found
from priming.core.permissions import ChildIdentity
from priming.schemas import ProgressRequest
from priming.services.profiles import BasicUser, ChildData, child_data, require_user_with_profile
from priming.services.progress import (
    ChildOverview,
    ChildStatistics,
    CurrentLevelResponse,
    child_overview,
    child_statistics,
    current_level,
    save_progress,
)

router = APIRouter()


class ChildProfileResponse(BaseModel):
    user: BasicUser
    child: ChildData


class MessageResponse(BaseModel):
    message: str


@router.get("/perfil", response_model=ChildProfileResponse)
async def get_child_profile(identity: ChildIdentity, db: AsyncSession = Depends(get_db)):
    user = await require_user_with_profile(db, identity.id)
    if user.child is None:
        raise not_found("Child data not found")
    return ChildProfileResponse(
        user=BasicUser(id=user.id, name=user.name, email=user.email, role=user.role),
        child=child_data(user.child),
    )


@router.get("/progreso", response_model=ChildOverview)
async def get_child_progress(identity: ChildIdentity, db: AsyncSession = Depends(get_db)):
    """Games, levels and the caller's progress in one payload."""
    return await child_overview(db, identity.id)


@router.post("/juego/{game_id}/nivel/{level_id}/progreso", response_model=MessageResponse)
async def save_child_progress(
    game_id: int,
    level_id: int,
    data: ProgressRequest,
    identity: ChildIdentity,
    db: AsyncSession = Depends(get_db),
):
    await save_progress(db, identity.id, game_id, level_id, data)
    return MessageResponse(message="Progress saved successfully")


@router.get("/juego/{game_id}/nivel-actual", response_model=CurrentLevelResponse)
async def get_current_level(
    game_id: int,
    identity: ChildIdentity,
    db: AsyncSession = Depends(get_db),
):
    return await current_level(db, identity.id, game_id)


@router.get("/estadisticas", response_model=ChildStatistics)
async def get_statistics(identity: ChildIdentity, db: AsyncSession = Depends(get_db)):
    user = await require_user_with_profile(db, identity.id)
    return await child_statistics(db, user)
