from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from priming.core.database import get_db
from priming.core.permissions import CurrentIdentity
from priming.schemas import ProgressRequest
from priming.services.progress import (
    GameResponse,
    LevelResponse,
    ProgressResponse,
    get_level,
    level_not_found,
    list_games,
    list_progress,
    save_progress,
)

router = APIRouter()


class MessageResponse(BaseModel):
    message: str


@router.get("", response_model=list[GameResponse])
async def get_games(_: CurrentIdentity, db: AsyncSession = Depends(get_db)):
    """List games with their levels."""
    games = await list_games(db)
    return [GameResponse.model_validate(g) for g in games]


@router.get("/progreso", response_model=list[ProgressResponse])
async def get_progress(identity: CurrentIdentity, db: AsyncSession = Depends(get_db)):
    rows = await list_progress(db, identity.id)
    return [ProgressResponse.model_validate(p) for p in rows]


@router.get("/{game_id}/nivel/{level_id}", response_model=LevelResponse)
async def get_game_level(
    game_id: int,
    level_id: int,
    _: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    level = await get_level(db, game_id, level_id)
    if not level:
        raise level_not_found()
    return LevelResponse.model_validate(level)


@router.post("/{game_id}/nivel/{level_id}/progreso", response_model=MessageResponse)
async def post_progress(
    game_id: int,
    level_id: int,
    data: ProgressRequest,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    await save_progress(db, identity.id, game_id, level_id, data)
    return MessageResponse(message="Progress saved successfully")
