"""
Game progress service.

Saving progress updates the (user, game, level) row in place or creates it,
and completing a level unlocks the next one in the same game by creating an
empty progress row for it. Levels are ordered by id; the next level is the
lowest level id above the current one within the game.
"""

import logging
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from priming.core.database import transaction
from priming.core.errors import ApiError, ErrorCode, not_found
from priming.models.evaluator import Evaluator
from priming.models.game import Game, Level
from priming.models.progress import GameProgress
from priming.models.survey import Survey
from priming.models.user import User
from priming.schemas import ProgressRequest
from priming.services.validation import validate_progress

logger = logging.getLogger(__name__)

RECENT_SESSIONS = 10


# Response schemas
class ProgressResponse(BaseModel):
    id: int
    game_id: int
    level_id: int
    score: int
    time: int
    hits: int
    misses: int
    completed: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LevelSummary(BaseModel):
    id: int
    game_id: int
    name: str
    description: str | None
    difficulty: str | None

    class Config:
        from_attributes = True


class LevelResponse(LevelSummary):
    instructions: str | None
    max_time: int | None
    training_audio: str | None


class GameResponse(BaseModel):
    id: int
    name: str
    description: str | None
    image: str | None
    levels: list[LevelSummary] = []

    class Config:
        from_attributes = True


class CurrentLevelInfo(LevelResponse):
    completed: bool = False
    last_level: bool = False


class CurrentLevelResponse(BaseModel):
    level: CurrentLevelInfo
    progress: ProgressResponse | None


class ChildOverview(BaseModel):
    games: list[GameResponse]
    levels: list[LevelSummary]
    progress: list[ProgressResponse]


class Totals(BaseModel):
    total_games: int = 0
    total_levels: int = 0
    completed_levels: int = 0
    total_score: int = 0
    total_minutes: int = 0
    total_hits: int = 0
    total_misses: int = 0


class GameStats(BaseModel):
    id: int
    name: str
    levels_played: int
    levels_completed: int
    total_levels: int
    total_score: int
    total_minutes: int


class RecentSession(BaseModel):
    game: str
    level: str
    score: int
    hits: int
    misses: int
    time: int
    completed: bool
    updated_at: datetime


class AssignedEvaluator(BaseModel):
    evaluator_name: str
    evaluator_type: str
    assigned_at: datetime


class ChildSummary(BaseModel):
    name: str
    age: int
    grade: int
    school: str
    shift: str


class ChildStatistics(BaseModel):
    child: ChildSummary
    totals: Totals
    games: list[GameStats]
    recent_sessions: list[RecentSession]
    evaluators: list[AssignedEvaluator]


# Queries
def level_not_found(message: str = "Level not found") -> ApiError:
    # A game or level id that matches nothing is reported as missing request data
    return not_found(message, ErrorCode.MISSING_DATA)


async def get_level(db: AsyncSession, game_id: int, level_id: int) -> Level | None:
    result = await db.execute(
        select(Level).where(Level.id == level_id, Level.game_id == game_id)
    )
    return result.scalar_one_or_none()


async def next_level(db: AsyncSession, game_id: int, level_id: int) -> Level | None:
    result = await db.execute(
        select(Level)
        .where(Level.game_id == game_id, Level.id > level_id)
        .order_by(Level.id.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_progress_row(
    db: AsyncSession, user_id: int, game_id: int, level_id: int
) -> GameProgress | None:
    result = await db.execute(
        select(GameProgress).where(
            GameProgress.user_id == user_id,
            GameProgress.game_id == game_id,
            GameProgress.level_id == level_id,
        )
    )
    return result.scalar_one_or_none()


async def list_progress(db: AsyncSession, user_id: int) -> list[GameProgress]:
    """A user's progress rows, most recently updated first."""
    result = await db.execute(
        select(GameProgress)
        .where(GameProgress.user_id == user_id)
        .order_by(GameProgress.updated_at.desc(), GameProgress.id.desc())
    )
    return list(result.scalars().all())


async def list_games(db: AsyncSession) -> list[Game]:
    result = await db.execute(
        select(Game).options(selectinload(Game.levels)).order_by(Game.id.asc())
    )
    return list(result.scalars().all())


# Writes
async def save_progress(
    db: AsyncSession,
    user_id: int,
    game_id: int,
    level_id: int,
    data: ProgressRequest,
) -> GameProgress:
    """
    Record a play of one level.

    The row for (user, game, level) is overwritten if present. When the level
    is completed and the game has a later level without progress, an empty
    row is created for it so it shows as unlocked.
    """
    validate_progress(data)

    level = await get_level(db, game_id, level_id)
    if not level:
        raise level_not_found()

    async with transaction(db):
        progress = await get_progress_row(db, user_id, game_id, level_id)
        if progress:
            progress.score = data.score
            progress.time = data.time
            progress.hits = data.hits
            progress.misses = data.misses
            progress.completed = data.completed
            progress.updated_at = datetime.utcnow()
        else:
            progress = GameProgress(
                user_id=user_id,
                game_id=game_id,
                level_id=level_id,
                score=data.score,
                time=data.time,
                hits=data.hits,
                misses=data.misses,
                completed=data.completed,
            )
            db.add(progress)
        await db.flush()

        if data.completed:
            following = await next_level(db, game_id, level_id)
            if following and not await get_progress_row(db, user_id, game_id, following.id):
                db.add(
                    GameProgress(
                        user_id=user_id,
                        game_id=game_id,
                        level_id=following.id,
                        score=0,
                        time=0,
                        hits=0,
                        misses=0,
                        completed=False,
                    )
                )
                logger.info("Unlocked level %s of game %s for user %s", following.id, game_id, user_id)
                await db.flush()

    return progress


# Views
async def current_level(db: AsyncSession, user_id: int, game_id: int) -> CurrentLevelResponse:
    """Work out which level a child should play next in a game."""
    result = await db.execute(
        select(GameProgress)
        .where(GameProgress.user_id == user_id, GameProgress.game_id == game_id)
        .order_by(GameProgress.level_id.desc())
        .limit(1)
    )
    latest = result.scalar_one_or_none()

    completed = False
    last_level = False

    if latest is None:
        first = await db.execute(
            select(Level).where(Level.game_id == game_id).order_by(Level.id.asc()).limit(1)
        )
        level = first.scalar_one_or_none()
        if level is None:
            raise level_not_found("No levels found for this game")
    elif latest.completed:
        level = await next_level(db, game_id, latest.level_id)
        if level is None:
            # Every level is done; stay on the last one
            level = await db.get(Level, latest.level_id)
            completed = True
            last_level = True
    else:
        level = await db.get(Level, latest.level_id)
        completed = latest.completed

    if level is None:
        raise level_not_found()

    progress = await get_progress_row(db, user_id, game_id, level.id)

    return CurrentLevelResponse(
        level=CurrentLevelInfo(
            id=level.id,
            game_id=level.game_id,
            name=level.name,
            description=level.description,
            difficulty=level.difficulty,
            instructions=level.instructions,
            max_time=level.max_time,
            training_audio=level.training_audio,
            completed=completed,
            last_level=last_level,
        ),
        progress=ProgressResponse.model_validate(progress) if progress else None,
    )


async def child_overview(db: AsyncSession, user_id: int) -> ChildOverview:
    games = await list_games(db)
    levels = [level for game in games for level in game.levels]
    progress = await list_progress(db, user_id)
    return ChildOverview(
        games=[GameResponse.model_validate(g) for g in games],
        levels=[LevelSummary.model_validate(level) for level in levels],
        progress=[ProgressResponse.model_validate(p) for p in progress],
    )


async def child_statistics(db: AsyncSession, user: User) -> ChildStatistics:
    """Aggregate a child's play history and the evaluators assigned to them."""
    child = user.child
    if child is None:
        raise not_found("Child data not found")

    games = await list_games(db)
    result = await db.execute(
        select(GameProgress)
        .where(GameProgress.user_id == user.id)
        .options(selectinload(GameProgress.level))
        .order_by(GameProgress.updated_at.desc(), GameProgress.id.desc())
    )
    rows = list(result.scalars().all())

    totals = Totals(
        total_games=len({p.game_id for p in rows}),
        total_levels=len({p.level_id for p in rows}),
        completed_levels=len({p.level_id for p in rows if p.completed}),
        total_score=sum(p.score for p in rows),
        total_minutes=sum(p.time for p in rows) // 60,
        total_hits=sum(p.hits for p in rows),
        total_misses=sum(p.misses for p in rows),
    )

    per_game = []
    for game in games:
        played = [p for p in rows if p.game_id == game.id]
        per_game.append(
            GameStats(
                id=game.id,
                name=game.name,
                levels_played=len({p.level_id for p in played}),
                levels_completed=len({p.level_id for p in played if p.completed}),
                total_levels=len(game.levels),
                total_score=sum(p.score for p in played),
                total_minutes=sum(p.time for p in played) // 60,
            )
        )

    game_names = {g.id: g.name for g in games}
    recent = [
        RecentSession(
            game=game_names.get(p.game_id, ""),
            level=p.level.name,
            score=p.score,
            hits=p.hits,
            misses=p.misses,
            time=p.time,
            completed=p.completed,
            updated_at=p.updated_at,
        )
        for p in rows[:RECENT_SESSIONS]
    ]

    survey_result = await db.execute(
        select(Survey)
        .where(Survey.child_id == child.id)
        .options(selectinload(Survey.evaluator).selectinload(Evaluator.user))
        .order_by(Survey.created_at.asc(), Survey.id.asc())
    )
    # First survey per evaluator is the assignment date
    assigned: dict[int, AssignedEvaluator] = {}
    for survey in survey_result.scalars().all():
        if survey.evaluator_id in assigned:
            continue
        assigned[survey.evaluator_id] = AssignedEvaluator(
            evaluator_name=survey.evaluator.user.name,
            evaluator_type=survey.evaluator.evaluator_type.value,
            assigned_at=survey.created_at,
        )

    return ChildStatistics(
        child=ChildSummary(
            name=user.name,
            age=child.age,
            grade=child.grade,
            school=child.school,
            shift=child.shift.value,
        ),
        totals=totals,
        games=per_game,
        recent_sessions=recent,
        evaluators=list(assigned.values()),
    )

