"""
Seed a fresh database with sample users, the games and initial surveys.

Run with ``python -m priming.seed``. Does nothing if any user exists.
"""

import asyncio
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from priming.core.config import get_settings
from priming.core.database import Database, transaction
from priming.core.security import hash_password
from priming.models import (
    Child,
    Evaluator,
    EvaluatorType,
    Game,
    Level,
    Role,
    Shift,
    Survey,
    User,
)

logger = logging.getLogger(__name__)

ADMIN = {"name": "Administrador", "email": "admin@priming.com", "password": "Admin123"}

EVALUATOR_PASSWORD = "Evaluador123"
EVALUATORS = [
    {"name": "Docente Pérez", "email": "docente@priming.com", "code": "DOC001", "type": EvaluatorType.TEACHER},
    {"name": "Estudiante García", "email": "estudiante@priming.com", "code": "EST001", "type": EvaluatorType.STUDENT},
    {"name": "Egresado Martínez", "email": "egresado@priming.com", "code": "EGR001", "type": EvaluatorType.GRADUATE},
]

CHILD_PASSWORD = "Nino123"
CHILDREN = [
    {"name": "Juan Pérez", "email": "juan@priming.com", "age": 5, "grade": -1, "school": "Colegio San José", "shift": Shift.MORNING},
    {"name": "María García", "email": "maria@priming.com", "age": 6, "grade": 1, "school": "Colegio Santa Inés", "shift": Shift.AFTERNOON},
    {"name": "Pedro Rodríguez", "email": "pedro@priming.com", "age": 7, "grade": 2, "school": "Colegio Nuevo Horizonte", "shift": Shift.CONTINUOUS},
]

GAMES = [
    {
        "name": "Cognados",
        "description": "Juego de palabras que suenan similar tanto en español como en inglés",
        "image": "/images/juegos/cognados.png",
    },
    {
        "name": "Pares Mínimos",
        "description": "Juego de palabras que suenan similar en su pronunciación en inglés",
        "image": "/images/juegos/pares-minimos.png",
    },
]

# (difficulty, max time in seconds)
LEVELS = [("fácil", 180), ("medio", 150), ("difícil", 90)]


async def seed_games(db: AsyncSession) -> list[Game]:
    """Add the games and their levels if there are none. Caller commits."""
    existing = await db.scalar(select(func.count()).select_from(Game))
    if existing:
        return []

    games = []
    for data in GAMES:
        game = Game(**data)
        slug = data["name"].lower().replace(" ", "-")
        for i, (difficulty, max_time) in enumerate(LEVELS, start=1):
            game.levels.append(
                Level(
                    name=f"Nivel {i}",
                    description=f"Nivel {difficulty} de {data['name']}",
                    difficulty=difficulty,
                    instructions="Escucha el audio y selecciona las palabras correctas.",
                    max_time=max_time,
                    training_audio=f"/audio/{slug}/{difficulty}/intro.mp3",
                )
            )
        db.add(game)
        games.append(game)
        # Flush game by game so level ids ascend within each game
        await db.flush()
    return games


async def seed(db: AsyncSession) -> bool:
    if await db.scalar(select(func.count()).select_from(User)):
        logger.warning("The database already has users; skipping seed")
        return False

    async with transaction(db):
        db.add(
            User(
                name=ADMIN["name"],
                email=ADMIN["email"],
                hashed_password=hash_password(ADMIN["password"]),
                role=Role.ADMIN,
            )
        )

        evaluator_hash = hash_password(EVALUATOR_PASSWORD)
        evaluators = []
        for data in EVALUATORS:
            user = User(
                name=data["name"],
                email=data["email"],
                hashed_password=evaluator_hash,
                role=Role.EVALUATOR,
            )
            user.evaluator = Evaluator(code=data["code"], evaluator_type=data["type"])
            db.add(user)
            evaluators.append(user.evaluator)

        child_hash = hash_password(CHILD_PASSWORD)
        children = []
        for data in CHILDREN:
            user = User(
                name=data["name"],
                email=data["email"],
                hashed_password=child_hash,
                role=Role.CHILD,
            )
            user.child = Child(
                age=data["age"],
                grade=data["grade"],
                school=data["school"],
                shift=data["shift"],
            )
            db.add(user)
            children.append(user.child)

        await db.flush()
        await seed_games(db)

        # Every child starts assigned to every evaluator
        for child in children:
            for evaluator in evaluators:
                db.add(
                    Survey(
                        child_id=child.id,
                        evaluator_id=evaluator.id,
                        attempts=0,
                        session_number=1,
                        notes="Encuesta inicial de prueba",
                    )
                )

    logger.info(
        "Seeded 1 admin, %d evaluators, %d children and %d surveys",
        len(evaluators),
        len(children),
        len(evaluators) * len(children),
    )
    return True


async def main(database: Database | None = None):
    database = database or Database.from_settings(get_settings())
    try:
        async with database.session() as db:
            await seed(db)
    finally:
        await database.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
