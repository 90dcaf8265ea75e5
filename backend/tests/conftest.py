import itertools
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from priming.core.database import Database
from priming.core.security import create_access_token
from priming.main import create_app
from priming.models import User
from priming.schemas import RegisterRequest
from priming.seed import seed_games
from priming.services.accounts import create_account

PASSWORD = "Secret123"

_counter = itertools.count(1)


@pytest.fixture
async def database():
    db = Database(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session() as s:
        yield s


@pytest.fixture
async def client(database):
    app = create_app(database)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def games(session):
    created = await seed_games(session)
    await session.commit()
    return created


def registration(role: str, **overrides) -> dict:
    n = next(_counter)
    data = {
        "name": f"{role.title()} {n}",
        "email": f"{role}{n}@example.com",
        "password": PASSWORD,
        "role": role,
    }
    if role == "evaluator":
        data.update(code=f"EV{n:03d}", evaluator_type="Teacher", document_type="CC")
    elif role == "child":
        data.update(age=6, grade=1, school="Colegio Central", shift="morning")
    data.update(overrides)
    return data


@pytest.fixture
def create_user(session):
    async def _create(role: str = "evaluator", **overrides) -> User:
        return await create_account(session, RegisterRequest(**registration(role, **overrides)))

    return _create


@pytest.fixture
def assign_child(client):
    """Register a child through an evaluator and return (survey_id, child_id, payload)."""

    async def _assign(evaluator: User, **overrides):
        payload = registration("child", **overrides)
        payload.pop("role")
        response = await client.post(
            "/api/evaluador/asignar-nino", json=payload, headers=auth(evaluator)
        )
        assert response.status_code == 201, response.text
        survey_id = response.json()["survey_id"]

        children = await client.get("/api/evaluador/ninos", headers=auth(evaluator))
        row = next(c for c in children.json() if c["survey_id"] == survey_id)
        return survey_id, row["child_id"], payload

    return _assign


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


async def count_rows(database: Database, model, *criteria) -> int:
    async with database.session() as s:
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        return await s.scalar(stmt)
