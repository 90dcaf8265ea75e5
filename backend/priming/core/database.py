"""
Database handle and transactional write protocol.

The ``Database`` object owns the engine (and so the connection pool). It is
built once at startup, stored on ``app.state.db`` and disposed at shutdown.
Each request gets its own ``AsyncSession`` from ``get_db``; multi-row writes
run inside ``transaction()`` so they either commit together or not at all.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from priming.core.config import Settings
from priming.core.errors import ApiError, ErrorCode

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    def __init__(self, url: str, **engine_kwargs):
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.sessionmaker = async_sessionmaker(
            self.engine, expire_on_commit=False, autoflush=False
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            echo=settings.db_echo,
            pool_pre_ping=True,
        )

    def session(self) -> AsyncSession:
        return self.sessionmaker()

    async def create_all(self):
        """Create all tables. Used by tests and local development; production uses Alembic."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a session bound to this request and always release it."""
    database: Database = request.app.state.db
    session = database.session()
    try:
        yield session
    finally:
        await session.close()


# Unique constraint markers as they appear in PostgreSQL and SQLite messages
_CODE_CONSTRAINT_MARKERS = ("uq_evaluators_code", "evaluators.code", "(code)=")
_EMAIL_CONSTRAINT_MARKERS = ("uq_users_email", "users.email", "(email)=")


def translate_integrity_error(exc: IntegrityError) -> ApiError | None:
    """Map a unique violation on a known column to its domain error."""
    message = str(exc.orig) if exc.orig is not None else str(exc)
    if any(marker in message for marker in _CODE_CONSTRAINT_MARKERS):
        return ApiError(
            status.HTTP_400_BAD_REQUEST,
            ErrorCode.CODE_EXISTS,
            "The evaluator code is already registered",
        )
    if any(marker in message for marker in _EMAIL_CONSTRAINT_MARKERS):
        return ApiError(
            status.HTTP_400_BAD_REQUEST,
            ErrorCode.EMAIL_EXISTS,
            "The email is already registered",
        )
    return None


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a block of dependent writes as one unit.

    Commits when the block exits normally. On any exception the session is
    rolled back before the error propagates; unique violations on the user
    email or evaluator code are re-raised as ``ApiError``.
    """
    try:
        yield session
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        translated = translate_integrity_error(exc)
        if translated is None:
            raise
        logger.info("Rolled back transaction: %s", translated.message)
        raise translated from exc
    except BaseException:
        await session.rollback()
        raise
