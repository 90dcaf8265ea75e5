import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from priming.core.config import get_settings
from priming.core.database import Database
from priming.core.errors import add_error_handlers
from priming.routers import auth, child, evaluator, games, surveys, users


settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: open the pool unless one was injected
    if getattr(app.state, "db", None) is None:
        app.state.db = Database.from_settings(settings)
    logger.info("PRIMING API starting (%s)", settings.environment)
    yield
    # Shutdown: release pooled connections
    await app.state.db.dispose()


def create_app(database: Database | None = None) -> FastAPI:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="PRIMING API",
        description="Evaluation platform for children's speech and language",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.db = database
    # Avoid 307 redirects for trailing slash (e.g. /api/juegos/ -> /api/juegos)
    app.router.redirect_slashes = False

    # CORS middleware
    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_error_handlers(app)

    # Include routers
    app.include_router(auth.router, prefix="/api", tags=["Authentication"])
    app.include_router(users.router, prefix="/api", tags=["Users"])
    app.include_router(evaluator.router, prefix="/api/evaluador", tags=["Evaluator"])
    app.include_router(surveys.router, prefix="/api/encuestas", tags=["Surveys"])
    app.include_router(games.router, prefix="/api/juegos", tags=["Games"])
    app.include_router(child.router, prefix="/api/nino", tags=["Child"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()


def run():
    uvicorn.run("priming.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
