import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from survivor_league.core.config import get_settings
from survivor_league.core.database import engine, Base, session_scope
from survivor_league.core.errors import (
    EngineError, ValidationError, NotFoundError, ConflictError, ConstraintViolation,
)
from survivor_league.api import event_types, episodes, contestants, players, leaderboard
from survivor_league.services.event_catalog import seed_default_event_types

# Import all models so Base.metadata is populated for create_all
import survivor_league.models.models  # noqa: F401

settings = get_settings()

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up, creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with session_scope() as db:
        await seed_default_event_types(db)
    logger.info("Database ready.")
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Fantasy Survivor scoring, sole survivor tracking, roster repair and leaderboards.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(event_types.router)
app.include_router(episodes.router)
app.include_router(contestants.router)
app.include_router(players.router)
app.include_router(leaderboard.router)


STATUS_BY_ERROR = [
    (ValidationError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ConstraintViolation, 500),
]


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    status_code = next((code for cls, code in STATUS_BY_ERROR if isinstance(exc, cls)), 400)
    body = {"detail": exc.message, "error": type(exc).__name__}
    if isinstance(exc, ValidationError):
        body["field"] = exc.field
    return JSONResponse(status_code=status_code, content=body)


@app.get("/health")
async def health():
    return {"status": "healthy"}


def run():
    """Serve the app with uvicorn."""
    uvicorn.run(
        "survivor_league.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
