"""FastAPI application factory.

Main entry point for the vocabdrill Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vocabdrill import __version__
from vocabdrill.db.database import get_db_path, init_db
from vocabdrill.web.routes import (
    health_router,
    quiz_router,
    stats_router,
    users_router,
    vocabulary_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    init_db()
    db_path = get_db_path()
    logger.info("api_startup", db_path=str(db_path.absolute()))
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="vocabdrill API",
        description="Spaced-repetition vocabulary quizzes",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(vocabulary_router)
    app.include_router(quiz_router)
    app.include_router(stats_router)

    return app


# Default app instance for uvicorn
app = create_app()
