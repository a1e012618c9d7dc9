"""
MathQuiz Adaptive Arithmetic Service

This module provides the application factory for the MathQuiz backend, an
adaptive mental-arithmetic game.

The service features:
1. A per-session performance tracker that adjusts difficulty and score
2. Question generation through an OpenAI-compatible chat API
3. Timed rounds with answer checking and speed feedback
4. Durable per-player progress (high score, level, games played, history)
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from mathquiz.common.logger import app_logger, configure_logger

logger = app_logger.getChild("app")


def create_app(
    app_settings=None,
    question_generator=None,
    progress_repository=None
) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Args:
        app_settings: Settings to use, the module-level settings by default
        question_generator: Question generator, built from settings by default
        progress_repository: Progress storage; when omitted the SQLAlchemy
            repository on ``DATABASE_URL`` is used

    Returns:
        Configured FastAPI application
    """
    from mathquiz.config import settings as default_settings

    settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Set up storage and game services, and release them on shutdown."""
        from mathquiz.database.init_db import close_database, get_session_factory, initialize_database
        from mathquiz.game.session import GameSessionManager
        from mathquiz.progress.repository import SQLAlchemyProgressRepository
        from mathquiz.progress.service import ProgressService
        from mathquiz.questions.generator import create_question_generator

        configure_logger(
            name="mathquiz",
            level=settings.LOG_LEVEL,
            use_json=settings.LOG_JSON,
            log_file=settings.LOG_FILE or None
        )
        logger.info("Application startup sequence initiated.")

        repository = progress_repository
        uses_database = repository is None
        if uses_database:
            await initialize_database(database_url=settings.DATABASE_URL, echo=settings.SQL_ECHO)
            repository = SQLAlchemyProgressRepository(get_session_factory())

        app.state.progress_service = ProgressService(
            repository, history_limit=settings.PROGRESS_HISTORY_LIMIT
        )
        app.state.session_manager = GameSessionManager(
            question_generator or create_question_generator(settings),
            idle_timeout=settings.SESSION_IDLE_TIMEOUT
        )

        logger.info("Application startup sequence complete.")
        yield

        logger.info("Application shutdown sequence initiated.")
        if uses_database:
            await close_database()
        logger.info("Application shutdown sequence complete.")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Adaptive mental arithmetic game",
        version="1.0.0",
        lifespan=lifespan
    )

    from fastapi.middleware.cors import CORSMiddleware

    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from fastapi.exceptions import RequestValidationError

    from mathquiz.api import main_router, service_exception_handler, validation_exception_handler
    from mathquiz.common.error_handling import MathQuizError

    app.include_router(main_router, prefix=settings.API_PREFIX)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(MathQuizError, service_exception_handler)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        """Liveness check."""
        return {"status": "ok"}

    logger.info(f"Application created with {len(app.routes)} routes")
    return app


__all__ = ["create_app"]
