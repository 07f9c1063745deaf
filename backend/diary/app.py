"""
Diary - FastAPI Backend
"""

import time
from contextlib import asynccontextmanager
from datetime import timedelta

from argon2 import PasswordHasher
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from diary.config import Settings, get_settings
from diary.database.db import init_db
from diary.errors import register_exception_handlers
from diary.logging import setup_logging, get_logger
from diary.routers import auth, health, notes
from diary.services.credentials import CredentialStore
from diary.services.export import ExportService
from diary.services.notes import SqliteNoteRepository
from diary.services.sessions import SessionManager

logger = get_logger('main')


def install_services(
    app: FastAPI, settings: Settings, hasher: PasswordHasher | None = None
) -> None:
    """Build the service graph and hang it off ``app.state``."""
    app.state.settings = settings
    app.state.credentials = CredentialStore(
        db_path=settings.DATABASE_PATH,
        hasher=hasher,
        min_password_length=settings.PASSWORD_MIN_LENGTH,
    )
    app.state.sessions = SessionManager(
        credentials=app.state.credentials,
        ttl=timedelta(hours=settings.SESSION_TTL_HOURS),
    )
    app.state.notes = SqliteNoteRepository(db_path=settings.DATABASE_PATH)
    app.state.exports = ExportService()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.LOG_LEVEL)
        logger.info("Starting Diary API")

        await init_db(settings.DATABASE_PATH)
        logger.info("Database initialized")

        if not hasattr(app.state, "credentials"):
            install_services(app, settings)
        logger.info("Services initialized")

        yield

        logger.info("Shutting down application")

    app = FastAPI(
        title="Diary API",
        description="Personal notes and diary with per-user storage",
        version="1.0.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    request_logger = get_logger('request')

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        # An unhandled error escapes call_next and becomes a 500 further out.
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            request_logger.info(
                f"{request.method} {request.url.path} -> {status_code} ({elapsed_ms} ms)"
            )

    register_exception_handlers(app)

    prefix = settings.API_PREFIX
    app.include_router(health.router, prefix=prefix, tags=["Health"])
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Auth"])
    app.include_router(notes.router, prefix=f"{prefix}/notes", tags=["Notes"])

    @app.get("/")
    async def root():
        return {
            "name": "Diary API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": f"{prefix}/health"
        }

    return app
