"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from toastyou.activity.router import router as analytics_router
from toastyou.config import get_settings
from toastyou.database import close_db, get_session, init_db
from toastyou.gamification.router import router as gamification_router
from toastyou.gamification.seed import seed_badges
from toastyou.health.router import router as health_router
from toastyou.middleware import setup_middleware
from toastyou.notes.router import router as notes_router
from toastyou.redis_client import close_redis, init_redis
from toastyou.toasts.router import router as toasts_router
from toastyou.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, settings.redis_max_connections)
    Path(settings.audio_dir).mkdir(parents=True, exist_ok=True)

    # Seed badge definitions (idempotent)
    try:
        async for db in get_session():
            await seed_badges(db)
            break
    except Exception:
        logger.warning("Badge seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="A Toast to You API",
        description="Weekly reflection toasts and achievement badges",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(notes_router)
    app.include_router(toasts_router)
    app.include_router(gamification_router)
    app.include_router(analytics_router)

    # Synthesized toast audio is served from the local media directory
    if settings.audio_base_url.startswith("/"):
        app.mount(
            settings.audio_base_url.rstrip("/"),
            StaticFiles(directory=settings.audio_dir, check_dir=False),
            name="audio",
        )

    return app


app = create_app()
