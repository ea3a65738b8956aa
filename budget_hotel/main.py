from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from budget_hotel.api.v1.router import router as api_v1_router
from budget_hotel.config.settings import Settings, get_settings
from budget_hotel.core.error_handlers import register_exception_handlers
from budget_hotel.core.logging import get_logger, setup_logging
from budget_hotel.core.middleware import register_middlewares
from budget_hotel.core.security import EncryptionService
from budget_hotel.db.init_db import init_db
from budget_hotel.db.session import create_db_engine, create_session_factory
from budget_hotel.services.sweep_scheduler import SweepScheduler

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers CORS, core middleware, and exception handlers.
    - Includes the versioned API router under /api/v1.
    - Starts the maintenance sweep on startup and stops it on shutdown.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    engine = engine or create_db_engine(settings)
    session_factory = create_session_factory(engine)
    encryption = EncryptionService(settings.ENCRYPTION_KEY)
    clock = clock or datetime.now

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.encryption = encryption
    app.state.clock = clock
    app.state.scheduler = SweepScheduler(
        session_factory,
        encryption,
        interval_seconds=settings.SWEEP_INTERVAL_SECONDS,
        clock=clock,
        no_show_grace_days=settings.NO_SHOW_GRACE_DAYS,
        currency=settings.CURRENCY,
    )

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ORIGINS != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register shared core middlewares (request ID, timing)
    register_middlewares(app)
    register_exception_handlers(app)

    # Mount API v1 under /api/v1
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    @app.on_event("startup")
    async def on_startup() -> None:
        if not settings.is_production():
            # Schema migrations are run separately in production
            init_db(engine)
        if settings.SWEEP_ENABLED:
            await app.state.scheduler.start()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.scheduler.stop()
        logger.info("Application shutdown complete")

    return app


app = create_app()
