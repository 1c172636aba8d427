from contextlib import asynccontextmanager
import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from timetracker import __version__
from timetracker.core.config import Settings
from timetracker.core.error_handlers import register_exception_handlers
from timetracker.core.logging import configure_logging
from timetracker.routers.entries import router as entries_router
from timetracker.routers.health import router as health_router
from timetracker.routers.stats import router as stats_router
from timetracker.services.entry_store import EntryStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    store: EntryStore = app.state.store

    configure_logging(settings.log_level)

    store.init()
    logger.info(
        "Database initialized",
        extra={"environment": settings.environment, "dialect": store.engine.dialect.name},
    )
    try:
        yield
    finally:
        store.close()
        logger.info("Database connection closed")


def create_app(settings: Optional[Settings] = None, store: Optional[EntryStore] = None) -> FastAPI:
    if settings is None:
        settings = Settings.from_env()
    if store is None:
        store = EntryStore(settings.database_url)

    app = FastAPI(
        title="Time Tracker API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store

    @app.middleware("http")
    async def catch_unhandled_exceptions(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "Unhandled exception",
                extra={"method": request.method, "path": request.url.path},
            )
            content = {"error": str(exc) or "Internal server error"}
            if settings.is_development:
                content["stack"] = traceback.format_exc()
            return JSONResponse(status_code=500, content=content)

    if settings.is_development:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            logger.info(
                "%s %s",
                request.method,
                request.url.path,
                extra={"method": request.method, "path": request.url.path},
            )
            return await call_next(request)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(entries_router)
    app.include_router(stats_router)

    return app
