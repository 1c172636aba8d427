import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from timetracker.core.config import Settings
from timetracker.core.timestamps import format_timestamp, utcnow
from timetracker.deps.state import get_settings, get_store
from timetracker.errors import StoreUnavailable
from timetracker.services.entry_store import EntryStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health(
    store: EntryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    timestamp = format_timestamp(utcnow())
    try:
        store.ping()
    except StoreUnavailable:
        logger.exception("Health check failed")
        return JSONResponse(
            status_code=503,
            content={
                "status": "error",
                "timestamp": timestamp,
                "error": "Database unavailable",
            },
        )

    return {
        "status": "ok",
        "timestamp": timestamp,
        "environment": settings.environment,
        "database": "connected",
    }
