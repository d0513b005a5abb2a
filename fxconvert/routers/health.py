from __future__ import annotations

import logging
import sqlite3
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from fxconvert.routers.deps import get_services

router = APIRouter(tags=["health"])
logger = logging.getLogger("fxconvert.health")

_STARTED_AT = time.monotonic()


@router.get("/health", summary="Service and database health")
def health(request: Request):
    services = get_services(request)
    now = datetime.now(timezone.utc).isoformat()
    try:
        services.db.ping()
    except sqlite3.Error:
        logger.exception("Health check database error")
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "error": "Database connection error",
                "timestamp": now,
            },
        )
    return {
        "status": "ok",
        "timestamp": now,
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "version": services.settings.version,
    }
