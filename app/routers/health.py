"""Health check endpoint.

Reports database and cache connectivity.  The cache is optional, so only
a database failure makes the service unhealthy.
"""

import logging
from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from app.db.supabase import get_supabase

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> Any:
    """Return 200 OK when the database answers, 503 otherwise."""
    db_status = "disconnected"

    try:
        client = get_supabase()
        result = client.table("users").select("id").limit(1).execute()
        if result is not None:
            db_status = "connected"
    except Exception:
        logger.warning("Health check: Supabase connection failed", exc_info=True)

    cache_status = request.app.state.cache.health_check()

    payload: dict[str, str] = {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "cache": cache_status,
    }

    if db_status != "connected":
        return JSONResponse(status_code=503, content=payload)

    return payload
