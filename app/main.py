"""FastAPI application entry point.

Configures CORS, structured logging, lifespan events (cache and realtime
hub), the application error handler and router registration.
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import AppError
from app.core.logging import setup_logging
from app.db.redis import create_redis
from app.realtime.hub import RealtimeHub
from app.routers import (
    activity,
    auth,
    candidates,
    health,
    messages,
    notifications,
    realtime,
    users,
)
from app.services.cache import CacheService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: build the cache and hub, tear the hub down."""
    setup_logging()
    logger.info("Application starting up")
    application.state.cache = CacheService(create_redis(settings.REDIS_URL))
    application.state.hub = RealtimeHub()
    yield
    application.state.hub.close()
    logger.info("Application shutting down")


app = FastAPI(
    title="Candidate Notes API",
    description="Collaborative candidate notes with @mentions and realtime notifications",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            extra={"path": request.url.path, "error_message": exc.message},
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ---------------------------------------------------------------------------
# CORS Configuration
# ---------------------------------------------------------------------------
_raw_origins = settings.ALLOWED_ORIGINS.strip()
if _raw_origins == "*":
    _allowed_origins: list[str] = ["*"]
else:
    _allowed_origins = [o.strip() for o in _raw_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Router Registration
# ---------------------------------------------------------------------------
app.include_router(health.router, tags=["Health"])
app.include_router(realtime.router, tags=["Realtime"])
app.include_router(auth.router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(candidates.router, prefix="/api/v1/candidates", tags=["Candidates"])
app.include_router(messages.router, prefix="/api/v1/messages", tags=["Messages"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["Notifications"])
app.include_router(activity.router, prefix="/api/v1/activity", tags=["Activity"])
