from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from institute.api.admin import router as admin_router
from institute.api.ai import router as ai_router
from institute.api.auth import router as auth_router
from institute.api.certificates import router as certificates_router
from institute.api.courses import router as courses_router
from institute.api.enrollments import router as enrollments_router
from institute.api.health import router as health_router
from institute.api.home import router as home_router
from institute.api.metrics_endpoint import router as metrics_router
from institute.api.notifications import router as notifications_router
from institute.api.videos import router as videos_router
from institute.core.config import SETTINGS
from institute.core.logging import setup_logging
from institute.db.engine import lifespan_db
from institute.db.redis import lifespan_redis
from institute.middleware.metrics import MetricsMiddleware
from institute.middleware.request_context import RequestContextMiddleware
from institute.services.auth_service import Session, SessionEvent, auth_backend
from institute.services.notification_bus import notification_bus
from institute.services.video_jobs import video_jobs

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


async def announce_session_change(event: SessionEvent, session: Session) -> None:
    if event == "SIGNED_IN":
        await notification_bus.notify(
            session.user.id, f"Welcome, {session.user.name}!", "success"
        )
    elif event == "SIGNED_OUT":
        await notification_bus.notify(
            session.user.id, "You have successfully logged out.", "info"
        )


auth_backend.on_session_change(announce_session_change)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Teardown runs in reverse order: video jobs, Redis, database.
    async with lifespan_db():
        async with lifespan_redis():
            try:
                yield
            finally:
                await video_jobs.shutdown()


app = FastAPI(
    title="institute-service",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext -> Metrics -> CORS -> route.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(courses_router)
app.include_router(enrollments_router)
app.include_router(admin_router)
app.include_router(home_router)
app.include_router(videos_router)
app.include_router(notifications_router)
app.include_router(certificates_router)
app.include_router(ai_router)

logger.info(
    "institute-service started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
