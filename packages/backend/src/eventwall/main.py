"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Process-wide objects (broadcast hub, detached task registry,
cloud backup client) are created here and hung on app.state, so every
request and websocket in this process shares them. Lifespan handles the
things that need I/O: Redis, upload folders, and orderly shutdown.
"""

from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eventwall import __version__
from eventwall.api import api_router
from eventwall.config import settings
from eventwall.realtime.hub import BroadcastHub
from eventwall.services.background import DetachedTasks
from eventwall.services.cloud_backup import GoogleDriveBackup
from eventwall.services.store import load_snapshot, store_session

logger = structlog.get_logger()

UPLOAD_SUBDIRS = ("photos", "videos", "thumbnails")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. Cloud backups still in flight are awaited before the hub
    and the database go away.
    """
    logger.info(
        "eventwall.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        cloud_backup=app.state.cloud_backup is not None,
    )

    for sub in UPLOAD_SUBDIRS:
        Path(settings.upload_dir, sub).mkdir(parents=True, exist_ok=True)

    from eventwall.realtime.redis_pool import close_redis, init_redis
    try:
        await init_redis()
        logger.info("eventwall.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("eventwall.redis_unavailable", error=str(e))
        # Redis is optional — only rate limiting is lost

    yield

    logger.info("eventwall.shutdown", pending_backups=len(app.state.detached_tasks))
    await app.state.detached_tasks.wait()
    await app.state.hub.close()
    await close_redis()

    from eventwall.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Event Wall",
        description="Live photo wall, message board, and floating comments for events",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.hub = BroadcastHub(
        snapshot_loader=load_snapshot,
        snapshot_limit=settings.snapshot_limit,
        outbox_size=settings.viewer_outbox_size,
    )
    app.state.detached_tasks = DetachedTasks()
    app.state.cloud_backup = GoogleDriveBackup.from_settings(settings)
    app.state.store_scope = store_session

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from eventwall.middleware.rate_limit import RateLimitMiddleware
    from eventwall.middleware.request_id import RequestIdMiddleware
    from eventwall.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        ingest_rpm=settings.rate_limit_ingest_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    from eventwall.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: eventwall.main:app)
app = create_app()
