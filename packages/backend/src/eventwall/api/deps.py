"""Shared FastAPI dependencies.

Learn: Process-wide objects (the hub, the detached task registry, the
cloud backup client) live on app.state, created once in create_app().
Route handlers reach them only through these dependencies, which is
also where tests swap in doubles via app.dependency_overrides.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from eventwall.config import settings
from eventwall.db.engine import get_db
from eventwall.realtime.hub import BroadcastHub
from eventwall.services.ingest import IngestService
from eventwall.services.store import MediaStore, SqlMediaStore


def get_hub(conn: HTTPConnection) -> BroadcastHub:
    return conn.app.state.hub


def get_store(db: AsyncSession = Depends(get_db)) -> MediaStore:
    return SqlMediaStore(db)


def get_ingest_service(
    conn: HTTPConnection,
    store: MediaStore = Depends(get_store),
    hub: BroadcastHub = Depends(get_hub),
) -> IngestService:
    state = conn.app.state
    return IngestService(
        store,
        hub,
        upload_dir=settings.upload_dir,
        max_upload_bytes=settings.max_upload_bytes,
        backup=state.cloud_backup,
        tasks=state.detached_tasks,
        store_scope=state.store_scope,
    )
