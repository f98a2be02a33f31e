"""Media store — persistence for media, messages, and comments.

Learn: The store is the single source of truth. Ingestion writes here
first and only broadcasts after the write committed, so a viewer can
never see an event for data that isn't durable.

MediaStore is the interface the rest of the app depends on; SqlMediaStore
is the PostgreSQL implementation. Any SQLAlchemy failure is logged and
re-raised as StoreError, so routes only have one persistence error to map
to a 500.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Optional, Protocol

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eventwall.db.models import Comment, MediaFile, Message

logger = structlog.get_logger()


class StoreError(Exception):
    """Raised when the database is unavailable or a write fails."""


@dataclass
class CloudInfo:
    """Result of a successful cloud backup, as stored on the media row."""
    file_id: str
    url: str
    view_link: Optional[str] = None


class MediaStore(Protocol):
    async def insert_media(self, media: MediaFile) -> MediaFile: ...

    async def list_media(self, limit: int) -> list[MediaFile]: ...

    async def insert_message(self, message: Message) -> Message: ...

    async def list_messages(self, limit: int) -> list[Message]: ...

    async def insert_comment(self, comment: Comment) -> Comment: ...

    async def update_media_cloud_info(self, media_id: int, info: CloudInfo) -> bool: ...

    async def get_statistics(self) -> dict[str, int]: ...

    async def ping(self) -> None: ...


class SqlMediaStore:
    """MediaStore backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Writes ──────────────────────────────────────────

    async def _insert(self, row, kind: str):
        self.db.add(row)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("store.insert_failed", kind=kind, error=str(e))
            raise StoreError(f"Failed to save {kind}") from e
        return row

    async def insert_media(self, media: MediaFile) -> MediaFile:
        return await self._insert(media, "media")

    async def insert_message(self, message: Message) -> Message:
        return await self._insert(message, "message")

    async def insert_comment(self, comment: Comment) -> Comment:
        return await self._insert(comment, "comment")

    async def update_media_cloud_info(self, media_id: int, info: CloudInfo) -> bool:
        """Record the cloud copy of a media item.

        Learn: The WHERE cloud_uploaded = false clause makes this a one-shot
        transition — a second call for the same item matches no rows and
        returns False.
        """
        stmt = (
            update(MediaFile)
            .where(MediaFile.id == media_id, MediaFile.cloud_uploaded.is_(False))
            .values(
                cloud_file_id=info.file_id,
                cloud_url=info.url,
                cloud_view_link=info.view_link,
                cloud_uploaded=True,
                cloud_uploaded_at=datetime.now(timezone.utc),
            )
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("store.cloud_update_failed", media_id=media_id, error=str(e))
            raise StoreError("Failed to update cloud info") from e

        updated = result.rowcount > 0
        if updated:
            logger.info("store.cloud_info_updated", media_id=media_id)
        return updated

    # ─── Reads ───────────────────────────────────────────

    async def _all(self, query) -> list:
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error("store.query_failed", error=str(e))
            raise StoreError("Failed to read from the database") from e
        return list(result.scalars().all())

    async def list_media(self, limit: int) -> list[MediaFile]:
        """Most recent media first (upload_time DESC, id DESC)."""
        return await self._all(
            select(MediaFile)
            .order_by(MediaFile.upload_time.desc(), MediaFile.id.desc())
            .limit(limit)
        )

    async def list_messages(self, limit: int) -> list[Message]:
        return await self._all(
            select(Message)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
        )

    async def get_statistics(self) -> dict[str, int]:
        try:
            media_rows = await self.db.execute(
                select(MediaFile.media_type, func.count(MediaFile.id))
                .group_by(MediaFile.media_type)
            )
            message_count = await self.db.scalar(select(func.count(Message.id)))
        except SQLAlchemyError as e:
            logger.error("store.query_failed", error=str(e))
            raise StoreError("Failed to read statistics") from e

        per_type = {media_type: count for media_type, count in media_rows.all()}
        return {
            "photo_count": per_type.get("photo", 0),
            "video_count": per_type.get("video", 0),
            "message_count": message_count or 0,
        }

    async def ping(self) -> None:
        await self._all(select(1))


@asynccontextmanager
async def store_session() -> AsyncIterator[SqlMediaStore]:
    """Open a store with its own DB session, for work outside a request.

    Learn: Request-scoped sessions are closed as soon as the response is
    sent. Viewer snapshots and the detached cloud backup need a session of
    their own.
    """
    from eventwall.db.engine import async_session_factory

    async with async_session_factory() as db:
        yield SqlMediaStore(db)


async def load_snapshot(limit: int) -> list[MediaFile]:
    """Most recent media for a newly connected viewer."""
    async with store_session() as store:
        return await store.list_media(limit)
