"""Ingestion — uploads, messages, and comments.

Learn: Every write path follows the same contract:

  validate → persist (store) → broadcast (hub) → return the record

The broadcast only happens after the store call returned, so a failed
write (StoreError) surfaces to the caller and nothing is announced.
broadcast() only queues, so the handler's response is never held up by
slow viewers.

Media uploads have one more step: a detached cloud backup. It starts
after the record is returned, reports success only through a
cloudSyncComplete broadcast, and is logged (never raised) on failure.
"""

from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import BinaryIO, Callable, Optional

import structlog

from eventwall.auth.dependencies import CurrentIdentity
from eventwall.db.models import Comment, MediaFile, Message
from eventwall.realtime.hub import BroadcastHub
from eventwall.schemas.events import (
    cloud_sync_complete,
    new_comment,
    new_media,
    new_message,
)
from eventwall.schemas.message import CommentCreate, MessageCreate
from eventwall.services.background import DetachedTasks
from eventwall.services.cloud_backup import CloudBackup
from eventwall.services.store import CloudInfo, MediaStore, StoreError
from eventwall.services.thumbnails import make_thumbnail
from eventwall.services.uploads import StoredFile, save_upload

logger = structlog.get_logger()

StoreScope = Callable[[], AbstractAsyncContextManager[MediaStore]]


class IngestService:
    """Persists guest contributions and announces them to viewers."""

    def __init__(
        self,
        store: MediaStore,
        hub: BroadcastHub,
        *,
        upload_dir: str = "uploads",
        max_upload_bytes: int = 200 * 1024 * 1024,
        backup: Optional[CloudBackup] = None,
        tasks: Optional[DetachedTasks] = None,
        store_scope: Optional[StoreScope] = None,
    ):
        self.store = store
        self.hub = hub
        self.upload_dir = upload_dir
        self.max_upload_bytes = max_upload_bytes
        self.backup = backup
        self.tasks = tasks
        self.store_scope = store_scope

    # ─── Messages & comments ─────────────────────────────

    async def post_message(
        self,
        identity: CurrentIdentity,
        body: MessageCreate,
        ip_address: Optional[str] = None,
    ) -> Message:
        message = await self.store.insert_message(Message(
            user_name=identity.display_name,
            message_text=body.message_text,
            ip_address=ip_address,
        ))
        logger.info("ingest.message_saved", message_id=message.id, user=identity.user_id)
        self.hub.broadcast(new_message(message))
        return message

    async def post_comment(self, identity: CurrentIdentity, body: CommentCreate) -> Comment:
        comment = await self.store.insert_comment(Comment(
            user_name=identity.display_name,
            comment_text=body.comment_text,
            color=body.color.upper(),
            position=body.position,
        ))
        logger.info("ingest.comment_saved", comment_id=comment.id, user=identity.user_id)
        self.hub.broadcast(new_comment(comment))
        return comment

    # ─── Media ───────────────────────────────────────────

    async def upload_media(
        self,
        identity: CurrentIdentity,
        src: BinaryIO,
        original_name: Optional[str],
        mime_type: Optional[str],
    ) -> MediaFile:
        """Save the file, record it, announce it, then start the cloud backup.

        Raises UploadRejected for bad input and StoreError if the record
        can't be written. If anything fails after the file is saved, the
        file and its thumbnail are removed again before the error propagates.
        """
        stored = await save_upload(
            src,
            upload_dir=self.upload_dir,
            original_name=original_name,
            mime_type=mime_type,
            display_name=identity.display_name,
            user_id=identity.user_id,
            max_bytes=self.max_upload_bytes,
        )
        log = logger.bind(file=stored.filename, user=identity.user_id)

        thumbnail_url = None
        try:
            if stored.media_type == "photo":
                thumbnail_url = await make_thumbnail(stored.path, self.upload_dir)
            media = await self.store.insert_media(MediaFile(
                filename=stored.filename,
                original_name=original_name,
                uploader=identity.display_name,
                uploader_id=identity.user_id,
                file_type=mime_type,
                file_size=stored.size,
                file_path=str(stored.path),
                file_url=stored.url,
                thumbnail_url=thumbnail_url,
                media_type=stored.media_type,
            ))
        except BaseException:
            self._discard(stored, thumbnail_url)
            raise

        log.info("ingest.media_saved", media_id=media.id, media_type=media.media_type)
        self.hub.broadcast(new_media(media))

        if self.backup is not None and self.tasks is not None:
            self.tasks.spawn(
                self.backup_to_cloud(media.id, stored.path, stored.filename,
                                     mime_type, stored.media_type),
                name=f"cloud-backup-{media.id}",
            )
        return media

    def _discard(self, stored: StoredFile, thumbnail_url: Optional[str]) -> None:
        stored.path.unlink(missing_ok=True)
        if thumbnail_url:
            name = thumbnail_url.rsplit("/", 1)[-1]
            (Path(self.upload_dir) / "thumbnails" / name).unlink(missing_ok=True)

    async def backup_to_cloud(
        self,
        media_id: int,
        path: Path,
        name: str,
        mime_type: str,
        media_type: str,
    ) -> bool:
        """Copy one file to cloud storage and announce the link.

        Learn: Runs detached from the upload request, so it opens its own
        store via store_scope (the request's DB session is long gone).
        Returns True only when a cloudSyncComplete was broadcast.
        """
        log = logger.bind(media_id=media_id, file=name)
        log.info("cloud_backup.started")

        result = await self.backup.upload(path, name, mime_type, media_type)
        if not result.success:
            log.warning("cloud_backup.failed", error=result.error)
            return False

        info = CloudInfo(file_id=result.file_id, url=result.url, view_link=result.view_link)
        try:
            if self.store_scope is not None:
                async with self.store_scope() as store:
                    updated = await store.update_media_cloud_info(media_id, info)
            else:
                updated = await self.store.update_media_cloud_info(media_id, info)
        except StoreError as e:
            log.error("cloud_backup.record_failed", error=str(e))
            return False

        if not updated:
            log.info("cloud_backup.already_recorded")
            return False

        self.hub.broadcast(cloud_sync_complete(media_id, result.url))
        log.info("cloud_backup.completed", cloud_url=result.url)
        return True
