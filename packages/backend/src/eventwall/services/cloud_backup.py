"""Cloud backup — copies uploads to Google Drive after they are saved locally.

Learn: Talks to the Drive v3 REST API with httpx in four steps:

1. Exchange the long-lived refresh token for an access token
2. Start a resumable upload session (metadata: name + parent folder)
3. Stream the file body to the session URL
4. Grant "anyone with the link" read access

The backup is best effort. upload() never raises; failures come back as
CloudUploadResult(success=False, error=...), and the caller logs them.
No timeout is applied — a large video may take minutes.
"""

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional, Protocol

import httpx
import structlog

from eventwall.config import Settings

logger = structlog.get_logger()

TOKEN_URL = "https://oauth2.googleapis.com/token"
UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"
FILES_URL = "https://www.googleapis.com/drive/v3/files"

CHUNK_SIZE = 1024 * 1024


@dataclass
class CloudUploadResult:
    success: bool
    file_id: Optional[str] = None
    url: Optional[str] = None  # direct view link
    view_link: Optional[str] = None
    error: Optional[str] = None


class CloudBackup(Protocol):
    async def upload(
        self, local_path: Path, name: str, mime_type: str, media_type: str
    ) -> CloudUploadResult: ...


def direct_link(file_id: str) -> str:
    return f"https://drive.google.com/uc?export=view&id={file_id}"


async def _file_chunks(path: Path) -> AsyncIterator[bytes]:
    with open(path, "rb") as f:
        while True:
            chunk = await asyncio.to_thread(f.read, CHUNK_SIZE)
            if not chunk:
                break
            yield chunk


class GoogleDriveBackup:
    """Uploads files to Google Drive with an OAuth refresh token."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        folder_ids: Optional[dict[str, Optional[str]]] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.folder_ids = folder_ids or {}
        self._transport = transport
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["GoogleDriveBackup"]:
        """Build from config, or None when Drive credentials aren't set."""
        if not settings.gdrive_enabled:
            return None
        return cls(
            settings.gdrive_client_id,
            settings.gdrive_client_secret,
            settings.gdrive_refresh_token,
            folder_ids={
                "photo": settings.gdrive_photos_folder_id,
                "video": settings.gdrive_videos_folder_id,
            },
        )

    async def _token(self, client: httpx.AsyncClient) -> str:
        # Refresh a minute early so a token never expires mid-upload start.
        if self._access_token and time.monotonic() < self._token_expires_at - 60:
            return self._access_token

        r = await client.post(TOKEN_URL, data={
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
            "grant_type": "refresh_token",
        })
        r.raise_for_status()
        body = r.json()
        self._access_token = body["access_token"]
        self._token_expires_at = time.monotonic() + float(body.get("expires_in", 3600))
        return self._access_token

    async def upload(
        self, local_path: Path, name: str, mime_type: str, media_type: str
    ) -> CloudUploadResult:
        log = logger.bind(file=name, media_type=media_type)
        path = Path(local_path)
        folder_id = self.folder_ids.get(media_type)
        metadata: dict = {"name": name}
        if folder_id:
            metadata["parents"] = [folder_id]

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
                token = await self._token(client)
                auth = {"Authorization": f"Bearer {token}"}

                r = await client.post(
                    UPLOAD_URL,
                    params={"uploadType": "resumable"},
                    json=metadata,
                    headers={**auth, "X-Upload-Content-Type": mime_type},
                )
                r.raise_for_status()
                # The session URL already carries upload_id; add fields alongside it.
                session_url = httpx.URL(r.headers["Location"]).copy_merge_params(
                    {"fields": "id,webViewLink,webContentLink"}
                )

                r = await client.put(
                    session_url,
                    content=_file_chunks(path),
                    headers={
                        **auth,
                        "Content-Type": mime_type,
                        "Content-Length": str(path.stat().st_size),
                    },
                )
                r.raise_for_status()
                created = r.json()
                file_id = created["id"]

                r = await client.post(
                    f"{FILES_URL}/{file_id}/permissions",
                    json={"role": "reader", "type": "anyone"},
                    headers=auth,
                )
                r.raise_for_status()
        except (httpx.HTTPError, OSError, KeyError, ValueError) as e:
            log.warning("cloud_backup.upload_error", error=str(e))
            return CloudUploadResult(success=False, error=str(e))

        log.info("cloud_backup.uploaded", file_id=file_id)
        return CloudUploadResult(
            success=True,
            file_id=file_id,
            url=direct_link(file_id),
            view_link=created.get("webViewLink"),
        )
