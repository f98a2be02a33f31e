"""Google Drive backup tests.

Learn: httpx.MockTransport stands in for Google. The handler plays the
token endpoint, the resumable upload session, and the permissions call,
and records every request so tests can check what was sent.
"""

import json

import httpx
import pytest

from eventwall.config import Settings
from eventwall.services.cloud_backup import GoogleDriveBackup, direct_link

SESSION_URL = (
    "https://www.googleapis.com/upload/drive/v3/files?uploadType=resumable&upload_id=session-1"
)


class FakeDrive:
    def __init__(self, token_status=200, session_location=SESSION_URL):
        self.token_status = token_status
        self.session_location = session_location
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url.startswith("https://oauth2.googleapis.com/token"):
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "ya29.test", "expires_in": 3600})

        if request.method == "POST" and request.url.params.get("uploadType") == "resumable":
            headers = {"Location": self.session_location} if self.session_location else {}
            return httpx.Response(200, headers=headers)

        if request.method == "PUT":
            # Drive only knows the session by its upload_id.
            if request.url.params.get("upload_id") != "session-1":
                return httpx.Response(404, json={"error": "unknown upload session"})
            return httpx.Response(200, json={
                "id": "file-123",
                "webViewLink": "https://drive.google.com/file/d/file-123/view",
            })

        if url.endswith("/files/file-123/permissions"):
            return httpx.Response(200, json={"id": "anyoneWithLink"})

        return httpx.Response(404)

    def paths(self) -> list[str]:
        return [f"{r.method} {r.url.host}{r.url.path}" for r in self.requests]


def make_backup(drive: FakeDrive) -> GoogleDriveBackup:
    return GoogleDriveBackup(
        "client-id",
        "client-secret",
        "refresh-token",
        folder_ids={"photo": "photos-folder", "video": None},
        transport=httpx.MockTransport(drive),
    )


@pytest.fixture()
def photo(tmp_path):
    path = tmp_path / "beach.jpg"
    path.write_bytes(b"\xff\xd8jpeg-bytes")
    return path


@pytest.mark.asyncio
async def test_upload_flow(photo):
    drive = FakeDrive()
    result = await make_backup(drive).upload(photo, "beach.jpg", "image/jpeg", "photo")

    assert result.success
    assert result.file_id == "file-123"
    assert result.url == direct_link("file-123")
    assert result.url == "https://drive.google.com/uc?export=view&id=file-123"
    assert result.view_link == "https://drive.google.com/file/d/file-123/view"

    assert drive.paths() == [
        "POST oauth2.googleapis.com/token",
        "POST www.googleapis.com/upload/drive/v3/files",
        "PUT www.googleapis.com/upload/drive/v3/files",
        "POST www.googleapis.com/drive/v3/files/file-123/permissions",
    ]

    token_req, start, put, permission = drive.requests
    assert b"grant_type=refresh_token" in token_req.content
    assert start.headers["Authorization"] == "Bearer ya29.test"
    assert start.headers["X-Upload-Content-Type"] == "image/jpeg"
    assert json.loads(start.content) == {"name": "beach.jpg", "parents": ["photos-folder"]}
    assert put.content == b"\xff\xd8jpeg-bytes"
    assert json.loads(permission.content) == {"role": "reader", "type": "anyone"}


@pytest.mark.asyncio
async def test_no_folder_means_drive_root(tmp_path):
    video = tmp_path / "dance.mp4"
    video.write_bytes(b"\x00" * 32)
    drive = FakeDrive()

    result = await make_backup(drive).upload(video, "dance.mp4", "video/mp4", "video")
    assert result.success
    assert json.loads(drive.requests[1].content) == {"name": "dance.mp4"}


@pytest.mark.asyncio
async def test_access_token_is_reused(photo):
    drive = FakeDrive()
    backup = make_backup(drive)
    await backup.upload(photo, "a.jpg", "image/jpeg", "photo")
    await backup.upload(photo, "b.jpg", "image/jpeg", "photo")

    token_calls = [p for p in drive.paths() if p.endswith("/token")]
    assert len(token_calls) == 1


@pytest.mark.asyncio
async def test_token_failure_returns_error(photo):
    result = await make_backup(FakeDrive(token_status=400)).upload(
        photo, "beach.jpg", "image/jpeg", "photo"
    )
    assert not result.success
    assert result.file_id is None
    assert result.error


@pytest.mark.asyncio
async def test_missing_session_location_returns_error(photo):
    result = await make_backup(FakeDrive(session_location=None)).upload(
        photo, "beach.jpg", "image/jpeg", "photo"
    )
    assert not result.success


@pytest.mark.asyncio
async def test_missing_local_file_returns_error(tmp_path):
    result = await make_backup(FakeDrive()).upload(
        tmp_path / "gone.jpg", "gone.jpg", "image/jpeg", "photo"
    )
    assert not result.success


def test_from_settings_disabled_without_credentials():
    assert GoogleDriveBackup.from_settings(Settings(gdrive_client_id="")) is None


def test_from_settings_enabled():
    backup = GoogleDriveBackup.from_settings(Settings(
        gdrive_client_id="id",
        gdrive_client_secret="secret",
        gdrive_refresh_token="refresh",
        gdrive_photos_folder_id="p",
        gdrive_videos_folder_id="v",
    ))
    assert backup is not None
    assert backup.folder_ids == {"photo": "p", "video": "v"}


@pytest.mark.asyncio
async def test_put_keeps_session_upload_id(photo):
    """The fields param is merged into the session URL, not swapped in for it."""
    drive = FakeDrive()
    result = await make_backup(drive).upload(photo, "beach.jpg", "image/jpeg", "photo")
    assert result.success

    put = drive.requests[2]
    assert put.method == "PUT"
    assert put.url.params["upload_id"] == "session-1"
    assert put.url.params["uploadType"] == "resumable"
    assert put.url.params["fields"] == "id,webViewLink,webContentLink"


@pytest.mark.asyncio
async def test_unknown_upload_session_fails(photo):
    """A session Drive doesn't recognize surfaces as a failed backup."""
    drive = FakeDrive(
        session_location="https://www.googleapis.com/upload/drive/v3/files?upload_id=other"
    )
    result = await make_backup(drive).upload(photo, "beach.jpg", "image/jpeg", "photo")
    assert not result.success
    assert len(drive.requests) == 3
