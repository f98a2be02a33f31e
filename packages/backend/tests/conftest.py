"""Test fixtures — an in-memory store and a fresh hub per test.

Learn: Testing pattern for the wall without PostgreSQL:

1. InMemoryMediaStore implements the MediaStore interface over plain
   lists. It fills in what the database would (ids, timestamps,
   defaults) so records serialize exactly like ORM rows.
2. The app's get_store dependency is overridden to return it, and
   app.state gets a fresh BroadcastHub whose snapshot comes from the
   same store, so HTTP writes and viewer snapshots agree.
3. FakeConnection stands in for a starlette WebSocket: it records every
   text frame sent to it and can be told to fail or to look closed.

Everything is reset after each test.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.websockets import WebSocketState

from eventwall.api.deps import get_store
from eventwall.auth.dependencies import CurrentIdentity, get_current_user
from eventwall.config import settings
from eventwall.main import app
from eventwall.realtime.hub import BroadcastHub
from eventwall.services.background import DetachedTasks
from eventwall.services.store import CloudInfo, StoreError

TEST_IDENTITY = CurrentIdentity(user_id="42", display_name="Alice", email="alice@example.com")


# ═══════════════════════════════════════════════════════════
# Doubles
# ═══════════════════════════════════════════════════════════


class InMemoryMediaStore:
    """MediaStore over lists. Set fail=True to make every call raise StoreError."""

    def __init__(self):
        self.media = []
        self.messages = []
        self.comments = []
        self.fail = False
        self._next_id = 1
        self._clock = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _check(self):
        if self.fail:
            raise StoreError("database unavailable")

    def _assign_id(self, row):
        row.id = self._next_id
        self._next_id += 1

    async def insert_media(self, media):
        self._check()
        self._assign_id(media)
        media.upload_time = self._tick()
        if media.cloud_uploaded is None:
            media.cloud_uploaded = False
        self.media.append(media)
        return media

    async def list_media(self, limit):
        self._check()
        ordered = sorted(self.media, key=lambda m: (m.upload_time, m.id), reverse=True)
        return ordered[:limit]

    async def insert_message(self, message):
        self._check()
        self._assign_id(message)
        message.created_at = self._tick()
        self.messages.append(message)
        return message

    async def list_messages(self, limit):
        self._check()
        ordered = sorted(self.messages, key=lambda m: (m.created_at, m.id), reverse=True)
        return ordered[:limit]

    async def insert_comment(self, comment):
        self._check()
        self._assign_id(comment)
        comment.created_at = self._tick()
        self.comments.append(comment)
        return comment

    async def update_media_cloud_info(self, media_id: int, info: CloudInfo) -> bool:
        self._check()
        for media in self.media:
            if media.id == media_id and not media.cloud_uploaded:
                media.cloud_file_id = info.file_id
                media.cloud_url = info.url
                media.cloud_view_link = info.view_link
                media.cloud_uploaded = True
                media.cloud_uploaded_at = self._tick()
                return True
        return False

    async def get_statistics(self):
        self._check()
        return {
            "photo_count": sum(1 for m in self.media if m.media_type == "photo"),
            "video_count": sum(1 for m in self.media if m.media_type == "video"),
            "message_count": len(self.messages),
        }

    async def ping(self):
        self._check()


class FakeConnection:
    """Records frames sent by the hub. Not hashable, like a real WebSocket."""

    __hash__ = None

    def __init__(self, fail: bool = False, delay: float = 0.0):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[str] = []
        self.fail = fail
        self.delay = delay

    async def send_text(self, data: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.sent.append(data)

    def close(self):
        self.client_state = WebSocketState.DISCONNECTED

    @property
    def events(self) -> list[dict]:
        return [json.loads(text) for text in self.sent]

    def types(self) -> list[str]:
        return [e["type"] for e in self.events]


class RecordingBackup:
    """CloudBackup double. Succeeds with a fake Drive id unless told otherwise."""

    def __init__(self, success: bool = True):
        self.success = success
        self.calls = []

    async def upload(self, local_path, name, mime_type, media_type):
        from eventwall.services.cloud_backup import CloudUploadResult, direct_link

        self.calls.append((local_path, name, mime_type, media_type))
        if not self.success:
            return CloudUploadResult(success=False, error="quota exceeded")
        file_id = f"drive-{len(self.calls)}"
        return CloudUploadResult(
            success=True,
            file_id=file_id,
            url=direct_link(file_id),
            view_link=f"https://drive.google.com/file/d/{file_id}/view",
        )


def new_media_row(store: InMemoryMediaStore, uploader: str = "Bob", media_type: str = "photo"):
    """An unsaved media row with no file on disk behind it."""
    from eventwall.db.models import MediaFile

    ext = "jpg" if media_type == "photo" else "mp4"
    n = len(store.media) + 1
    return MediaFile(
        filename=f"20260601120000_{uploader}_7_pic{n}.{ext}",
        original_name=f"pic{n}.{ext}",
        uploader=uploader,
        uploader_id="7",
        file_type="image/jpeg" if media_type == "photo" else "video/mp4",
        file_size=1024,
        file_path=f"uploads/{media_type}s/pic{n}.{ext}",
        file_url=f"/uploads/{media_type}s/pic{n}.{ext}",
        media_type=media_type,
    )


# ═══════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════


@pytest.fixture()
def store():
    return InMemoryMediaStore()


@pytest.fixture()
def hub(store):
    """A fresh hub on app.state, snapshotting from the in-memory store."""
    hub = BroadcastHub(store.list_media, snapshot_limit=10, outbox_size=100)
    previous = (
        app.state.hub,
        app.state.detached_tasks,
        app.state.cloud_backup,
        app.state.store_scope,
    )

    @asynccontextmanager
    async def store_scope():
        yield store

    app.state.hub = hub
    app.state.detached_tasks = DetachedTasks()
    app.state.cloud_backup = None
    app.state.store_scope = store_scope
    yield hub
    (
        app.state.hub,
        app.state.detached_tasks,
        app.state.cloud_backup,
        app.state.store_scope,
    ) = previous


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    """Point uploads at a temp dir for the duration of the test."""
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path))
    return tmp_path


@pytest_asyncio.fixture()
async def viewer(hub):
    """One registered viewer that has already received its snapshot."""
    conn = FakeConnection()
    await hub.register(conn)
    yield conn
    hub.unregister(conn)


@pytest_asyncio.fixture()
async def client(store, hub):
    """HTTP client with the store and auth overridden for testing.

    Learn: We override get_current_user to return a fixed guest so all
    protected routes work without real JWT tokens.
    """

    def override_get_store():
        return store

    def override_get_current_user():
        return TEST_IDENTITY

    app.dependency_overrides[get_store] = override_get_store
    app.dependency_overrides[get_current_user] = override_get_current_user

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauthenticated_client(store, hub):
    """HTTP client with the real auth dependency (no identity override)."""

    def override_get_store():
        return store

    app.dependency_overrides[get_store] = override_get_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def add_media(store):
    """Insert media rows directly: `await add_media("Bob")`."""

    async def _add(uploader: str = "Bob", media_type: str = "photo"):
        return await store.insert_media(new_media_row(store, uploader, media_type))

    return _add


@pytest.fixture()
def backup():
    return RecordingBackup()


@pytest.fixture()
def make_auth_header():
    """Build a real Bearer header signed with the configured secret."""
    from eventwall.auth.jwt import create_access_token

    def _header(user_id: str = "42", name: str = "Alice", email: Optional[str] = None) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id, name, email=email)}"}

    return _header
