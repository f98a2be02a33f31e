"""Upload validation and storage naming tests."""

import io
from datetime import datetime, timezone

import pytest

from eventwall.services.uploads import (
    UploadRejected,
    save_upload,
    storage_filename,
    validate_upload,
)

NOW = datetime(2026, 10, 19, 14, 30, 5, tzinfo=timezone.utc)


# ═══════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "name,mime,expected",
    [
        ("beach.jpg", "image/jpeg", "photo"),
        ("IMG_0001.JPG", "image/jpeg", "photo"),
        ("shot.png", "image/png", "photo"),
        ("iphone.heic", "image/heic", "photo"),
        ("raw.dng", "image/x-adobe-dng", "photo"),
        ("dance.mp4", "video/mp4", "video"),
        ("toast.mov", "video/quicktime", "video"),
        ("old.avi", "video/x-msvideo", "video"),
    ],
)
def test_allowed_types(name, mime, expected):
    assert validate_upload(name, mime) == expected


@pytest.mark.parametrize(
    "name,mime",
    [
        ("doc.pdf", "application/pdf"),
        ("beach.jpg", "application/octet-stream"),
        ("beach.webp", "image/webp"),
        ("clip.mkv", "video/mp4"),
        ("beach.jpg", None),
    ],
)
def test_rejected_types(name, mime):
    with pytest.raises(UploadRejected) as exc:
        validate_upload(name, mime)
    assert exc.value.status_code == 400


def test_missing_file_name():
    with pytest.raises(UploadRejected, match="No file uploaded"):
        validate_upload(None, "image/png")


# ═══════════════════════════════════════════════════════════
# Naming
# ═══════════════════════════════════════════════════════════


def test_storage_filename_format():
    assert storage_filename("Alice", "42", "beach.jpg", now=NOW) == (
        "20261019143005_Alice_42_beach.jpg"
    )


def test_storage_filename_sanitizes_display_name():
    name = storage_filename("Mary Jane <3", "7", "a.png", now=NOW)
    assert name == "20261019143005_Mary_Jane__3_7_a.png"


def test_storage_filename_strips_directories():
    assert storage_filename("Bob", "1", "../../etc/cake.jpg", now=NOW) == (
        "20261019143005_Bob_1_cake.jpg"
    )
    assert storage_filename("Bob", "1", "C:\\Users\\bob\\cake.jpg", now=NOW) == (
        "20261019143005_Bob_1_cake.jpg"
    )


def test_storage_filename_keeps_unicode():
    assert storage_filename("王小明", "9", "婚礼.jpg", now=NOW) == (
        "20261019143005_王小明_9_婚礼.jpg"
    )


# ═══════════════════════════════════════════════════════════
# Saving
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_save_upload_writes_under_media_folder(tmp_path):
    stored = await save_upload(
        io.BytesIO(b"video-bytes"),
        upload_dir=str(tmp_path),
        original_name="dance.mp4",
        mime_type="video/mp4",
        display_name="Alice",
        user_id="42",
        max_bytes=1024,
    )
    assert stored.media_type == "video"
    assert stored.size == len(b"video-bytes")
    assert stored.path == tmp_path / "videos" / stored.filename
    assert stored.path.read_bytes() == b"video-bytes"
    assert stored.url == f"/uploads/videos/{stored.filename}"


@pytest.mark.asyncio
async def test_save_upload_at_exact_limit(tmp_path):
    stored = await save_upload(
        io.BytesIO(b"x" * 16),
        upload_dir=str(tmp_path),
        original_name="a.png",
        mime_type="image/png",
        display_name="Alice",
        user_id="42",
        max_bytes=16,
    )
    assert stored.size == 16


@pytest.mark.asyncio
async def test_save_upload_over_limit_leaves_nothing(tmp_path):
    with pytest.raises(UploadRejected) as exc:
        await save_upload(
            io.BytesIO(b"x" * 17),
            upload_dir=str(tmp_path),
            original_name="a.png",
            mime_type="image/png",
            display_name="Alice",
            user_id="42",
            max_bytes=16,
        )
    assert exc.value.status_code == 413
    assert list((tmp_path / "photos").iterdir()) == []
