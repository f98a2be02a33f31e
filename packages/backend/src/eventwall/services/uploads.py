"""Upload validation and local storage.

Learn: Files land under <upload_dir>/photos or <upload_dir>/videos with a
name that encodes when and by whom they were uploaded:

  20261019143005_Alice_42_beach.jpg
  (timestamp)    (name)(id)(original basename + extension)

Both the extension and the MIME type must be on the allow-list. The size
limit is enforced while copying, so an oversized upload never fully
lands on disk.
"""

import asyncio
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Optional

ALLOWED_EXTENSIONS = {
    ".jpeg", ".jpg", ".png", ".gif", ".heic", ".heif", ".dng",
    ".mp4", ".mov", ".avi",
}
ALLOWED_MIME = re.compile(
    r"^(image/(jpeg|jpg|png|gif|heic|heif|x-adobe-dng)"
    r"|video/(mp4|quicktime|x-msvideo))$"
)

_UNSAFE_NAME = re.compile(r'[<>:"/\\|?*\s]')
_UNSAFE_BASENAME = re.compile(r'[<>:"/\\|?*]')

CHUNK_SIZE = 1024 * 1024


class UploadRejected(Exception):
    """The upload failed validation. status_code is the HTTP status to return."""

    def __init__(self, detail: str, status_code: int = 400):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


@dataclass
class StoredFile:
    filename: str
    path: Path
    url: str
    size: int
    media_type: str  # photo, video


def media_type_for(mime_type: str) -> str:
    return "photo" if mime_type.startswith("image/") else "video"


def validate_upload(original_name: Optional[str], mime_type: Optional[str]) -> str:
    """Check name and MIME against the allow-list. Returns the media type."""
    if not original_name:
        raise UploadRejected("No file uploaded")
    ext = Path(original_name).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS or not ALLOWED_MIME.match(mime_type or ""):
        raise UploadRejected(
            "Only images (jpg, png, gif, heic, dng) and videos (mp4, mov, avi) "
            f"are supported, got {original_name!r} ({mime_type})"
        )
    return media_type_for(mime_type)


def storage_filename(
    display_name: str,
    user_id: str,
    original_name: str,
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now(timezone.utc)
    original = Path(os.path.basename(original_name.replace("\\", "/")))
    ext = original.suffix
    basename = original.name[: len(original.name) - len(ext)] if ext else original.name
    clean_name = _UNSAFE_NAME.sub("_", display_name or "guest")
    clean_base = _UNSAFE_BASENAME.sub("_", basename)
    return f"{now:%Y%m%d%H%M%S}_{clean_name}_{user_id}_{clean_base}{ext}"


def _copy_limited(src: BinaryIO, dest: Path, max_bytes: int) -> int:
    written = 0
    try:
        with open(dest, "wb") as out:
            while True:
                chunk = src.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise UploadRejected(
                        f"File exceeds the {max_bytes // (1024 * 1024)} MB limit",
                        status_code=413,
                    )
                out.write(chunk)
    except BaseException:
        dest.unlink(missing_ok=True)
        raise
    return written


async def save_upload(
    src: BinaryIO,
    *,
    upload_dir: str,
    original_name: Optional[str],
    mime_type: Optional[str],
    display_name: str,
    user_id: str,
    max_bytes: int,
) -> StoredFile:
    """Validate and write an upload to disk. Raises UploadRejected."""
    media_type = validate_upload(original_name, mime_type)
    subdir = "photos" if media_type == "photo" else "videos"

    target_dir = Path(upload_dir) / subdir
    target_dir.mkdir(parents=True, exist_ok=True)
    filename = storage_filename(display_name, user_id, original_name)
    path = target_dir / filename

    size = await asyncio.to_thread(_copy_limited, src, path, max_bytes)
    return StoredFile(
        filename=filename,
        path=path,
        url=f"/uploads/{subdir}/{filename}",
        size=size,
        media_type=media_type,
    )
