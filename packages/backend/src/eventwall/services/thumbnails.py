"""Photo thumbnails — 300x300 center crop, JPEG quality 80.

Best effort: formats Pillow can't decode (HEIC, DNG), corrupt files and
images over Pillow's pixel limit just produce no thumbnail.
"""

import asyncio
from pathlib import Path
from typing import Optional

import structlog
from PIL import Image, ImageOps, UnidentifiedImageError

logger = structlog.get_logger()

THUMBNAIL_SIZE = (300, 300)
THUMBNAIL_QUALITY = 80


def _render(source: Path, target: Path) -> None:
    with Image.open(source) as img:
        img = ImageOps.exif_transpose(img)
        thumb = ImageOps.fit(
            img.convert("RGB"),
            THUMBNAIL_SIZE,
            method=Image.Resampling.LANCZOS,
            centering=(0.5, 0.5),
        )
        thumb.save(target, format="JPEG", quality=THUMBNAIL_QUALITY)


async def make_thumbnail(source: Path, upload_dir: str) -> Optional[str]:
    """Write thumb_<name>.jpg and return its URL, or None on failure."""
    thumb_dir = Path(upload_dir) / "thumbnails"
    thumb_dir.mkdir(parents=True, exist_ok=True)
    name = f"thumb_{source.stem}.jpg"
    try:
        await asyncio.to_thread(_render, source, thumb_dir / name)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.warning("thumbnail.failed", file=source.name, error=str(e))
        return None
    return f"/uploads/thumbnails/{name}"
