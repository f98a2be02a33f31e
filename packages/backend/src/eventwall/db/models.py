"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic auto-generates migrations by comparing these
models to the actual DB.

Key concepts:
- Auto-increment integer ids: media ids are monotonically increasing and
  double as a tie-breaker for the gallery order.
- Timestamps get a Python-side default so they are populated right after
  flush (no extra round-trip to read server defaults back).
- Cloud backup columns start empty and are filled in at most once.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


MEDIA_TYPES = ("photo", "video")


class MediaFile(Base):
    """An uploaded photo or video.

    Learn: The gallery order is upload_time DESC, id DESC. Both columns
    are write-once. The cloud_* columns are populated asynchronously after
    the Google Drive backup finishes; cloud_uploaded guards the
    absent → present transition so it can only happen once.
    """

    __tablename__ = "media_files"
    __table_args__ = (
        Index("idx_media_upload_time", "upload_time", "id"),
        Index("idx_media_type", "media_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    uploader: Mapped[str] = mapped_column(String(100), nullable=False)
    uploader_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    file_type: Mapped[str] = mapped_column(String(100), nullable=False)  # MIME
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    media_type: Mapped[str] = mapped_column(String(10), nullable=False)  # photo, video

    # Cloud backup (Google Drive)
    cloud_file_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cloud_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    cloud_view_link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    cloud_uploaded: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    cloud_uploaded_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    upload_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class Message(Base):
    """A guestbook message shown on the message board."""

    __tablename__ = "messages"
    __table_args__ = (Index("idx_messages_created", "created_at", "id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_name: Mapped[str] = mapped_column(String(100), nullable=False)
    message_text: Mapped[str] = mapped_column(Text, nullable=False)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class Comment(Base):
    """A floating overlay comment (danmaku).

    Learn: Comments are persisted for the record, but viewers treat them
    as ephemeral — they scroll across the screen once and disappear.
    position is the vertical lane as a percentage of the display height.
    """

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_name: Mapped[str] = mapped_column(String(100), nullable=False)
    comment_text: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(
        String(7), nullable=False, default="#FFFFFF", server_default="#FFFFFF"
    )
    position: Mapped[float] = mapped_column(
        Numeric(5, 2, asdecimal=False), nullable=False, default=50.0,
        server_default="50.00",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
