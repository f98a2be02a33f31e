"""Pydantic schemas for messages and overlay comments."""

from datetime import datetime

from pydantic import BaseModel, Field

from eventwall.schemas.media import CAMEL

MAX_MESSAGE_LENGTH = 200
MAX_COMMENT_LENGTH = 50


# ─── Messages ─────────────────────────────────────────────


class MessageCreate(BaseModel):
    message_text: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)

    model_config = {"str_strip_whitespace": True, **CAMEL}


class MessageRead(BaseModel):
    id: int
    user_name: str
    message_text: str
    created_at: datetime

    model_config = {"from_attributes": True, **CAMEL}


# ─── Comments (danmaku) ───────────────────────────────────


class CommentCreate(BaseModel):
    comment_text: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)
    color: str = Field("#FFFFFF", pattern=r"^#[0-9A-Fa-f]{6}$")
    position: float = Field(50.0, ge=0, le=100)  # vertical lane, percent

    model_config = {"str_strip_whitespace": True, **CAMEL}


class CommentRead(BaseModel):
    id: int
    user_name: str
    comment_text: str
    color: str
    position: float

    model_config = {"from_attributes": True, **CAMEL}
