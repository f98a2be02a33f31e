"""Schemas for the read-only site endpoints (statistics, display config)."""

from typing import Optional

from pydantic import BaseModel

from eventwall.schemas.media import CAMEL


class Statistics(BaseModel):
    photo_count: int
    video_count: int
    message_count: int

    model_config = CAMEL


class SiteConfig(BaseModel):
    site_title: str
    guest_name_a: str
    guest_name_b: str
    event_date: Optional[str] = None

    model_config = CAMEL


class Identity(BaseModel):
    user_id: str
    display_name: str
    email: Optional[str] = None

    model_config = CAMEL
