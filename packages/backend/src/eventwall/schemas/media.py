"""Pydantic schemas for media items.

Learn: The wire format is camelCase (it's consumed by browser viewers),
while the ORM is snake_case. alias_generator=to_camel bridges the two;
FastAPI serializes response models by alias, and the hub serializes
events with by_alias=True, so HTTP responses and broadcasts share one
shape.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class MediaRead(BaseModel):
    id: int
    media_type: str
    uploader: str
    uploader_id: Optional[str] = None
    original_name: str
    filename: str
    file_type: str
    file_size: int
    file_url: str
    thumbnail_url: Optional[str] = None
    cloud_url: Optional[str] = None
    cloud_view_link: Optional[str] = None
    cloud_uploaded: bool = False
    upload_time: datetime

    model_config = {"from_attributes": True, **CAMEL}


class CloudSyncRead(BaseModel):
    """Payload of cloudSyncComplete — just enough to patch a viewer's item."""

    id: int
    cloud_url: str

    model_config = CAMEL
