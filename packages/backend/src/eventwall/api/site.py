"""Read-only site info: counters and display configuration."""

from fastapi import APIRouter, Depends, HTTPException

from eventwall.api.deps import get_store
from eventwall.config import settings
from eventwall.schemas.site import SiteConfig, Statistics
from eventwall.services.store import MediaStore, StoreError

router = APIRouter()


@router.get("/statistics", response_model=Statistics)
async def get_statistics(store: MediaStore = Depends(get_store)):
    """Photo, video, and message counts."""
    try:
        return Statistics(**await store.get_statistics())
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/config", response_model=SiteConfig)
async def get_site_config():
    """Title, guest names, and event date for the wall header."""
    return SiteConfig(
        site_title=settings.site_title,
        guest_name_a=settings.guest_name_a,
        guest_name_b=settings.guest_name_b,
        event_date=settings.event_date,
    )
