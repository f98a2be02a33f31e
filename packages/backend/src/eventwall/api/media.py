"""Media API routes — photo/video upload and the gallery listing.

Learn: The upload handler returns as soon as the record is committed.
The newMedia broadcast is queued before returning, and the cloud backup
is spawned as a detached task, so neither delays the response.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from eventwall.api.deps import get_ingest_service, get_store
from eventwall.auth.dependencies import CurrentIdentity, get_current_user
from eventwall.config import settings
from eventwall.schemas.media import MediaRead
from eventwall.services.ingest import IngestService
from eventwall.services.store import MediaStore, StoreError
from eventwall.services.uploads import UploadRejected

router = APIRouter()


@router.post("/media", response_model=MediaRead, status_code=201)
async def upload_media(
    file: UploadFile = File(...),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: IngestService = Depends(get_ingest_service),
):
    """Upload a photo or video. The uploader is the authenticated guest."""
    try:
        return await svc.upload_media(
            identity,
            file.file,
            original_name=file.filename,
            mime_type=file.content_type,
        )
    except UploadRejected as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Upload failed: {e}")
    finally:
        await file.close()


@router.get("/media", response_model=list[MediaRead])
async def list_media(
    limit: Optional[int] = Query(None, ge=1, le=500),
    store: MediaStore = Depends(get_store),
):
    """List media newest first."""
    try:
        return await store.list_media(limit or settings.media_list_limit)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
