"""Message board and overlay comment routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from eventwall.api.deps import get_ingest_service, get_store
from eventwall.auth.dependencies import CurrentIdentity, get_current_user
from eventwall.config import settings
from eventwall.schemas.message import (
    CommentCreate,
    CommentRead,
    MessageCreate,
    MessageRead,
)
from eventwall.services.ingest import IngestService
from eventwall.services.store import MediaStore, StoreError

router = APIRouter()


# ═══════════════════════════════════════════════════════════
# Messages
# ═══════════════════════════════════════════════════════════


@router.post("/messages", response_model=MessageRead, status_code=201)
async def post_message(
    body: MessageCreate,
    request: Request,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: IngestService = Depends(get_ingest_service),
):
    """Post a message to the board (1–200 characters)."""
    ip_address = request.client.host if request.client else None
    try:
        return await svc.post_message(identity, body, ip_address=ip_address)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Failed to post message: {e}")


@router.get("/messages", response_model=list[MessageRead])
async def list_messages(
    limit: Optional[int] = Query(None, ge=1, le=500),
    store: MediaStore = Depends(get_store),
):
    """List messages newest first."""
    try:
        return await store.list_messages(limit or settings.message_list_limit)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))


# ═══════════════════════════════════════════════════════════
# Comments (danmaku)
# ═══════════════════════════════════════════════════════════


@router.post("/comments", response_model=CommentRead, status_code=201)
async def post_comment(
    body: CommentCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: IngestService = Depends(get_ingest_service),
):
    """Send a floating comment across every viewer's screen (1–50 characters)."""
    try:
        return await svc.post_comment(identity, body)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Failed to post comment: {e}")
