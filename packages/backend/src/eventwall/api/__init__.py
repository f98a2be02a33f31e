"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Reads are open to anyone watching the wall. Writes (uploads,
messages, comments) and /auth/me take the identity from
get_current_user inside each handler, since the handler needs the
guest's display name anyway.
"""

from fastapi import APIRouter

from eventwall.api.auth import router as auth_router
from eventwall.api.health import router as health_router
from eventwall.api.media import router as media_router
from eventwall.api.messages import router as messages_router
from eventwall.api.site import router as site_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(media_router, tags=["media"])
api_router.include_router(messages_router, tags=["messages", "comments"])
api_router.include_router(site_router, tags=["site"])
