"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and its
dependencies (database, Redis) are reachable, plus how many viewers are
connected right now.
"""

from fastapi import APIRouter, Depends

from eventwall import __version__
from eventwall.api.deps import get_hub, get_store
from eventwall.realtime.hub import BroadcastHub
from eventwall.services.store import MediaStore

router = APIRouter()


@router.get("/health")
async def health_check(
    store: MediaStore = Depends(get_store),
    hub: BroadcastHub = Depends(get_hub),
):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await store.ping()
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    # Redis is optional — only report it if the pool came up at startup
    try:
        from eventwall.realtime.redis_pool import get_redis

        await get_redis().ping()
        checks["redis"] = "ok"
    except RuntimeError:
        checks["redis"] = "disabled"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    status = "healthy" if checks["database"] == "ok" and not checks["redis"].startswith(
        "error"
    ) else "degraded"

    return {"status": status, "viewers": hub.connection_count, **checks}
