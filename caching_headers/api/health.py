"""Health check endpoints.

/health/live   - Liveness probe: is the process up?
/health/ready  - Readiness probe: can we read caching options?

These are public endpoints - no auth required. They are listed in
settings.bypass_path_prefixes, so they never carry caching headers.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from caching_headers.api.deps import get_store
from caching_headers.options.store import OptionsStore

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict:
    """Liveness probe - always returns 200 if the process is running."""
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/ready")
async def readiness(store: OptionsStore = Depends(get_store)) -> dict:
    """Readiness probe - checks the options store is reachable."""
    info = await store.info()
    is_ready = bool(info.get("connected"))
    return {
        "status": "ready" if is_ready else "not_ready",
        "options_store": info.get("backend", "unknown"),
        "timestamp": datetime.now(UTC).isoformat(),
    }
