"""Health and readiness check routes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from services.upstream import Upstreams, get_upstreams

router = APIRouter()

SERVICE_NAME = "earth-backend"


@router.get("/")
async def root() -> dict:
    """Liveness check."""
    return {
        "ok": True,
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def ready(upstreams: Upstreams = Depends(get_upstreams)) -> dict:
    """Lightweight readiness check, no external calls."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "commit": upstreams.settings.git_sha,
        "missing_keys": upstreams.settings.validate(),
        "cache": upstreams.cache.stats(),
    }
