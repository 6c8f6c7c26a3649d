"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(tags=["health"])

_BACKENDS = ("object_store", "locker")


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def ready(request: Request) -> dict[str, str]:
    """Ready once the lifespan has wired the object store and the locker."""
    missing = [name for name in _BACKENDS if getattr(request.app.state, name, None) is None]
    if missing:
        raise HTTPException(status_code=503, detail=f"backends not initialised: {', '.join(missing)}")
    return {"status": "ready"}
