"""Service-level routes."""

from fastapi import APIRouter

from greenreceipt import __version__

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """Liveness check; does not touch the database."""
    return {"status": "ok", "version": __version__}
