"""
Health endpoints.

Lightweight liveness probes; no external calls and no secrets.
"""

from fastapi import APIRouter

router = APIRouter(tags=["health"])

SERVICE_STATUS = "Loyalty AI Backend Running"


@router.get("/")
def root():
    """Liveness message kept for existing mobile clients."""
    return {"status": SERVICE_STATUS}


@router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}
