"""
vrai/api/health.py — Health check.

GET /health — reports whether the Remote Data Service answers.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from vrai import __version__
from vrai.context import AppContext
from vrai.dependencies import get_context

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
async def health(context: AppContext = Depends(get_context)):
    remote_ok = await context.remote.ping()
    return {
        "status": "healthy" if remote_ok else "degraded",
        "backend": context.remote.backend_name,
        "remote": "connected" if remote_ok else "disconnected",
        "service": "vrai",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
