"""Health check routes."""

from fastapi import APIRouter, Request

from printhelper import __version__
from printhelper.shared.time import utcnow_iso

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    """Liveness probe with current browser session usage."""
    sessions = request.app.state.session_manager
    return {
        "status": "healthy",
        "service": "printhelper",
        "timestamp": utcnow_iso(),
        "version": __version__,
        "sessions": {"open": sessions.open_sessions, "max": sessions.max_sessions},
    }
