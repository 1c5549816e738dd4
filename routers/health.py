"""
Health check endpoint for monitoring.
"""

from fastapi import APIRouter
from datetime import datetime, timezone
from config import config

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check():
    """
    Liveness probe.

    Google APIs are not contacted: every call needs a user's token, so the
    only thing checked here is whether sign-in is configured.
    """
    oauth_configured = bool(config.GOOGLE_CLIENT_ID and config.GOOGLE_CLIENT_SECRET)
    session_configured = bool(config.SESSION_SECRET)
    return {
        "status": "healthy" if oauth_configured and session_configured else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "oauth_configured": oauth_configured,
        "session_configured": session_configured,
    }
