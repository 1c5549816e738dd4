from fastapi import Depends, HTTPException, Request
from typing import Optional
from auth.session import SessionData, decode_session
from config import config
import logging

logger = logging.getLogger("sheetdesk.auth")

# Paths reachable without a session. Everything under a protected prefix
# redirects to the sign-in page when no session cookie is present.
PUBLIC_PATHS = {"/", "/auth/signin", "/privacy"}
PROTECTED_PREFIXES = ("/drive", "/file/")


def is_protected_path(path: str) -> bool:
    if path in PUBLIC_PATHS:
        return False
    return path == "/drive" or path.startswith(PROTECTED_PREFIXES)


def session_from_request(request: Request) -> Optional[SessionData]:
    token = request.cookies.get(config.SESSION_COOKIE_NAME)
    if not token:
        return None
    return decode_session(token)


async def get_current_session_optional(request: Request) -> Optional[SessionData]:
    """
    Best-effort session lookup.
    Returns None when the request carries no valid session cookie.
    """
    return session_from_request(request)


async def get_current_session(
    session: Optional[SessionData] = Depends(get_current_session_optional),
) -> SessionData:
    """
    Dependency for JSON routes that need a signed-in user.
    The access token inside may still be missing or stale; the Google
    wrappers check it themselves before calling out.
    """
    if session is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Sign in with Google first.",
        )
    if session.error:
        logger.warning(f"Session for user {session.user_id} carries error {session.error}")
    return session


async def get_access_token(session: SessionData = Depends(get_current_session)) -> Optional[str]:
    return session.access_token
