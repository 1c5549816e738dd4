import time
from datetime import timezone
import jwt
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

from config import config

logger = logging.getLogger("sheetdesk.auth.session")

SESSION_ALGORITHM = "HS256"
REFRESH_ACCESS_TOKEN_ERROR = "RefreshAccessTokenError"
DEFAULT_ACCESS_TOKEN_LIFETIME_MS = 3600 * 1000


@dataclass
class SessionData:
    user_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    access_token: Optional[str] = None
    access_token_expires: Optional[int] = None
    error: Optional[str] = None

    @property
    def has_access_token(self) -> bool:
        return bool(self.access_token)


def _now_ms() -> int:
    return int(time.time() * 1000)


def get_session_secret() -> str:
    secret = config.SESSION_SECRET
    if not secret or not secret.strip():
        raise RuntimeError("SESSION_SECRET is not configured. Sessions cannot be signed.")
    return secret


def access_token_expiry_ms(expires_at: Optional[Any]) -> int:
    """
    Convert the expiry reported by Google into epoch milliseconds.

    Accepts a datetime (what google-auth exposes as ``credentials.expiry``),
    epoch seconds, or None. None means one hour from now.
    """
    if expires_at is None:
        return _now_ms() + DEFAULT_ACCESS_TOKEN_LIFETIME_MS
    if hasattr(expires_at, "timestamp"):
        # google-auth hands out naive UTC datetimes
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return int(expires_at.timestamp() * 1000)
    return int(expires_at) * 1000


def encode_session(session: SessionData, max_age: Optional[int] = None) -> str:
    """Sign the session into a compact JWT suitable for a cookie value."""
    now = int(time.time())
    payload: Dict[str, Any] = {
        "email": session.email,
        "name": session.name,
        "accessToken": session.access_token,
        "accessTokenExpires": session.access_token_expires,
        "iat": now,
        "exp": now + (max_age or config.SESSION_MAX_AGE),
    }
    # PyJWT rejects a non-string "sub" claim on decode
    if session.user_id:
        payload["sub"] = str(session.user_id)
    return jwt.encode(payload, get_session_secret(), algorithm=SESSION_ALGORITHM)


def decode_session(token: str) -> Optional[SessionData]:
    """
    Verify a session cookie and return the session it carries.

    Returns None when the cookie is missing, tampered with or past its
    lifetime. A session whose Google access token has expired is still
    returned, tagged with ``error = "RefreshAccessTokenError"``.
    """
    if not token:
        return None

    if not config.SESSION_SECRET:
        logger.error("SESSION_SECRET is not configured. Ignoring session cookie.")
        return None

    try:
        payload = jwt.decode(token, get_session_secret(), algorithms=[SESSION_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Session cookie has expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid session cookie: {e}")
        return None

    session = SessionData(
        user_id=payload.get("sub"),
        email=payload.get("email"),
        name=payload.get("name"),
        access_token=payload.get("accessToken"),
        access_token_expires=payload.get("accessTokenExpires"),
    )

    if session.access_token_expires and _now_ms() >= session.access_token_expires:
        session.error = REFRESH_ACCESS_TOKEN_ERROR

    return session
