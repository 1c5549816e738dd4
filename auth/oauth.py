"""
Google OAuth 2.0 web flow used for user sign-in.

The flow itself is delegated to google-auth-oauthlib; this module only
builds the Flow from configuration and turns the resulting credentials into
a SessionData.
"""

import os
import time
import jwt
from typing import Any, Dict, Optional, Tuple

from google_auth_oauthlib.flow import Flow

from auth.session import SessionData, access_token_expiry_ms, get_session_secret, SESSION_ALGORITHM
from config import config
from utils.structured_logging import auth_logger

# Google adds "openid" and reorders scopes in its answer; oauthlib would
# otherwise reject the token response.
os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")

# Local development runs the callback over plain http
if config.OAUTH_REDIRECT_URI.startswith(("http://localhost", "http://127.0.0.1")):
    os.environ.setdefault("OAUTHLIB_INSECURE_TRANSPORT", "1")

SCOPES = [
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/drive.readonly",
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/spreadsheets.readonly",
]

OAUTH_STATE_MAX_AGE = 600


class OAuthConfigurationError(RuntimeError):
    pass


def _client_config() -> Dict[str, Any]:
    if not config.GOOGLE_CLIENT_ID or not config.GOOGLE_CLIENT_SECRET:
        raise OAuthConfigurationError(
            "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET must be set to enable sign-in."
        )
    if not config.SESSION_SECRET:
        raise OAuthConfigurationError("SESSION_SECRET must be set to enable sign-in.")
    return {
        "web": {
            "client_id": config.GOOGLE_CLIENT_ID,
            "client_secret": config.GOOGLE_CLIENT_SECRET,
            "redirect_uris": [config.OAUTH_REDIRECT_URI],
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
        }
    }


def build_flow(state: Optional[str] = None, code_verifier: Optional[str] = None) -> Flow:
    kwargs: Dict[str, Any] = {"scopes": SCOPES, "state": state}
    if code_verifier:
        kwargs["code_verifier"] = code_verifier
    else:
        kwargs["autogenerate_code_verifier"] = True

    flow = Flow.from_client_config(_client_config(), **kwargs)
    flow.redirect_uri = config.OAUTH_REDIRECT_URI
    return flow


def start_authorization() -> Tuple[str, str]:
    """
    Begin sign-in.

    Returns the Google consent URL and a signed value to keep in a short-lived
    cookie until the callback (OAuth state plus PKCE verifier).
    """
    flow = build_flow()
    authorization_url, state = flow.authorization_url(
        access_type="offline",
        prompt="consent",
        include_granted_scopes="true",
    )
    now = int(time.time())
    state_token = jwt.encode(
        {"state": state, "cv": flow.code_verifier, "iat": now, "exp": now + OAUTH_STATE_MAX_AGE},
        get_session_secret(),
        algorithm=SESSION_ALGORITHM,
    )
    auth_logger.info(action="oauth_start", message="Redirecting to Google consent screen")
    return authorization_url, state_token


def read_state_token(state_token: Optional[str]) -> Optional[Dict[str, Any]]:
    if not state_token or not config.SESSION_SECRET:
        return None
    try:
        return jwt.decode(state_token, get_session_secret(), algorithms=[SESSION_ALGORITHM])
    except jwt.InvalidTokenError:
        return None


def _identity_from_id_token(raw_id_token: Optional[str]) -> Dict[str, Any]:
    # The ID token comes straight from Google's token endpoint over TLS,
    # so its claims are read without re-verifying the signature.
    if not raw_id_token:
        return {}
    try:
        return jwt.decode(raw_id_token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        auth_logger.warning(action="oauth_callback", message="Could not read ID token claims", error=str(e))
        return {}


def complete_authorization(authorization_response: str, state: str, code_verifier: Optional[str]) -> SessionData:
    """Exchange the authorization code and build the session for the signed-in user."""
    flow = build_flow(state=state, code_verifier=code_verifier)
    flow.fetch_token(authorization_response=authorization_response)
    credentials = flow.credentials

    claims = _identity_from_id_token(getattr(credentials, "id_token", None))

    session = SessionData(
        user_id=claims.get("sub"),
        email=claims.get("email"),
        name=claims.get("name"),
        access_token=credentials.token,
        access_token_expires=access_token_expiry_ms(credentials.expiry),
    )
    auth_logger.info(
        action="oauth_callback",
        message=f"Signed in {session.email or session.user_id}",
        has_access_token=session.has_access_token,
    )
    return session
