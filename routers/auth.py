from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from typing import Optional

from auth.dependencies import get_current_session_optional
from auth.oauth import (
    OAuthConfigurationError,
    OAUTH_STATE_MAX_AGE,
    complete_authorization,
    read_state_token,
    start_authorization,
)
from auth.session import SessionData, encode_session
from config import config
from utils.structured_logging import auth_logger
from utils.templating import templates

router = APIRouter(tags=["auth"])

OAUTH_STATE_COOKIE = "sheetdesk_oauth_state"


def _render_signin(request: Request, error: Optional[str] = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "signin.html",
        {"session": None, "error": error},
        status_code=status_code,
    )


@router.get("/auth/signin", response_class=HTMLResponse)
def signin_page(request: Request, error: Optional[str] = None):
    return _render_signin(request, error=error)


@router.get("/auth/login")
def login():
    try:
        authorization_url, state_token = start_authorization()
    except OAuthConfigurationError as e:
        auth_logger.error(action="oauth_start", message="Sign-in is not configured", error=e)
        return RedirectResponse(url="/auth/signin?error=Sign-in+is+not+configured", status_code=303)

    response = RedirectResponse(url=authorization_url, status_code=303)
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state_token,
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.get("/auth/callback")
def oauth_callback(request: Request):
    saved = read_state_token(request.cookies.get(OAUTH_STATE_COOKIE))
    returned_state = request.query_params.get("state")

    if not saved or saved.get("state") != returned_state:
        # Usually the state cookie was lost between /auth/login and the callback
        auth_logger.warning(action="oauth_callback", status="invalid_state", message="OAuth state mismatch")
        return _render_signin(request, error="Sign-in expired or was started elsewhere. Please try again.", status_code=400)

    if request.query_params.get("error"):
        auth_logger.warning(
            action="oauth_callback",
            status="denied",
            message=f"Google returned error {request.query_params.get('error')}",
        )
        return _render_signin(request, error="Google sign-in was cancelled.", status_code=400)

    try:
        session = complete_authorization(str(request.url), returned_state, saved.get("cv"))
    except Exception as e:
        auth_logger.error(action="oauth_callback", message="Token exchange failed", error=e)
        return _render_signin(request, error="Could not complete Google sign-in.", status_code=502)

    response = RedirectResponse(url="/drive", status_code=303)
    response.delete_cookie(OAUTH_STATE_COOKIE)
    response.set_cookie(
        config.SESSION_COOKIE_NAME,
        encode_session(session),
        max_age=config.SESSION_MAX_AGE,
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.api_route("/auth/signout", methods=["GET", "POST"])
def signout():
    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    auth_logger.info(action="signout", message="Session cookie cleared")
    return response


@router.get("/api/session")
def read_session(session: Optional[SessionData] = Depends(get_current_session_optional)):
    """Session summary for clients; the tokens themselves are never returned."""
    if session is None:
        return {"authenticated": False}
    return {
        "authenticated": True,
        "user": {"id": session.user_id, "email": session.email, "name": session.name},
        "has_access_token": session.has_access_token,
        "access_token_expires": session.access_token_expires,
        "error": session.error,
    }
