"""
Tests for the Google sign-in flow.

The token exchange with Google is patched out; everything up to it
(consent URL, state cookie, PKCE verifier, session cookie) runs for real.
"""

import json
import time
from datetime import datetime
import pytest
import jwt as pyjwt
from fastapi.testclient import TestClient
from unittest.mock import Mock, patch
from urllib.parse import parse_qs, urlparse

from auth.oauth import SCOPES, OAUTH_STATE_MAX_AGE, complete_authorization, read_state_token
from auth.session import SessionData, decode_session, encode_session
from config import config
from main import app
from routers.auth import OAUTH_STATE_COOKIE

SECRET = "test-session-secret"


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(config, "SESSION_SECRET", SECRET)
    monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", "client-123.apps.googleusercontent.com")
    monkeypatch.setattr(config, "GOOGLE_CLIENT_SECRET", "shh")
    return TestClient(app, follow_redirects=False)


def state_cookie(state="state-abc", verifier="verifier-xyz"):
    now = int(time.time())
    return pyjwt.encode(
        {"state": state, "cv": verifier, "iat": now, "exp": now + OAUTH_STATE_MAX_AGE},
        SECRET,
        algorithm="HS256",
    )


class TestLogin:

    def test_redirects_to_google_consent(self, client):
        response = client.get("/auth/login")

        assert response.status_code == 303
        location = urlparse(response.headers["location"])
        assert location.netloc == "accounts.google.com"

        query = parse_qs(location.query)
        assert query["client_id"] == ["client-123.apps.googleusercontent.com"]
        assert query["redirect_uri"] == [config.OAUTH_REDIRECT_URI]
        assert query["access_type"] == ["offline"]
        assert query["prompt"] == ["consent"]
        assert query["code_challenge_method"] == ["S256"]
        assert set(query["scope"][0].split(" ")) == set(SCOPES)

    def test_state_cookie_matches_state_param(self, client):
        response = client.get("/auth/login")

        state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]
        saved = read_state_token(response.cookies[OAUTH_STATE_COOKIE])
        assert saved["state"] == state
        assert saved["cv"]

    def test_unconfigured_client_goes_back_to_signin(self, client, monkeypatch):
        monkeypatch.setattr(config, "GOOGLE_CLIENT_SECRET", None)

        response = client.get("/auth/login")

        assert response.status_code == 303
        assert response.headers["location"].startswith("/auth/signin?error=")


class TestCallback:

    def test_missing_state_cookie(self, client):
        response = client.get("/auth/callback", params={"state": "state-abc", "code": "c"})

        assert response.status_code == 400
        assert "Sign-in expired" in response.text

    def test_state_mismatch(self, client):
        client.cookies.set(OAUTH_STATE_COOKIE, state_cookie())

        response = client.get("/auth/callback", params={"state": "forged", "code": "c"})

        assert response.status_code == 400

    def test_user_denied_consent(self, client):
        client.cookies.set(OAUTH_STATE_COOKIE, state_cookie())

        response = client.get("/auth/callback", params={"state": "state-abc", "error": "access_denied"})

        assert response.status_code == 400
        assert "cancelled" in response.text

    @patch("routers.auth.complete_authorization")
    def test_token_exchange_failure(self, mock_complete, client):
        mock_complete.side_effect = ValueError("invalid_grant")
        client.cookies.set(OAUTH_STATE_COOKIE, state_cookie())

        response = client.get("/auth/callback", params={"state": "state-abc", "code": "c"})

        assert response.status_code == 502
        assert "Could not complete Google sign-in." in response.text

    @patch("routers.auth.complete_authorization")
    def test_success_sets_session_cookie(self, mock_complete, client):
        mock_complete.return_value = SessionData(
            user_id="1098",
            email="clinician@example.com",
            name="Dr Grey",
            access_token="ya29.token",
            access_token_expires=int(time.time() * 1000) + 3600 * 1000,
        )
        client.cookies.set(OAUTH_STATE_COOKIE, state_cookie())

        response = client.get("/auth/callback", params={"state": "state-abc", "code": "c"})

        assert response.status_code == 303
        assert response.headers["location"] == "/drive"

        args = mock_complete.call_args.args
        assert args[1:] == ("state-abc", "verifier-xyz")
        assert "code=c" in args[0]

        session = decode_session(response.cookies[config.SESSION_COOKIE_NAME])
        assert session.email == "clinician@example.com"
        assert session.access_token == "ya29.token"


class TestCompleteAuthorization:

    @patch("auth.oauth.build_flow")
    def test_refresh_token_never_reaches_cookie(self, mock_build_flow, monkeypatch):
        monkeypatch.setattr(config, "SESSION_SECRET", SECRET)
        id_token = pyjwt.encode(
            {"sub": "1098", "email": "clinician@example.com", "name": "Dr Grey"}, "google-key", algorithm="HS256"
        )
        flow = mock_build_flow.return_value
        flow.credentials = Mock(
            token="ya29.token",
            refresh_token="1//long-lived-refresh",
            expiry=datetime(2030, 1, 1, 12, 0, 0),
            id_token=id_token,
        )

        session = complete_authorization("https://app/auth/callback?code=c&state=s", "s", "verifier-xyz")
        cookie = encode_session(session)

        flow.fetch_token.assert_called_once_with(authorization_response="https://app/auth/callback?code=c&state=s")
        assert session.email == "clinician@example.com"
        assert not hasattr(session, "refresh_token")
        payload = pyjwt.decode(cookie, options={"verify_signature": False})
        assert "refreshToken" not in payload
        assert "1//long-lived-refresh" not in json.dumps(payload)
