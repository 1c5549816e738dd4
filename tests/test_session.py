"""
Tests for the signed session cookie.
"""

import time
import pytest
import jwt as pyjwt
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from auth.session import (
    REFRESH_ACCESS_TOKEN_ERROR,
    SessionData,
    access_token_expiry_ms,
    decode_session,
    encode_session,
)
from config import config

SECRET = "test-session-secret"


@pytest.fixture(autouse=True)
def session_secret(monkeypatch):
    monkeypatch.setattr(config, "SESSION_SECRET", SECRET)


def make_session(**overrides) -> SessionData:
    fields = dict(
        user_id="1098",
        email="ana@example.com",
        name="Ana Lopez",
        access_token="ya29.token",
        access_token_expires=int(time.time() * 1000) + 3600 * 1000,
    )
    fields.update(overrides)
    return SessionData(**fields)


class TestSessionCookie:

    def test_round_trip_keeps_tokens(self):
        session = make_session()

        restored = decode_session(encode_session(session))

        assert restored == session
        assert restored.error is None
        assert restored.has_access_token

    def test_session_without_user_id(self):
        restored = decode_session(encode_session(make_session(user_id=None)))

        assert restored is not None
        assert restored.user_id is None
        assert restored.access_token == "ya29.token"

    def test_expired_access_token_is_tagged(self):
        """The session survives; it is only flagged for the UI."""
        session = make_session(access_token_expires=int(time.time() * 1000) - 1000)

        restored = decode_session(encode_session(session))

        assert restored is not None
        assert restored.error == REFRESH_ACCESS_TOKEN_ERROR
        assert restored.access_token == "ya29.token"

    def test_tampered_cookie_rejected(self):
        token = encode_session(make_session())
        forged = pyjwt.encode(pyjwt.decode(token, SECRET, algorithms=["HS256"]), "other-secret", algorithm="HS256")

        assert decode_session(forged) is None
        assert decode_session("not-a-jwt") is None

    def test_expired_cookie_rejected(self):
        payload = {"accessToken": "ya29.token", "iat": 1, "exp": int(time.time()) - 10}
        token = pyjwt.encode(payload, SECRET, algorithm="HS256")

        assert decode_session(token) is None

    def test_empty_cookie(self):
        assert decode_session("") is None

    @patch("auth.session.logger")
    def test_missing_secret_ignores_cookie(self, mock_logger, monkeypatch):
        token = encode_session(make_session())
        monkeypatch.setattr(config, "SESSION_SECRET", None)

        assert decode_session(token) is None
        mock_logger.error.assert_called_once()
        assert "SESSION_SECRET" in mock_logger.error.call_args[0][0]

    def test_encode_without_secret_raises(self, monkeypatch):
        monkeypatch.setattr(config, "SESSION_SECRET", "  ")

        with pytest.raises(RuntimeError, match="SESSION_SECRET"):
            encode_session(make_session())


class TestAccessTokenExpiry:

    def test_naive_datetime_is_utc(self):
        expiry = datetime(2030, 1, 1, 12, 0, 0)
        expected = int(expiry.replace(tzinfo=timezone.utc).timestamp() * 1000)

        assert access_token_expiry_ms(expiry) == expected

    def test_epoch_seconds(self):
        assert access_token_expiry_ms(1_700_000_000) == 1_700_000_000_000

    def test_none_defaults_to_one_hour(self):
        before = int(time.time() * 1000)
        result = access_token_expiry_ms(None)

        assert before + 3600 * 1000 <= result <= before + 3600 * 1000 + 5000

    def test_aware_datetime(self):
        expiry = datetime.now(timezone.utc) + timedelta(minutes=5)

        assert access_token_expiry_ms(expiry) == int(expiry.timestamp() * 1000)
