import os
from typing import List


def normalize_cors_origins(origins_str: str) -> List[str]:
    """
    Normalize a comma-separated string of CORS origins.

    Handles:
    - Trim whitespace from each origin
    - Remove surrounding quotes (" and ')
    - Remove trailing slashes (/)
    - Filter out empty entries

    Args:
        origins_str: Comma-separated string of origins

    Returns:
        List of normalized, non-empty origins
    """
    if not origins_str:
        return []

    normalized = []
    for origin in origins_str.split(","):
        origin = origin.strip()

        if (origin.startswith('"') and origin.endswith('"')) or \
           (origin.startswith("'") and origin.endswith("'")):
            origin = origin[1:-1]

        origin = origin.strip()
        origin = origin.rstrip("/")

        if origin:
            normalized.append(origin)

    return normalized


class Config:
    # --- GOOGLE OAUTH (user sign-in) ---
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    # Must match an authorized redirect URI of the OAuth client in Google Cloud.
    OAUTH_REDIRECT_URI = os.getenv("OAUTH_REDIRECT_URI", "http://localhost:8000/auth/callback")

    # --- SESSION COOKIE ---
    # Secret used to sign the session JWT stored in the browser cookie.
    SESSION_SECRET = os.getenv("SESSION_SECRET", None)
    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "sheetdesk_session")
    SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", str(30 * 24 * 3600)))
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    # --- DRIVE & SHEETS ---
    DRIVE_LIST_PAGE_SIZE = int(os.getenv("DRIVE_LIST_PAGE_SIZE", "10"))
    # Tab opened by default when a spreadsheet is viewed.
    DEFAULT_SHEET_TITLE = os.getenv("DEFAULT_SHEET_TITLE", "patient")

    # --- CORS ---
    _DEFAULT_CORS_ORIGINS = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", ",".join(_DEFAULT_CORS_ORIGINS))

    # Optional: Regex pattern for additional CORS origins.
    # Must be a valid Python regex pattern. Leave empty to disable.
    CORS_ORIGIN_REGEX = os.getenv("CORS_ORIGIN_REGEX", None)

    # --- LOGGING ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

config = Config()
