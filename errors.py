from typing import Optional


class SheetDeskError(Exception):
    """Base class for errors surfaced to the user as a notification string."""


class MissingAccessTokenError(SheetDeskError):
    """Raised before any network work when the session carries no access token."""

    def __init__(self, message: str = "No access token provided"):
        super().__init__(message)


class GoogleApiError(SheetDeskError):
    """A remote Drive or Sheets call failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class SheetNotFoundError(GoogleApiError):
    """No tab in the spreadsheet carries the requested title."""

    def __init__(self, sheet_title: str):
        super().__init__(f"Could not find sheet with title: {sheet_title}", status=404)
        self.sheet_title = sheet_title
