import json
from typing import Any, Callable, Tuple

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from errors import GoogleApiError
from utils.prometheus import GOOGLE_API_CALLS
from utils.structured_logging import StructuredLogger

# Failures that happen before Google answers with an HTTP error body
TRANSPORT_ERRORS = (TransportError, httplib2.HttpLib2Error, OSError)


def http_error_reason(error: HttpError) -> str:
    """Best-effort extraction of Google's error message from an HttpError body."""
    try:
        content = json.loads(error.content.decode("utf-8"))
        return content.get("error", {}).get("message", "Unknown")
    except (ValueError, AttributeError, UnicodeDecodeError):
        return "Unknown"


def failure_status(error: Exception) -> Tuple[int, str]:
    """HTTP status and reason used in the user-facing message for a failed call."""
    if isinstance(error, HttpError):
        return error.resp.status, error.resp.reason
    if isinstance(error, RefreshError):
        # The bearer token was rejected and cannot be refreshed
        return 401, "Unauthorized"
    return 503, "Service Unavailable"


def execute_google_call(
    api: str,
    operation: str,
    func: Callable[[], Any],
    error_message: Callable[[int, str], str],
    logger: StructuredLogger,
    **log_fields
) -> Any:
    """
    Run a single Google API request.

    One attempt only. An HttpError, a rejected token or a transport failure
    becomes a GoogleApiError carrying the generic message built by
    ``error_message(status, reason)``; Google's own explanation is logged
    but not shown to the user.
    """
    try:
        result = func()
    except (HttpError, RefreshError) + TRANSPORT_ERRORS as e:
        status, reason = failure_status(e)
        detail = http_error_reason(e) if isinstance(e, HttpError) else str(e)
        GOOGLE_API_CALLS.labels(api=api, operation=operation, status="error").inc()
        logger.error(
            action=operation,
            message=f"Google {api} API error {status}: {detail}",
            error=e,
            **log_fields
        )
        raise GoogleApiError(error_message(status, reason), status=status) from e

    GOOGLE_API_CALLS.labels(api=api, operation=operation, status="success").inc()
    logger.info(action=operation, **log_fields)
    return result
