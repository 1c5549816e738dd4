"""Prometheus metrics shared by the Google API wrappers."""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    generate_latest,
)

GOOGLE_API_CALLS = Counter(
    "sheetdesk_google_api_calls_total",
    "Total number of Google Drive / Sheets API calls grouped by outcome",
    ["api", "operation", "status"],
)

__all__ = [
    "CONTENT_TYPE_LATEST",
    "REGISTRY",
    "GOOGLE_API_CALLS",
    "generate_latest",
]
