from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from fastapi.exception_handlers import http_exception_handler, request_validation_exception_handler
from utils.prometheus import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from utils.templating import PROJECT_ROOT
from routers import auth as auth_routes, drive, health, pages, sheets
from auth.dependencies import is_protected_path, session_from_request
from errors import GoogleApiError, MissingAccessTokenError, SheetDeskError, SheetNotFoundError
from services.patient_service import AddPatientError
from contextlib import asynccontextmanager
import logging
import os
from config import config, normalize_cors_origins

# Configure Logging
import logging_config  # This initializes logging

logger = logging.getLogger("sheetdesk.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up application...")
    if not config.SESSION_SECRET:
        logger.error("SESSION_SECRET is not set. Sign-in will fail until it is configured.")
    if not config.GOOGLE_CLIENT_ID or not config.GOOGLE_CLIENT_SECRET:
        logger.warning("GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET not set. Google sign-in is disabled.")

    yield

    logger.info("Shutting down application...")

app = FastAPI(lifespan=lifespan)

origins = normalize_cors_origins(config.CORS_ORIGINS)
logger.info(f"CORS allowed origins: {origins}")

cors_params = {
    "allow_origins": origins,
    "allow_credentials": True,
    "allow_methods": ["*"],
    "allow_headers": ["*"],
}

if config.CORS_ORIGIN_REGEX:
    cors_params["allow_origin_regex"] = config.CORS_ORIGIN_REGEX
    logger.info(f"CORS origin regex enabled: {config.CORS_ORIGIN_REGEX}")

app.add_middleware(
    CORSMiddleware,
    **cors_params,
)


HTTP_STATUS_CODE_MAP = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation_error",
    429: "too_many_requests",
    502: "bad_gateway",
}


def _http_exception_to_api_error(exc: HTTPException) -> dict:
    detail = exc.detail
    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict) and "message" in detail:
        message = str(detail["message"])
    else:
        message = str(detail) if detail else "Request error"

    payload = {
        "error": message,
        "code": HTTP_STATUS_CODE_MAP.get(exc.status_code, "http_error"),
        "message": message,
    }

    if not isinstance(detail, str):
        payload["details"] = detail

    return payload


def status_for_error(exc: SheetDeskError) -> int:
    if isinstance(exc, AddPatientError):
        return status_for_error(exc.cause) if isinstance(exc.cause, SheetDeskError) else 502
    if isinstance(exc, MissingAccessTokenError):
        return 401
    if isinstance(exc, SheetNotFoundError):
        return 404
    if isinstance(exc, GoogleApiError):
        return 502
    return 500


@app.middleware("http")
async def require_session_for_pages(request: Request, call_next):
    """Send unauthenticated browser requests for protected pages to the sign-in page."""
    if is_protected_path(request.url.path) and session_from_request(request) is None:
        return RedirectResponse(url="/auth/signin", status_code=303)
    return await call_next(request)


@app.middleware("http")
async def ensure_api_json_error_response(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception:
        if request.url.path.startswith("/api"):
            logger.error("Unhandled exception for API request", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "An unexpected error occurred",
                    "code": "internal_server_error",
                    "message": "An unexpected error occurred",
                },
            )
        raise


@app.exception_handler(SheetDeskError)
async def sheetdesk_error_handler(request: Request, exc: SheetDeskError):
    """Remote-call failures reach API clients as a single message string."""
    status_code = status_for_error(exc)
    message = str(exc) or "Remote call failed"
    return JSONResponse(
        status_code=status_code,
        content={
            "error": message,
            "code": HTTP_STATUS_CODE_MAP.get(status_code, "internal_server_error"),
            "message": message,
        },
    )


@app.exception_handler(HTTPException)
async def http_exception_handler_for_api(request: Request, exc: HTTPException):
    """Normalize HTTPException responses for /api routes while preserving defaults elsewhere."""
    if request.url.path.startswith("/api"):
        return JSONResponse(status_code=exc.status_code, content=_http_exception_to_api_error(exc))

    return await http_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Normalize validation errors for API routes while preserving default behavior elsewhere."""
    if request.url.path.startswith("/api"):
        return JSONResponse(
            status_code=422,
            content={
                "error": "Validation error",
                "code": "validation_error",
                "message": "Validation error",
                "details": exc.errors(),
            },
        )

    return await request_validation_exception_handler(request, exc)

app.mount("/static", StaticFiles(directory=os.path.join(PROJECT_ROOT, "static")), name="static")

app.include_router(pages.router)
app.include_router(auth_routes.router)
app.include_router(drive.router, prefix="/api")
app.include_router(sheets.router, prefix="/api")
app.include_router(health.router)


@app.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics collected by the application."""
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
