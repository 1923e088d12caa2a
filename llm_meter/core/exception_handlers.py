"""Global exception handlers for consistent error responses.

Every failure, whether a domain error, a framework error (bad body, unknown
method) or an unexpected exception, is returned as

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": ...}}

Status mapping:
- ValidationAppError / InvalidTierError / RequestValidationError → 400
- AuthenticationAppError → 401 with ``WWW-Authenticate: Basic``
- MethodNotAllowedAppError / Starlette 405 → 405 with ``Allow``
- anything else → 500 (no internals leaked)
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from llm_meter.core.errors import (
    AppError,
    AuthenticationAppError,
    MethodNotAllowedAppError,
)
from llm_meter.core.logging import get_request_id

logger = logging.getLogger(__name__)

BASIC_CHALLENGE = 'Basic realm="llm-meter"'

_HTTP_STATUS_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    415: "unsupported_media_type",
}

_METHOD_ORDER = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def allowed_methods(request: Request) -> list[str]:
    """Methods served by the documented routes whose path matches the request.

    Hidden routes (the explicit 405 responders) are skipped so their
    rejected verbs don't end up in ``Allow``.
    """
    methods: set[str] = set()
    for route in request.app.router.routes:
        if not isinstance(route, APIRoute) or not route.include_in_schema:
            continue
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            methods.update(route.methods)
    ordered = [m for m in _METHOD_ORDER if m in methods]
    return ordered + sorted(methods.difference(_METHOD_ORDER))


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    error_content: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error_content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map domain errors to HTTP responses.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the status matching the error class.
    """
    status_code = 400
    headers: dict[str, str] | None = None
    if isinstance(exc, AuthenticationAppError):
        status_code = 401
        headers = {"WWW-Authenticate": BASIC_CHALLENGE}
    elif isinstance(exc, MethodNotAllowedAppError):
        status_code = 405
        allowed = (exc.details or {}).get("allowed_methods")
        if allowed:
            headers = {"Allow": ", ".join(allowed)}

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return _error_response(status_code, exc.code, exc.message, exc.details, headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report unparseable or mis-shaped request bodies as malformed input (400)."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]

    logger.warning(
        "request_validation_failed",
        extra={
            "error_count": len(errors),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return _error_response(
        400,
        "malformed_input",
        "Request body is not a JSON object of tier names to non-negative integers",
        {"errors": errors},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors (404, 405, bad auth header) in the error envelope."""
    code = _HTTP_STATUS_CODES.get(exc.status_code, "http_error")
    headers = dict(exc.headers) if exc.headers else None
    if exc.status_code == 401:
        headers = {**(headers or {}), "WWW-Authenticate": BASIC_CHALLENGE}
        message = "Unauthorized"
    elif exc.status_code == 405:
        # Starlette only reports the first partially matching route's methods
        allowed = allowed_methods(request)
        if allowed:
            headers = {**(headers or {}), "Allow": ", ".join(allowed)}
        message = "Method not allowed"
    else:
        message = str(exc.detail)

    logger.info(
        "http_error_handled",
        extra={
            "error_code": code,
            "status_code": exc.status_code,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return _error_response(exc.status_code, code, message, headers=headers)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for unexpected errors, including response encoding failures."""
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return _error_response(
        500,
        "internal_server_error",
        "An unexpected error occurred. Please try again later.",
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers on the app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
