"""HTTP middleware for request correlation.

Every request/response pair carries a request id: the incoming header value
when present, otherwise a fresh UUID. The id is bound to the logging context
for the duration of the call and echoed back with the request duration.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from llm_meter.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Bind a request id to the call and report it with the response.

    The header name comes from the application's log settings
    (``LOG_REQUEST_ID_HEADER``, ``X-Request-ID`` by default).

    Side Effects:
        - Sets request_id in contextvars for the lifetime of the call
        - Adds the request id header and ``X-Request-Duration-ms`` to the
          response
        - Logs one ``request.completed`` line per call
    """

    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "request.completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
