"""Request correlation for the rate limit API.

Each request gets an id (taken from the configured header, normally
``X-Request-ID``, or generated). While the request is served the id sits in a
context variable, so ``rate_limit.*`` and ``app_error_handled`` events carry
it. The id and the elapsed time are echoed back as response headers, and one
``http.request_completed`` event is logged per request.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from request_guard.core.config import settings
from request_guard.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

DURATION_HEADER = "X-Request-Duration-ms"


async def request_id_middleware(request: Request, call_next) -> Response:
    """Bind a request id for the duration of the request.

    Registered by ``create_app`` with ``app.middleware("http")``.
    """

    header = settings.log.request_id_header
    request_id = request.headers.get(header) or uuid.uuid4().hex
    started = time.perf_counter()

    set_request_id(request_id)
    try:
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "http.request_completed",
            extra={
                "method": request.method,
                "route": request.url.path,
                "status": response.status_code,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header] = request_id
    response.headers.setdefault(DURATION_HEADER, f"{elapsed_ms:.2f}")
    return response
