"""Request logging middleware.

Each request gets an id (echoed back as ``X-Request-ID``), and its start,
end, status and duration are logged. Paths go through ``filter_pii`` so a
card number typed into a URL never reaches the log.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import filter_pii

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all HTTP requests with PII filtering."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        context = {
            "request_id": request_id,
            "method": request.method,
            "path": filter_pii(request.url.path),
            "client_ip": request.client.host if request.client else None,
        }
        logger.info("Request started", extra=context)

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "Request failed",
                extra={**context, "duration_ms": int((time.perf_counter() - start_time) * 1000)},
            )
            raise

        # The principal dependency stores the user once authentication succeeded.
        user = getattr(request.state, "user", None)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "Request completed",
            extra={
                **context,
                "user_id": getattr(user, "id", None),
                "status_code": response.status_code,
                "duration_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return response
