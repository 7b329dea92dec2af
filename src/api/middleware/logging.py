"""Request logging middleware."""

import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.commons.telemetry.logger import get_logger, set_correlation_id

logger = get_logger(__name__)

_PROBE_PREFIX = "/health"
_SLOW_REQUEST_MS = 5000.0


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses.

    The request id doubles as the logging correlation id, so background
    verification started by an upload logs under the same id. Health probes
    are logged at DEBUG.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        """Process request with logging.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler in chain.

        Returns:
            HTTP response.
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        set_correlation_id(request_id)

        path = request.url.path
        level = logging.DEBUG if path.startswith(_PROBE_PREFIX) else logging.INFO

        start_time = time.perf_counter()
        logger.log(
            level,
            "Request started",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "user_id": request.headers.get("X-User-Id"),
                "content_length": request.headers.get("Content-Length"),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        response: Response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        if duration_ms > _SLOW_REQUEST_MS:
            level = logging.WARNING
        logger.log(
            level,
            "Request completed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        response.headers["X-Request-ID"] = request_id
        return response
