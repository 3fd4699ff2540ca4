"""Access logging middleware using structlog with OTEL trace correlation."""

import time
from collections.abc import Iterable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = structlog.get_logger(__name__)

HTTP_SERVER_ERROR = 500
HTTP_CLIENT_ERROR = 400


class AccessLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log one structured ``http_request`` event per request.

    Server errors are logged at error level and client errors at warning
    level. Probe paths (``quiet_paths``) are logged at debug level so that
    health checks do not flood the logs.
    Each request starts with an empty structlog context.

    Log fields:
        - method, path, status_code
        - duration_ms: Request duration in milliseconds
        - client_ip, plus forwarded_for when an X-Forwarded-For header is present
        - trace_id/span_id: Added by the OTEL log processor
    """

    def __init__(self, app: ASGIApp, quiet_paths: Iterable[str] = ()) -> None:
        super().__init__(app)
        self.quiet_paths = frozenset(quiet_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request and log access information."""
        structlog.contextvars.clear_contextvars()
        start_time = time.perf_counter()

        client_ip = request.client.host if request.client else "unknown"
        forwarded_for = None
        if xff_header := request.headers.get("x-forwarded-for"):
            # First hop only; trust depends on the proxy in front of us
            forwarded_for = xff_header.split(",")[0].strip()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_kwargs: dict[str, str | int | float] = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "client_ip": client_ip,
        }
        if forwarded_for:
            log_kwargs["forwarded_for"] = forwarded_for

        if response.status_code >= HTTP_SERVER_ERROR:
            logger.error("http_request", **log_kwargs)
        elif response.status_code >= HTTP_CLIENT_ERROR:
            logger.warning("http_request", **log_kwargs)
        elif request.url.path in self.quiet_paths:
            logger.debug("http_request", **log_kwargs)
        else:
            logger.info("http_request", **log_kwargs)

        return response
