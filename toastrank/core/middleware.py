"""Request middleware: request ids, client address and access logging."""

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from toastrank.core.context import (
    clear_context,
    set_client_ip,
    set_request_id,
    set_trace_id,
)


logger = structlog.get_logger(__name__)


# Health probes and static images would drown the access log
DEFAULT_QUIET_PREFIXES = ("/health", "/uploads/", "/banners/")


def client_address(request: Request) -> str | None:
    """First hop of X-Forwarded-For, else X-Real-IP, else the peer."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.headers.get("x-real-ip") or (
        request.client.host if request.client else None
    )


def trace_from_traceparent(traceparent: str | None) -> str | None:
    """Trace id of a W3C ``traceparent`` header (version-trace-parent-flags)."""
    if not traceparent:
        return None
    parts = traceparent.split("-")
    return parts[1] if len(parts) >= 2 else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request id and client address to every log line of a request.

    The id comes from ``X-Request-ID`` when the caller sends one and is
    echoed back on the response. Context is cleared when the response is
    ready; on an unhandled error it is left bound for the app-level
    catch-all handler, which clears it after logging.
    """

    REQUEST_ID_HEADER = "X-Request-ID"
    TRACE_ID_HEADER = "X-Trace-ID"

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.quiet_prefixes = tuple(exclude_paths or DEFAULT_QUIET_PREFIXES)

    def _is_quiet(self, path: str) -> bool:
        return path.startswith(self.quiet_prefixes)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        started = time.perf_counter()

        request_id = set_request_id(request.headers.get(self.REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_client_ip(client_address(request))

        trace_id = request.headers.get(self.TRACE_ID_HEADER) or trace_from_traceparent(
            request.headers.get("traceparent")
        )
        if trace_id:
            set_trace_id(trace_id)

        log_access = self.log_requests and not self._is_quiet(request.url.path)
        if log_access:
            logger.info(
                "request_started",
                method=request.method,
                path=request.url.path,
                content_length=request.headers.get("content-length"),
            )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        try:
            if log_access:
                # 4xx here are mostly rejections (cooldown, bad type); only 5xx warn
                log = logger.warning if response.status_code >= 500 else logger.info
                log(
                    "request_completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )
            response.headers[self.REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_context()


__all__ = ["RequestContextMiddleware", "client_address"]
