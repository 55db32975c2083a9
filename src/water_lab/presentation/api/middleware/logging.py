"""Request logging middleware that threads a correlation ID through each request."""

import logging
import time
from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ....infrastructure.logging import (
    clear_correlation_id,
    generate_correlation_id,
    get_logger,
    set_correlation_id
)

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Never written to logs
REDACTED_HEADERS = frozenset({"authorization", "cookie", "set-cookie", "x-api-key"})

QUIET_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"})


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestResponseLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request and one per response, tagged with a correlation ID.

    The caller's ``X-Correlation-ID`` is reused when present and echoed back
    on the response. Quiet paths still get the header but are not logged.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        max_body_size: int = 2048,
        quiet_paths: Optional[Iterable[str]] = None
    ):
        super().__init__(app)
        self.log_request_body = log_request_body
        self.max_body_size = max_body_size
        self.quiet_paths = frozenset(quiet_paths) if quiet_paths is not None else QUIET_PATHS

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        set_correlation_id(correlation_id)
        quiet = request.url.path in self.quiet_paths
        started = time.perf_counter()

        try:
            if not quiet:
                await self._log_request(request)
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"{request.method} {request.url.path} raised",
                extra={"method": request.method, "path": request.url.path, "elapsed_ms": self._elapsed(started)}
            )
            raise
        finally:
            clear_correlation_id()

        response.headers[CORRELATION_HEADER] = correlation_id
        if not quiet:
            elapsed_ms = self._elapsed(started)
            logger.log(
                _level_for(response.status_code),
                f"{request.method} {request.url.path} -> {response.status_code} in {elapsed_ms}ms",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "elapsed_ms": elapsed_ms,
                    "correlation_id_out": correlation_id
                }
            )
        return response

    async def _log_request(self, request: Request) -> None:
        extra = {
            "method": request.method,
            "path": request.url.path,
            "query": str(request.query_params) or None,
            "headers": {
                key: "[REDACTED]" if key.lower() in REDACTED_HEADERS else value
                for key, value in request.headers.items()
            },
            "client": request.client.host if request.client else None
        }

        if self.log_request_body and "json" in request.headers.get("content-type", ""):
            body = await request.body()
            if len(body) > self.max_body_size:
                extra["body"] = f"<{len(body)} bytes>"
            else:
                extra["body"] = body.decode("utf-8", errors="replace")

        logger.info(f"{request.method} {request.url.path}", extra=extra)

    @staticmethod
    def _elapsed(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 2)
