"""Middleware for the water lab API."""

from .logging import CORRELATION_HEADER, RequestResponseLoggingMiddleware

__all__ = [
    "CORRELATION_HEADER",
    "RequestResponseLoggingMiddleware"
]
