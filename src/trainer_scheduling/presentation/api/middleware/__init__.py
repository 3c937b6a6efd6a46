"""Middleware module for the scheduling API."""

from .logging import CORRELATION_HEADER, RequestResponseLoggingMiddleware

__all__ = [
    "CORRELATION_HEADER",
    "RequestResponseLoggingMiddleware",
]
