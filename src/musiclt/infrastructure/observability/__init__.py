"""Observability infrastructure for structured logging."""

from musiclt.infrastructure.observability.logging import (
    CompactExceptionFormatter,
    CorrelationIdFilter,
    CustomJsonFormatter,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)
from musiclt.infrastructure.observability.middleware import RequestLoggingMiddleware

__all__ = [
    "CompactExceptionFormatter",
    "CorrelationIdFilter",
    "CustomJsonFormatter",
    "RequestLoggingMiddleware",
    "configure_logging",
    "get_correlation_id",
    "set_correlation_id",
]
