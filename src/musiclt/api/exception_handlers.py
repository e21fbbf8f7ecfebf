"""Custom exception handlers for FastAPI application.

Domain exceptions carry no HTTP knowledge; this module is the one place that decides
which status code each of them becomes:

    EntityNotFoundException        404
    ValidationException/ValueError 422
    ConcurrentModificationError    409
    AuthenticationError            401 (+ WWW-Authenticate)
    AuthorizationError             403
    ConfigurationError             503
    ExternalServiceError           502
    OperationalError (locked/busy) 503 with Retry-After, other DB errors 500

Every error body has the same shape: {"detail": ...}.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from musiclt.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConcurrentModificationError,
    ConfigurationError,
    DomainException,
    EntityNotFoundException,
    ExternalServiceError,
    ValidationException,
)
from musiclt.infrastructure.persistence.retry import is_lock_error

logger = logging.getLogger(__name__)

# starlette renamed HTTP_422_UNPROCESSABLE_ENTITY; the number is what matters
HTTP_422 = 422
DB_BUSY_RETRY_AFTER = 3

Handler = Callable[[Request, Any], Awaitable[JSONResponse]]


@dataclass(frozen=True)
class _Mapping:
    status_code: int
    log_level: int
    headers: dict[str, str] = field(default_factory=dict)


# Hey future me - add new domain exceptions HERE. Client mistakes log at INFO/WARNING,
# things an operator has to fix (missing config, upstream down) log at ERROR.
DOMAIN_STATUS: dict[type[DomainException], _Mapping] = {
    EntityNotFoundException: _Mapping(status.HTTP_404_NOT_FOUND, logging.INFO),
    ValidationException: _Mapping(HTTP_422, logging.WARNING),
    # Only reaches the client after ArtistService retried relations.max_attempts times
    ConcurrentModificationError: _Mapping(status.HTTP_409_CONFLICT, logging.WARNING),
    AuthenticationError: _Mapping(
        status.HTTP_401_UNAUTHORIZED,
        logging.WARNING,
        headers={"WWW-Authenticate": "Bearer"},
    ),
    AuthorizationError: _Mapping(status.HTTP_403_FORBIDDEN, logging.WARNING),
    ConfigurationError: _Mapping(status.HTTP_503_SERVICE_UNAVAILABLE, logging.ERROR),
    ExternalServiceError: _Mapping(status.HTTP_502_BAD_GATEWAY, logging.ERROR),
}


def _domain_handler(mapping: _Mapping) -> Handler:
    async def handler(request: Request, exc: DomainException) -> JSONResponse:
        logger.log(
            mapping.log_level,
            "%s at %s: %s",
            type(exc).__name__,
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
        return JSONResponse(
            status_code=mapping.status_code,
            content={"detail": exc.message},
            headers=mapping.headers or None,
        )

    return handler


# Pydantic's exc.errors() can include the raw request body as bytes (and ctx can hold the
# original exception); neither is JSON-serializable.
def _jsonable(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_jsonable(item) for item in value]
    if isinstance(value, Exception):
        return str(value)
    return value


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request body or query: 422 with pydantic's error list."""
    errors = _jsonable(list(exc.errors()))
    logger.warning("Request validation error at %s: %s", request.url.path, errors)
    return JSONResponse(status_code=HTTP_422, content={"detail": errors})


async def _value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Entity __post_init__ checks (empty name, month 13, ...) raise ValueError."""
    logger.warning("Invalid value at %s: %s", request.url.path, exc)
    return JSONResponse(status_code=HTTP_422, content={"detail": str(exc)})


async def _operational_error_handler(
    request: Request, exc: OperationalError
) -> JSONResponse:
    """Locked SQLite is temporary (503 + Retry-After); anything else is a 500."""
    if is_lock_error(exc):
        logger.warning("Database busy at %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Database is busy, please retry"},
            headers={"Retry-After": str(DB_BUSY_RETRY_AFTER)},
        )

    logger.error("Database error at %s: %s", request.url.path, str(exc)[:500])
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Database error occurred. Please try again."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain, validation and database exceptions.

    Args:
        app: FastAPI application instance
    """
    for exc_class, mapping in DOMAIN_STATUS.items():
        app.add_exception_handler(exc_class, _domain_handler(mapping))

    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(ValueError, _value_error_handler)
    app.add_exception_handler(OperationalError, _operational_error_handler)
