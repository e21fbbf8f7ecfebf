"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so handlers can read it without
    # parsing str(exception). Don't raise this directly, use a specific subclass.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found.

    HTTP Status: 404
    """

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationException(DomainException):
    """Raised when entity validation fails.

    HTTP Status: 422

    Example:
        raise ValidationException("Album references unknown track 42")
    """

    pass


class ConcurrentModificationError(DomainException):
    """Raised when a row changed between our read and our write.

    Hey future me - this is the optimistic-concurrency signal! The artist store checks
    each row's version on save. If somebody else saved the same artist in between, the
    whole unit of work is rolled back and this is raised. ArtistService catches it and
    retries from a fresh snapshot; only when retries are exhausted does it reach the API.

    HTTP Status: 409
    """

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            f"{entity_type} with id {entity_id} was modified concurrently"
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class AuthenticationError(DomainException):
    """Caller is not authenticated.

    HTTP Status: 401
    """

    pass


class AuthorizationError(DomainException):
    """Caller is authenticated but lacks the required role.

    HTTP Status: 403
    """

    pass


class ConfigurationError(DomainException):
    """Required configuration is missing or invalid.

    HTTP Status: 503

    Example:
        raise ConfigurationError("Translation API key not configured")
    """

    pass


class ExternalServiceError(DomainException):
    """An external service returned an error.

    HTTP Status: 502
    """

    pass


__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ConcurrentModificationError",
    "ConfigurationError",
    "DomainException",
    "EntityNotFoundException",
    "ExternalServiceError",
    "ValidationException",
]
