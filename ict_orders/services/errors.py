"""Domain errors raised by services and mapped to HTTP responses in ``main``."""

from fastapi import status


class ServiceError(Exception):
    """Base class for expected, user-facing service failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ServiceError):
    """Malformed or missing required input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ServiceError):
    """Missing, invalid or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(ServiceError):
    """Actor lacks permission for the operation or the entity scope."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, identifier: str) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}")


class ConflictError(ServiceError):
    """Entity was modified concurrently; the caller holds a stale version."""

    status_code = status.HTTP_409_CONFLICT


class StorageError(ServiceError):
    """Underlying persistence failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
