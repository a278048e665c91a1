"""Domain exceptions shared by the store, domain services and the HTTP layer."""

from typing import Any


class TunestreamError(Exception):
    """Base exception for Tunestream operations."""

    pass


class NotFoundError(TunestreamError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: Any, message: str = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity.capitalize()} not found")


class AccessDeniedError(TunestreamError):
    """Raised when the user may not read or change a resource."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class AuthenticationError(TunestreamError):
    """Raised when credentials are missing or wrong."""

    pass


class ValidationError(TunestreamError):
    """Raised when input breaks a domain rule."""

    pass


class ConflictError(TunestreamError):
    """Raised when a unique value (username, email) is already taken."""

    pass
