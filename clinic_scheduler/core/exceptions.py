"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Scheduling conflict exception.

    Carries the conflict that was surfaced to the caller, when there is one.
    """

    def __init__(self, message: str = "Conflict", conflict: Any | None = None):
        """Initialize with 409 status code."""
        self.conflict = conflict
        super().__init__(message, status_code=409)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error", errors: list[str] | None = None):
        """Initialize with 422 status code."""
        self.errors = errors or [message]
        super().__init__(message, status_code=422)


class UnsupportedChannelError(AppException):
    """Raised when a notification is requested on a channel with no route."""

    def __init__(self, channel: str):
        """Initialize with 400 status code."""
        self.channel = channel
        super().__init__(f"Unsupported notification channel: {channel}", status_code=400)


class PersistenceException(AppException):
    """Storage failure, propagated unchanged to the caller."""

    def __init__(self, message: str = "Storage operation failed"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)


class ChannelDeliveryError(Exception):
    """Non-fatal delivery failure on a single notification channel."""

    def __init__(self, channel: str, message: str):
        """Initialize with the failing channel and reason."""
        self.channel = channel
        self.message = message
        super().__init__(f"{channel}: {message}")


class SweepInProgressException(ConflictException):
    """Another worker holds the reminder sweep lock."""

    def __init__(self, message: str = "A reminder sweep is already running"):
        """Initialize with 409 status code."""
        super().__init__(message)
