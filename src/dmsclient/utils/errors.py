"""Typed error taxonomy for DMS client operations."""

from typing import Optional


class DMSError(Exception):
    """Base error for all DMS client failures.

    Operation-level errors are delivered through the error slot of a result,
    never raised out of a session operation.
    """

    is_retryable: bool = False

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        """Initialize error.

        Args:
            message: Primary error message
            details: Optional extra context (URL, path, server body)
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class MonitorInitError(DMSError):
    """Reachability monitor could not be created; session creation fails."""


class NetworkError(DMSError):
    """Transport failure, timeout, or truncated transfer. Caller may retry."""

    is_retryable = True


class ServiceError(DMSError):
    """DMS rejected the request with a non-success HTTP status."""

    def __init__(
        self, message: str, status_code: int, details: Optional[str] = None
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class NotFoundError(ServiceError):
    """Requested firmware version does not exist on the service."""

    def __init__(self, version: str, details: Optional[str] = None) -> None:
        super().__init__(f"Firmware version not found: {version}", 404, details)
        self.version = version


class ParseError(DMSError):
    """Service response could not be parsed. Not retryable until fixed server-side."""


class StorageError(DMSError):
    """Local write failure while materializing a download."""
