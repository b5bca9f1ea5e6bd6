"""
Custom exceptions for consolesync.

Provides a hierarchy of exceptions for the data synchronization layer.
``ApiError`` is the only error type that crosses the request executor boundary.
"""

from typing import Any, Dict, Optional


class ConsoleSyncError(Exception):
    """Base exception for all consolesync errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(ConsoleSyncError):
    """Raised when there are configuration issues."""

    pass


class ApiError(ConsoleSyncError):
    """
    Uniform error shape for every failed remote call.

    Produced for non-2xx responses, network failures and malformed responses.
    ``status`` is None when no HTTP response was received.
    """

    def __init__(
        self,
        message: str = "Unknown error",
        status: Optional[int] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message, details=details)
        self.status = status

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    def to_dict(self) -> Dict[str, Any]:
        """Export the error as the ``{status, message, details}`` mapping."""
        return {"status": self.status, "message": self.message, "details": self.details}

    def __repr__(self) -> str:
        return f"ApiError(status={self.status!r}, message={self.message!r})"


class AttachmentUploadError(ConsoleSyncError):
    """A single attachment could not be uploaded."""

    def __init__(self, filename: str, message: str, **kwargs):
        super().__init__(f"{filename}: {message}", **kwargs)
        self.filename = filename


class ValidationError(ConsoleSyncError):
    """Data validation errors."""

    pass
