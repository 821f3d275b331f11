"""
Error types raised by batchjobs.

Local argument problems are raised before any request is sent. Anything the
Batch service rejects is raised as a RemoteError subclass carrying the
service's own code and message, unchanged.
"""

from typing import Optional


class BatchError(Exception):
    """Base class for every error raised by this package."""
    pass


class ConfigurationError(BatchError):
    """Raised when account settings are missing or unusable."""
    pass


class InvalidArgumentError(BatchError, ValueError):
    """Raised when a required argument is missing or blank."""

    def __init__(self, argument: str, reason: str = "must not be None"):
        self.argument = argument
        self.reason = reason
        super().__init__(f"Invalid argument '{argument}': {reason}")


class RemoteError(BatchError):
    """The Batch service answered with a non-success status."""

    def __init__(
        self,
        status_code: int,
        code: Optional[str] = None,
        message: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.request_id = request_id
        detail = f"{code}: {message}" if code else (message or "")
        super().__init__(f"Batch service error ({status_code}) {detail}".rstrip())


class RemoteQueryError(RemoteError):
    """A get or list request was rejected (bad filter, unknown job or schedule)."""
    pass


class RemoteCommitError(RemoteError):
    """Adding a job was rejected (duplicate id, quota, validation)."""
    pass
