"""
Exception classes for mdtask-sync.
"""

from typing import Optional


class MdTaskSyncError(Exception):
    """Base exception for all mdtask-sync errors."""
    pass


class ConfigurationError(MdTaskSyncError):
    """Raised when configuration is invalid or missing."""
    pass


class StoreError(MdTaskSyncError):
    """Raised when the local task file cannot be read or written."""
    pass


class MetadataError(MdTaskSyncError):
    """Raised when the sync metadata file is corrupt or cannot be written."""
    pass


class SyncError(MdTaskSyncError):
    """Raised when a reconciliation action cannot be applied."""
    pass


class RemoteError(MdTaskSyncError):
    """Base exception for remote service errors."""
    pass


class AuthenticationError(RemoteError):
    """Raised when the remote service rejects the credential."""
    pass


class RateLimitError(RemoteError):
    """Raised when the remote service asks us to slow down."""

    def __init__(self, retry_after: int = 60, message: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(message or f"Rate limit exceeded, retry after {retry_after} seconds")


class RemoteNotFoundError(RemoteError):
    """Raised when a remote item does not exist."""

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"Not found: {resource}")


class RemoteAPIError(RemoteError):
    """Raised for any other non-success response."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        self.message = message
        super().__init__(f"API error: {status} - {message}")


class RemoteConnectionError(RemoteError):
    """Raised when the remote service cannot be reached."""
    pass
