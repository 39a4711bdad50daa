"""Custom exceptions for repo_storage."""

from typing import Dict, Optional


class StorageError(Exception):
    """Base exception for storage errors."""

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidPathKind(StorageError, ValueError):
    """Raised when a path is absolute where a relative one is expected, or vice versa."""
    pass


class NotFoundError(StorageError, FileNotFoundError):
    """Raised when a file is missing locally and (if applicable) in the remote store."""
    pass


class PreconditionError(StorageError):
    """Raised when the local file a remote-backed write needs does not exist."""
    pass


class TransferError(StorageError, IOError):
    """Raised when an upload or download fails, times out, or is cancelled."""
    pass
