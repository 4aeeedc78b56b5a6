from __future__ import annotations


class StorageError(Exception):
    """Base class for storage-layer errors."""


class RemoteUnavailableError(StorageError):
    """Raised when the remote client is not configured or failed to construct."""
