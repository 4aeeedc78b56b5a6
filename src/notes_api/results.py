from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class DegradedFallback:
    """
    Marker attached to a storage result that was served by the local backend
    because the remote backend failed.
    """

    operation: str
    reason: str


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class StorageResult(Generic[T]):
    """
    Value returned by a storage provider, optionally carrying the fallback marker.

    A result with `fallback=None` came from the provider's own medium.
    """

    value: T
    fallback: Optional[DegradedFallback] = None

    @property
    def degraded(self) -> bool:
        return self.fallback is not None

    def with_fallback(self, operation: str, reason: str) -> "StorageResult[T]":
        """Return a copy of this result marked as served by the fallback."""
        return StorageResult(self.value, DegradedFallback(operation=operation, reason=reason))
