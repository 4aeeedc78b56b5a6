from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from .kv_store import JsonFileSlotStore
from .models import NoteEntity
from .results import StorageResult
from .settings import Settings

if TYPE_CHECKING:
    from .db import RemoteClient

logger = logging.getLogger(__name__)

LOCAL_SLOT_KEY = "notes:data"

STORAGE_MODE_REMOTE = "Remote Database"
STORAGE_MODE_LOCAL = "Local Storage"


# PUBLIC_INTERFACE
class Provider(ABC):
    """Abstract contract for note storage backends (one persistence medium each)."""

    @abstractmethod
    def list(self) -> StorageResult[List[NoteEntity]]:
        """Return every stored note in the medium's native order."""

    @abstractmethod
    def save_all(self, notes: Sequence[NoteEntity]) -> StorageResult[bool]:
        """Replace the stored collection with `notes`."""


def _timestamp_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _text_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _coerce_note(item: Any) -> Optional[NoteEntity]:
    """Map one stored slot entry to a note; entries without a string id are dropped."""
    if not isinstance(item, dict) or not isinstance(item.get("id"), str):
        return None
    return {
        "id": item["id"],
        "title": _text_or_empty(item.get("title")),
        "content": _text_or_empty(item.get("content")),
        "createdAt": _timestamp_or_none(item.get("createdAt")),
        "updatedAt": _timestamp_or_none(item.get("updatedAt")),
    }


class LocalProvider(Provider):
    """
    Stores the whole collection as one JSON array in a persistent key-value slot.
    """

    def __init__(self, store: JsonFileSlotStore, key: str = LOCAL_SLOT_KEY) -> None:
        self._store = store
        self._key = key

    def list(self) -> StorageResult[List[NoteEntity]]:
        try:
            raw = self._store.get(self._key)
            if not raw:
                return StorageResult([])
            data = json.loads(raw)
        except ValueError:
            # Corrupt or foreign slot content reads as an empty collection
            return StorageResult([])
        if not isinstance(data, list):
            return StorageResult([])
        notes = [_coerce_note(n) for n in data]
        return StorageResult([n for n in notes if n is not None])

    def save_all(self, notes: Sequence[NoteEntity]) -> StorageResult[bool]:
        self._store.set(self._key, json.dumps(list(notes), ensure_ascii=False))
        return StorageResult(True)


# PUBLIC_INTERFACE
def get_storage_info(settings: Settings) -> str:
    """Return a short descriptor of the active storage mode, for display only."""
    return STORAGE_MODE_REMOTE if settings.remote_configured else STORAGE_MODE_LOCAL


# PUBLIC_INTERFACE
def select_provider(
    settings: Settings,
    local: LocalProvider,
    client: Optional["RemoteClient"] = None,
) -> Provider:
    """
    Choose the storage provider from configuration presence.
    - remote url and key both set: RemoteProvider, falling back to `local`
    - otherwise: `local`
    """
    if not settings.remote_configured:
        return local

    from .db import RemoteClient, RemoteProvider

    if client is None:
        client = RemoteClient(settings.remote_url or "", settings.remote_key or "")
    return RemoteProvider(client, fallback=local)


class StorageContext:
    """
    Owns the storage objects for one application instance: the local slot store,
    the local provider, the remote client handle and the selected provider.

    The provider is selected once, at construction.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.store = JsonFileSlotStore(Path(settings.data_dir))
        self.local = LocalProvider(self.store)
        self.remote_client: Optional["RemoteClient"] = None
        if settings.remote_configured:
            from .db import RemoteClient

            self.remote_client = RemoteClient(settings.remote_url or "", settings.remote_key or "")
        self.provider = select_provider(settings, self.local, self.remote_client)
        self.storage_info = get_storage_info(settings)
        logger.info("Storage provider selected: %s", self.storage_info)

    def close(self) -> None:
        if self.remote_client is not None:
            self.remote_client.dispose()
