"""
Domain-level notes API used by every caller.

Each operation reads the whole collection from the selected provider, changes
it in memory and writes the whole collection back. Concurrent mutations are
last-write-wins.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional

from fastapi.concurrency import run_in_threadpool

from .codec import PATCHABLE_FIELDS
from .models import NoteEntity
from .repositories import Provider
from .results import DegradedFallback, StorageResult
from .utils import generate_id, now_ms

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"


def _sort_key(note: Mapping[str, Any]) -> int:
    return note.get("updatedAt") or 0


class NotesService:
    """Async notes API over a storage provider."""

    def __init__(
        self,
        provider: Provider,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = generate_id,
        storage_info: str = "",
    ) -> None:
        self._provider = provider
        self._clock = clock
        self._id_factory = id_factory
        self.storage_info = storage_info
        self.last_fallback: Optional[DegradedFallback] = None

    def _track(self, result: StorageResult[Any]) -> None:
        if result.fallback is not None and self.last_fallback is None:
            logger.warning(
                "Storage degraded: %s served from local storage (%s)",
                result.fallback.operation,
                result.fallback.reason,
            )
        self.last_fallback = result.fallback

    async def _load(self) -> List[NoteEntity]:
        result = await run_in_threadpool(self._provider.list)
        self._track(result)
        return list(result.value)

    async def _persist(self, notes: List[NoteEntity]) -> None:
        result = await run_in_threadpool(self._provider.save_all, notes)
        self._track(result)

    # PUBLIC_INTERFACE
    async def list(self) -> List[NoteEntity]:
        """Return all notes sorted by updatedAt, newest first (stable for ties)."""
        notes = await self._load()
        return sorted(notes, key=_sort_key, reverse=True)

    # PUBLIC_INTERFACE
    async def create(self, partial: Optional[Mapping[str, Any]] = None) -> NoteEntity:
        """Create a note with defaults applied, persist it and return it."""
        partial = partial or {}
        now = self._clock()
        note: NoteEntity = {
            "id": self._id_factory(),
            "title": partial.get("title") or DEFAULT_TITLE,
            "content": partial.get("content") or "",
            "createdAt": now,
            "updatedAt": now,
        }
        notes = await self._load()
        notes.insert(0, note)
        await self._persist(notes)
        return note

    # PUBLIC_INTERFACE
    async def update(self, note_id: str, patch: Mapping[str, Any]) -> Optional[NoteEntity]:
        """
        Apply a title/content patch to a note and persist it.
        Returns the updated note, or None if no note has this id.
        """
        notes = await self._load()
        idx = next((i for i, n in enumerate(notes) if n.get("id") == note_id), None)
        if idx is None:
            return None

        existing = notes[idx]
        updated: NoteEntity = dict(existing)  # type: ignore[assignment]
        for field in PATCHABLE_FIELDS:
            if patch.get(field) is not None:
                updated[field] = patch[field]  # type: ignore[literal-required]
        # Never move updatedAt backwards, even if the wall clock does.
        updated["updatedAt"] = max(self._clock(), existing.get("updatedAt") or 0)

        notes[idx] = updated
        await self._persist(notes)
        return updated

    # PUBLIC_INTERFACE
    async def delete(self, note_id: str) -> bool:
        """Delete a note by id. Returns True if something was removed."""
        notes = await self._load()
        remaining = [n for n in notes if n.get("id") != note_id]
        await self._persist(remaining)
        return len(remaining) != len(notes)

    # PUBLIC_INTERFACE
    async def get(self, note_id: str) -> Optional[NoteEntity]:
        """Return the note with this id, or None."""
        notes = await self._load()
        return next((n for n in notes if n.get("id") == note_id), None)

    # PUBLIC_INTERFACE
    async def search(self, query: Optional[str]) -> List[NoteEntity]:
        """
        Return the sorted notes whose title or content contains `query`
        (case-insensitive). A blank query returns every note.
        """
        q = (query or "").strip().casefold()
        notes = await self.list()
        if not q:
            return notes
        return [
            n
            for n in notes
            if q in (n.get("title") or "").casefold() or q in (n.get("content") or "").casefold()
        ]
