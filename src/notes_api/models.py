from __future__ import annotations

from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class NoteEntity(TypedDict):
    """
    Canonical in-memory shape of a note, as used by the service layer and the
    local storage slot.

    Fields:
    - id: Opaque unique string, assigned at creation and never changed
    - title: Note title ("Untitled" when created without one)
    - content: Note body text
    - createdAt: Epoch milliseconds of creation; None only when a remote row lacks it
    - updatedAt: Epoch milliseconds of the last successful mutation
    """

    id: str
    title: str
    content: str
    createdAt: Optional[int]
    updatedAt: Optional[int]


# PUBLIC_INTERFACE
class RemoteRow(TypedDict, total=False):
    """
    Row shape of the remote 'notes' table: snake_case keys and ISO-8601
    timestamp strings.
    """

    id: str
    title: str
    content: str
    created_at: Optional[str]
    updated_at: Optional[str]
