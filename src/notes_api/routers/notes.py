from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ..schemas import NoteCreate, NoteOut, NoteUpdate
from ..service import NotesService

router = APIRouter(
    prefix="/api/v1/notes",
    tags=["notes"],
)


def get_notes_service(request: Request) -> NotesService:
    """
    Dependency returning the application's NotesService.
    """
    return request.app.state.notes_service


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[NoteOut],
    summary="List Notes",
    description=(
        "List notes, newest first.\n\n"
        "Query parameters:\n"
        "- q: case-insensitive search over title and content; blank lists every note"
    ),
    responses={200: {"description": "List retrieved successfully"}},
)
async def list_notes(
    q: Optional[str] = Query(None, description="Search text for title/content"),
    service: NotesService = Depends(get_notes_service),
) -> List[NoteOut]:
    """
    List or search notes.
    """
    notes = await service.search(q)
    return [NoteOut(**n) for n in notes]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=NoteOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Note",
    description="Create a new note and return it. Title defaults to 'Untitled'.",
    responses={201: {"description": "Note created successfully"}},
)
async def create_note(
    payload: Optional[NoteCreate] = None,
    service: NotesService = Depends(get_notes_service),
) -> NoteOut:
    """
    Create a new note.
    """
    partial = payload.model_dump(exclude_none=True) if payload else {}
    created = await service.create(partial)
    return NoteOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "/{note_id}",
    response_model=NoteOut,
    summary="Get Note",
    description="Get a single note by ID.",
    responses={
        200: {"description": "Note found"},
        404: {"description": "Note not found"},
    },
)
async def get_note(note_id: str, service: NotesService = Depends(get_notes_service)) -> NoteOut:
    """
    Retrieve a single note by its ID.
    """
    note = await service.get(note_id)
    if note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
    return NoteOut(**note)


# PUBLIC_INTERFACE
@router.patch(
    "/{note_id}",
    response_model=NoteOut,
    summary="Update Note",
    description="Update the title and/or content of a note.",
    responses={
        200: {"description": "Note updated"},
        404: {"description": "Note not found"},
    },
)
async def update_note(
    note_id: str,
    payload: NoteUpdate,
    service: NotesService = Depends(get_notes_service),
) -> NoteOut:
    """
    Partial update of a note.
    """
    updated = await service.update(note_id, payload.model_dump(exclude_none=True))
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
    return NoteOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Note",
    description="Delete a note by ID.",
    responses={
        204: {"description": "Note deleted"},
        404: {"description": "Note not found"},
    },
)
async def delete_note(note_id: str, service: NotesService = Depends(get_notes_service)) -> None:
    """
    Delete a note. Returns 204 on success, 404 if not found.
    """
    removed = await service.delete(note_id)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
    return None
