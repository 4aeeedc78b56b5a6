from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# PUBLIC_INTERFACE
class NoteCreate(BaseModel):
    """
    Schema for creating a new note. Both fields are optional; an empty title
    becomes "Untitled" and missing content becomes an empty string.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Shopping",
                "content": "Milk, eggs, bread",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Note title")
    content: Optional[str] = Field(default=None, description="Note body text")


# PUBLIC_INTERFACE
class NoteUpdate(BaseModel):
    """
    Schema for updating an existing note.
    Only provided fields are changed; null values are ignored.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Shopping list",
                "content": "Milk, eggs, bread, coffee",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="New note title")
    content: Optional[str] = Field(default=None, description="New note body text")


# PUBLIC_INTERFACE
class NoteOut(BaseModel):
    """
    Schema returned by the API for a note. Timestamps are epoch milliseconds.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "3f1c2a9e-6a53-4d0e-9a55-0c6c0d4b8f21",
                "title": "Shopping",
                "content": "Milk, eggs, bread",
                "createdAt": 1737800130123,
                "updatedAt": 1737886800000,
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the note")
    title: str = Field(..., description="Note title")
    content: str = Field(default="", description="Note body text")
    createdAt: Optional[int] = Field(default=None, description="Creation time (epoch ms)")
    updatedAt: Optional[int] = Field(default=None, description="Last update time (epoch ms)")


# PUBLIC_INTERFACE
class HealthOut(BaseModel):
    """Health and storage diagnostics."""

    message: str = Field(..., description="Service health status")
    storage: str = Field(..., description="Active storage mode")
    degraded: bool = Field(..., description="True if the last storage call was served by the local fallback")
