"""Pydantic models for the ``notes`` table (candidate message threads)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.common import Pagination


class NoteCreate(BaseModel):
    """Payload for posting a note on a candidate."""
    candidate_id: str = Field(min_length=1)
    content: str = Field(min_length=1)


class Note(BaseModel):
    """A stored note.  ``mentions`` holds user IDs resolved at write time."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    candidate_id: str
    content: str
    author_id: str
    author_name: str
    mentions: list[str] = []
    created_at: datetime


class NoteListResponse(BaseModel):
    notes: list[Note] = []
    pagination: Pagination
