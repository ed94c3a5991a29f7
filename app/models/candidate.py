"""Pydantic models for the ``candidates`` table.

Candidates form a shared pipeline: every authenticated user can read and
write every record.  ``created_by`` records the creator only.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.common import Pagination
from app.models.enums import CandidateStatus
from app.models.user import Email


class CandidateCreate(BaseModel):
    """Payload for creating a candidate (insert)."""
    name: str = Field(min_length=2)
    email: Email
    position: str | None = None
    phone: str | None = None
    location: str | None = None
    status: CandidateStatus = CandidateStatus.pending


class CandidateUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""
    name: str | None = Field(default=None, min_length=2)
    email: Email | None = None
    position: str | None = None
    phone: str | None = None
    location: str | None = None
    status: CandidateStatus | None = None


class Candidate(BaseModel):
    """Full candidate record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    position: str | None = None
    phone: str | None = None
    location: str | None = None
    status: CandidateStatus = CandidateStatus.pending
    created_by: str
    created_at: datetime
    updated_at: datetime | None = None


class CandidateListResponse(BaseModel):
    candidates: list[Candidate] = []
    pagination: Pagination
