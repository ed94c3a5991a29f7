"""Pydantic models for the ``notifications`` table and inbox responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.models.common import Pagination
from app.models.enums import NotificationType


class NotificationCreate(BaseModel):
    """Payload for inserting a notification."""
    user_id: str
    type: NotificationType
    message: str
    content: str | None = None
    candidate_id: str | None = None
    candidate_name: str | None = None
    note_id: str | None = None
    from_user_id: str | None = None
    from_user_name: str | None = None
    read: bool = False
    created_at: datetime


class Notification(BaseModel):
    """Full notification record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: NotificationType
    message: str
    content: str | None = None
    candidate_id: str | None = None
    candidate_name: str | None = None
    note_id: str | None = None
    from_user_id: str | None = None
    from_user_name: str | None = None
    read: bool = False
    read_at: datetime | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: list[Notification] = []
    pagination: Pagination


class MarkReadRequest(BaseModel):
    read: bool = True


class UnreadCountResponse(BaseModel):
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int
    message: str


def notification_from_row(row: dict) -> Notification:
    """Build a ``Notification`` from a ``notifications`` row."""
    return Notification.model_validate({**row, "id": str(row["id"])})
