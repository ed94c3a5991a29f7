"""Enum types mirroring the database enums."""

from enum import Enum


class CandidateStatus(str, Enum):
    """Pipeline stage of a candidate."""
    pending = "pending"
    reviewed = "reviewed"
    interviewed = "interviewed"
    hired = "hired"
    rejected = "rejected"


class NotificationType(str, Enum):
    """Origin of a notification."""
    mention = "mention"
    note = "note"
    candidate = "candidate"
    system = "system"


class Recommendation(str, Enum):
    """Hiring recommendation produced by the AI summary."""
    strong_hire = "Strong Hire"
    hire = "Hire"
    maybe = "Maybe"
    no_hire = "No Hire"


class EventType(str, Enum):
    """Realtime event kinds pushed over the WebSocket."""
    connected = "connected"
    inbox_snapshot = "inbox_snapshot"
    new_note = "new_note"
    new_notification = "new_notification"
    candidate_created = "candidate_created"
    candidate_updated = "candidate_updated"
    candidate_deleted = "candidate_deleted"
    user_typing = "user_typing"
    user_stopped_typing = "user_stopped_typing"
    user_status_change = "user_status_change"
    error = "error"
