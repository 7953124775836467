"""Database models package."""
from eventconnect.db.models.user import User
from eventconnect.db.models.event import Event, EventCategory
from eventconnect.db.models.rsvp import EventRsvp, RsvpStatus, CONFIRMED_STATUSES, ATTENDING_LIST_STATUSES
from eventconnect.db.models.chat import ChatMessage, MessageRead

__all__ = [
    "User", "Event", "EventCategory", "EventRsvp", "RsvpStatus",
    "CONFIRMED_STATUSES", "ATTENDING_LIST_STATUSES", "ChatMessage", "MessageRead",
]
