from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Enum, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from eventconnect.db.session import Base, utcnow
import enum


class RsvpStatus(str, enum.Enum):
    going = "going"
    maybe = "maybe"
    not_going = "not_going"
    attending = "attending"


# "going" and "attending" both mean confirmed attendance.
CONFIRMED_STATUSES = (RsvpStatus.going, RsvpStatus.attending)

# Statuses that put an event on a user's "attending" list.
ATTENDING_LIST_STATUSES = (RsvpStatus.going, RsvpStatus.attending, RsvpStatus.maybe)


class EventRsvp(Base):
    __tablename__ = "event_rsvps"
    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    status = Column(Enum(RsvpStatus, native_enum=False, length=20), nullable=False, default=RsvpStatus.going)
    # Set when the user leaves the event chat; any new RSVP clears it
    has_left_chat = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User")
    event = relationship("Event")

    # One row per (event, user); upserts resolve against this constraint
    __table_args__ = (
        UniqueConstraint('event_id', 'user_id', name='uq_event_rsvp_event_user'),
        Index('idx_rsvp_user', 'user_id'),
        Index('idx_rsvp_event', 'event_id'),
    )
