from datetime import date as date_type, datetime, time as time_type, timezone
from zoneinfo import ZoneInfo
from sqlalchemy import (
    Column, Integer, String, Text, Date, Time, DateTime, Numeric, Boolean,
    ForeignKey, Enum, Index, CheckConstraint,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship
from eventconnect.db.session import Base, utcnow
import enum


class EventCategory(str, enum.Enum):
    """Closed set of feed categories. Stored and matched verbatim."""
    Music = "Music"
    Sports = "Sports"
    Arts = "Arts"
    Food = "Food"
    Tech = "Tech"
    Business = "Business"
    Education = "Education"
    Health = "Health"
    Entertainment = "Entertainment"
    Community = "Community"
    Outdoor = "Outdoor"
    Family = "Family"
    Lifestyle = "Lifestyle"


def wall_clock_to_utc(day: date_type, at: time_type, zone: str) -> datetime:
    """Resolve an organizer-local date and time in `zone` to a naive UTC instant."""
    local = datetime.combine(day, at).replace(tzinfo=ZoneInfo(zone))
    return local.astimezone(timezone.utc).replace(tzinfo=None)


class Event(Base):
    __tablename__ = "events"
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(Enum(EventCategory, native_enum=False, length=50), nullable=False)
    sub_category = Column(String(100), nullable=True)

    # Wall-clock date and time as the organizer entered them, in `timezone`.
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    timezone = Column(String(64), nullable=False, default="UTC")
    starts_at = Column(DateTime, nullable=False)

    location = Column(String(255), nullable=False)
    latitude = Column(Numeric(10, 8), nullable=True)
    longitude = Column(Numeric(11, 8), nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    image_url = Column(String(1024), nullable=True)
    organizer_id = Column(String(255), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    capacity = Column(Integer, nullable=True)

    parking_info = Column(Text, nullable=True)
    meeting_point = Column(Text, nullable=True)
    duration = Column(String(100), nullable=True)
    what_to_bring = Column(Text, nullable=True)
    special_notes = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)
    contact_info = Column(Text, nullable=True)
    cancellation_policy = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    # The organizer has no RSVP row, so their chat membership lives here
    organizer_left_chat = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    organizer = relationship("User")

    __table_args__ = (
        Index('idx_event_starts_at', 'starts_at'),
        Index('idx_event_organizer', 'organizer_id'),
        Index('idx_event_created_at', 'created_at'),
        Index('idx_event_category', 'category'),
        Index('idx_event_active', 'is_active'),
        CheckConstraint('price >= 0', name='ck_event_price_non_negative'),
        CheckConstraint('capacity IS NULL OR capacity >= 1', name='ck_event_capacity_positive'),
    )

    @hybrid_property
    def is_free(self):
        return self.price == 0
