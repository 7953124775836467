from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, field_validator, model_validator
from typing import Optional, List
from datetime import date as date_type, datetime, time as time_type
from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from eventconnect.db.models.event import EventCategory
from eventconnect.db.models.rsvp import RsvpStatus


def _validate_zone(value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown time zone: {value}")
    return value


class UserOut(BaseModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    avatar_seed: str
    location: Optional[str] = None
    interests: List[str] = []
    personality: List[str] = []
    signature: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    location: Optional[str] = Field(None, max_length=255)
    interests: Optional[List[str]] = None
    personality: Optional[List[str]] = None


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: EventCategory
    sub_category: Optional[str] = Field(None, max_length=100)
    date: date_type
    time: time_type
    timezone: str = "UTC"
    location: str = Field(..., min_length=1, max_length=255)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    price: Decimal = Field(Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    parking_info: Optional[str] = None
    meeting_point: Optional[str] = None
    duration: Optional[str] = Field(None, max_length=100)
    what_to_bring: Optional[str] = None
    special_notes: Optional[str] = None
    requirements: Optional[str] = None
    contact_info: Optional[str] = None
    cancellation_policy: Optional[str] = None

    @field_validator("timezone")
    @classmethod
    def _check_zone(cls, value: str) -> str:
        return _validate_zone(value)


# Columns that may be changed but never cleared
REQUIRED_EVENT_FIELDS = ("title", "description", "category", "date", "time", "timezone", "location", "price")


class EventUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[EventCategory] = None
    sub_category: Optional[str] = Field(None, max_length=100)
    date: Optional[date_type] = None
    time: Optional[time_type] = None
    timezone: Optional[str] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    parking_info: Optional[str] = None
    meeting_point: Optional[str] = None
    duration: Optional[str] = Field(None, max_length=100)
    what_to_bring: Optional[str] = None
    special_notes: Optional[str] = None
    requirements: Optional[str] = None
    contact_info: Optional[str] = None
    cancellation_policy: Optional[str] = None

    @field_validator("timezone")
    @classmethod
    def _check_zone(cls, value: Optional[str]) -> Optional[str]:
        return value if value is None else _validate_zone(value)

    @model_validator(mode="after")
    def _no_cleared_required_fields(self):
        cleared = [f for f in REQUIRED_EVENT_FIELDS if f in self.model_fields_set and getattr(self, f) is None]
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self


class ExternalEventCreate(EventCreate):
    """Event pushed by a crawler; the organizer is resolved by email."""
    organizer_email: Optional[EmailStr] = None
    source: Optional[str] = Field(None, max_length=255)
    source_url: Optional[HttpUrl] = None


class EventOut(BaseModel):
    id: int
    title: str
    description: str
    category: EventCategory
    sub_category: Optional[str] = None
    date: date_type
    time: time_type
    timezone: str
    starts_at: datetime
    location: str
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    price: Decimal
    is_free: bool
    image_url: Optional[str] = None
    organizer_id: str
    capacity: Optional[int] = None
    parking_info: Optional[str] = None
    meeting_point: Optional[str] = None
    duration: Optional[str] = None
    what_to_bring: Optional[str] = None
    special_notes: Optional[str] = None
    requirements: Optional[str] = None
    contact_info: Optional[str] = None
    cancellation_policy: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EventWithOrganizer(EventOut):
    """Read model returned by every event read endpoint."""
    organizer: Optional[UserOut] = None
    rsvp_count: int = 0
    maybe_count: int = 0
    user_rsvp_status: Optional[RsvpStatus] = None
    spots_left: Optional[int] = None


class ExternalEventCreated(BaseModel):
    success: bool = True
    event_id: int
    message: str = "Event created successfully"
    event: EventOut


class RsvpRequest(BaseModel):
    status: RsvpStatus


class RsvpOut(BaseModel):
    id: int
    event_id: int
    user_id: str
    status: RsvpStatus
    has_left_chat: bool = False
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ChatMessageCreate(BaseModel):
    # Blank and over-long messages are rejected by ChatService so the
    # WebSocket path gets the same rules
    message: str


class ChatMessageOut(BaseModel):
    id: int
    event_id: int
    user_id: str
    message: str
    created_at: datetime
    user: Optional[UserOut] = None


class UnreadEventCount(BaseModel):
    event_id: int
    event_title: str
    unread_count: int


class UnreadCounts(BaseModel):
    total_unread: int = 0
    unread_by_event: List[UnreadEventCount] = []


class StatusMessage(BaseModel):
    message: str


class RealtimeEnvelope(BaseModel):
    """Frame exchanged over /ws. Field names on the wire are camelCase."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    event_id: Optional[int] = Field(None, alias="eventId")
    user_id: Optional[str] = Field(None, alias="userId")
    message: Optional[str] = None
    content: Optional[str] = None
    timestamp: Optional[datetime] = None
