from sqlalchemy import Column, String, Text, Integer, DateTime, JSON
from eventconnect.db.session import Base, utcnow


class User(Base):
    """
    A person known through the external identity provider.

    The id is the provider's subject claim. Rows are created on first login
    and only ever updated afterwards.
    """
    __tablename__ = "users"
    id = Column(String(255), primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    profile_image_url = Column(String(1024), nullable=True)
    avatar_seed = Column(String(255), nullable=False, default="default")
    location = Column(String(255), nullable=True)
    interests = Column(JSON, nullable=False, default=list)
    personality = Column(JSON, nullable=False, default=list)
    signature = Column(Text, nullable=True)
    skipped_events = Column(JSON, nullable=False, default=list)
    events_shown_since_skip = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
