from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from eventconnect.db.session import Base, utcnow


class ChatMessage(Base):
    __tablename__ = "chat_messages"
    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    message = Column(Text, nullable=False)
    # microsecond precision: unread counting compares against read markers
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User")

    __table_args__ = (
        Index('idx_chat_event_created', 'event_id', 'created_at'),
    )


class MessageRead(Base):
    """How far a user has read an event's chat."""
    __tablename__ = "message_reads"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    last_read_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'event_id', name='uq_message_read_user_event'),
    )
