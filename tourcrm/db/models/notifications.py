import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from .base import Base, now_utc


NOTIFICATION_TYPES = ("new_booking", "group_filled", "event_upcoming", "birthday_upcoming")


class Notification(Base):
    __tablename__ = 'notifications'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String(30), nullable=False)
    message = Column(Text, nullable=False)
    event_id = Column(Uuid, ForeignKey('events.id', ondelete='CASCADE'), nullable=True)
    contact_id = Column(Uuid, ForeignKey('contacts.id', ondelete='CASCADE'), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    event = relationship("Event", back_populates="notifications")
    contact = relationship("Contact", back_populates="notifications")

    __table_args__ = (
        Index('idx_notifications_created_at', 'created_at'),
        Index('idx_notifications_is_read', 'is_read'),
        Index('idx_notifications_type_event', 'type', 'event_id'),
    )
