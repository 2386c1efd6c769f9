import uuid
from sqlalchemy import Column, String, Text, Date, DateTime, Boolean, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from .base import Base, now_utc
from ..types import JSONDocument, Money


TOUR_TYPES = ("group", "individual", "excursion", "adventure", "cultural", "other")
GROUP_TYPES = ("family", "mini_group")


class Event(Base):
    __tablename__ = 'events'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    country = Column(String(100), nullable=False, default='Китай')
    # Ordered route, e.g. ["Beijing", "Xian", "Shanghai"]
    cities = Column(JSONDocument, nullable=False, default=list)
    tour_type = Column(String(30), nullable=False, default='group')
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    participant_limit = Column(Integer, nullable=False)
    price = Column(Money, nullable=False)
    is_full = Column(Boolean, nullable=False, default=False)
    is_archived = Column(Boolean, nullable=False, default=False)
    # city -> guide user id (as string)
    city_guides = Column(JSONDocument, nullable=True)
    color = Column(String(20), nullable=True)
    external_id = Column(String(100), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    deals = relationship("Deal", back_populates="event", cascade="all, delete-orphan")
    groups = relationship("Group", back_populates="event", cascade="all, delete-orphan")
    leads = relationship("Lead", back_populates="event")
    notifications = relationship("Notification", back_populates="event", cascade="all, delete-orphan")
    participant_expenses = relationship("ParticipantExpense", back_populates="event", cascade="all, delete-orphan")
    common_expenses = relationship("CommonExpense", back_populates="event", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_events_start_date', 'start_date'),
        Index('idx_events_is_archived', 'is_archived'),
    )


class Group(Base):
    __tablename__ = 'groups'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey('events.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    # family|mini_group
    type = Column(String(20), nullable=False, default='family')
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    event = relationship("Event", back_populates="groups")
    deals = relationship("Deal", back_populates="group")

    __table_args__ = (
        Index('idx_groups_event_id', 'event_id'),
    )
