import uuid
from sqlalchemy import Column, String, Date, DateTime, Boolean, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from .base import Base, now_utc
from ..types import Money


DEAL_STATUSES = ("pending", "confirmed", "cancelled", "completed")
TRANSPORT_TYPES = ("plane", "train")
ROOM_TYPES = ("twin", "double")


class Deal(Base):
    __tablename__ = 'deals'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    contact_id = Column(Uuid, ForeignKey('contacts.id', ondelete='CASCADE'), nullable=False)
    event_id = Column(Uuid, ForeignKey('events.id', ondelete='CASCADE'), nullable=False)
    # pending|confirmed|cancelled|completed
    status = Column(String(20), nullable=False, default='pending')
    amount = Column(Money, nullable=True)
    surcharge = Column(Money, nullable=True)
    nights = Column(Integer, nullable=True)
    group_id = Column(Uuid, ForeignKey('groups.id', ondelete='SET NULL'), nullable=True)
    is_primary_in_group = Column(Boolean, nullable=False, default=False)
    bitrix_deal_id = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    contact = relationship("Contact", back_populates="deals")
    event = relationship("Event", back_populates="deals")
    group = relationship("Group", back_populates="deals")
    visits = relationship(
        "CityVisit",
        back_populates="deal",
        cascade="all, delete-orphan",
        order_by="CityVisit.arrival_date",
    )
    participant_expenses = relationship("ParticipantExpense", back_populates="deal", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_deals_event_id_status', 'event_id', 'status'),
        Index('idx_deals_contact_id', 'contact_id'),
        Index('idx_deals_group_id', 'group_id'),
    )


class CityVisit(Base):
    __tablename__ = 'city_visits'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    deal_id = Column(Uuid, ForeignKey('deals.id', ondelete='CASCADE'), nullable=False)
    city = Column(String(100), nullable=False)

    # Arrival
    arrival_date = Column(Date, nullable=False)
    arrival_time = Column(String(5), nullable=True)
    transport_type = Column(String(10), nullable=False, default='plane')
    flight_number = Column(String(50), nullable=True)
    airport = Column(String(100), nullable=True)
    transfer = Column(String(255), nullable=True)

    # Departure
    departure_date = Column(Date, nullable=True)
    departure_time = Column(String(5), nullable=True)
    departure_transport_type = Column(String(10), nullable=True)
    departure_flight_number = Column(String(50), nullable=True)
    departure_airport = Column(String(100), nullable=True)
    departure_transfer = Column(String(255), nullable=True)

    # Stay
    hotel_name = Column(String(255), nullable=False)
    room_type = Column(String(10), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    deal = relationship("Deal", back_populates="visits")

    __table_args__ = (
        Index('idx_city_visits_deal_id', 'deal_id'),
    )
