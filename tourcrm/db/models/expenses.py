import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from .base import Base, now_utc
from ..types import Money


class ParticipantExpense(Base):
    __tablename__ = 'event_participant_expenses'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey('events.id', ondelete='CASCADE'), nullable=False)
    deal_id = Column(Uuid, ForeignKey('deals.id', ondelete='CASCADE'), nullable=False)
    city = Column(String(100), nullable=False)
    expense_type = Column(String(100), nullable=False)
    amount = Column(Money, nullable=True)
    currency = Column(String(3), nullable=False, default='RUB')
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    event = relationship("Event", back_populates="participant_expenses")
    deal = relationship("Deal", back_populates="participant_expenses")

    __table_args__ = (
        UniqueConstraint('event_id', 'deal_id', 'city', 'expense_type', name='uq_participant_expense'),
    )


class CommonExpense(Base):
    __tablename__ = 'event_common_expenses'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey('events.id', ondelete='CASCADE'), nullable=False)
    city = Column(String(100), nullable=False)
    expense_type = Column(String(100), nullable=False)
    amount = Column(Money, nullable=True)
    currency = Column(String(3), nullable=False, default='RUB')
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    event = relationship("Event", back_populates="common_expenses")

    __table_args__ = (
        UniqueConstraint('event_id', 'city', 'expense_type', name='uq_common_expense'),
    )


class BaseExpense(Base):
    """Catalog of standard per-person costs used when pricing a tour."""
    __tablename__ = 'base_expenses'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    amount = Column(Money, nullable=False)
    currency = Column(String(3), nullable=False, default='CNY')
    category = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
