import uuid
from sqlalchemy import Column, String, Text, Date, DateTime, Boolean, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from .base import Base, now_utc
from ..types import Money


LEAD_STATUSES = ("new", "contacted", "qualified", "won", "lost")
LEAD_SOURCES = ("manual", "form", "import", "booking", "other")
TOURIST_TYPES = ("adult", "child", "infant")


class Lead(Base):
    __tablename__ = 'leads'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    last_name = Column(String(100), nullable=False)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    email = Column(String(320), nullable=True)
    phone = Column(String(50), nullable=True)
    # new|contacted|qualified|won|lost
    status = Column(String(20), nullable=False, default='new')
    # manual|form|import|booking|other
    source = Column(String(20), nullable=False, default='manual')
    form_id = Column(Uuid, ForeignKey('forms.id', ondelete='SET NULL'), nullable=True)
    event_id = Column(Uuid, ForeignKey('events.id', ondelete='SET NULL'), nullable=True)
    notes = Column(Text, nullable=True)
    client_category = Column(String(50), nullable=True)
    color = Column(String(20), nullable=True)
    family_members_count = Column(Integer, nullable=True)

    # Payments
    tour_cost = Column(Money, nullable=True)
    tour_cost_currency = Column(String(3), nullable=False, default='RUB')
    advance_payment = Column(Money, nullable=True)
    advance_payment_currency = Column(String(3), nullable=False, default='RUB')
    remaining_payment = Column(Money, nullable=True)
    remaining_payment_currency = Column(String(3), nullable=False, default='RUB')

    postponed_until = Column(Date, nullable=True)
    assigned_user_id = Column(Uuid, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_by_user_id = Column(Uuid, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    event = relationship("Event", back_populates="leads")
    form = relationship("Form", back_populates="leads")
    history = relationship(
        "LeadStatusHistory",
        back_populates="lead",
        cascade="all, delete-orphan",
        order_by="LeadStatusHistory.changed_at",
    )
    tourists = relationship("LeadTourist", back_populates="lead", cascade="all, delete-orphan")
    contacts = relationship("Contact", back_populates="lead")

    __table_args__ = (
        Index('idx_leads_status', 'status'),
        Index('idx_leads_assigned_user_id', 'assigned_user_id'),
        Index('idx_leads_event_id', 'event_id'),
    )

    @property
    def full_name(self) -> str:
        parts = [self.last_name, self.first_name, self.middle_name]
        return " ".join(p for p in parts if p)


class LeadStatusHistory(Base):
    __tablename__ = 'lead_status_history'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lead_id = Column(Uuid, ForeignKey('leads.id', ondelete='CASCADE'), nullable=False)
    old_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=False)
    changed_by_user_id = Column(Uuid, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    note = Column(Text, nullable=True)
    changed_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    lead = relationship("Lead", back_populates="history")

    __table_args__ = (
        Index('idx_lead_status_history_lead_id', 'lead_id', 'changed_at'),
    )


class LeadTourist(Base):
    __tablename__ = 'lead_tourists'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Nullable: tourists created from a Bitrix24 smart-process entity have no lead
    lead_id = Column(Uuid, ForeignKey('leads.id', ondelete='CASCADE'), nullable=True)

    last_name = Column(String(100), nullable=False)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    email = Column(String(320), nullable=True)
    phone = Column(String(50), nullable=True)

    # Domestic passport
    passport_series = Column(String(50), nullable=True)
    passport_issued_by = Column(Text, nullable=True)
    registration_address = Column(Text, nullable=True)

    # Foreign passport
    foreign_passport_name = Column(String(200), nullable=True)
    foreign_passport_number = Column(String(50), nullable=True)
    foreign_passport_valid_until = Column(Date, nullable=True)

    # adult|child|infant
    tourist_type = Column(String(10), nullable=False, default='adult')
    notes = Column(Text, nullable=True)
    guide_comment = Column(Text, nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    is_auto_created = Column(Boolean, nullable=False, default=False)

    # Bitrix24 linkage
    bitrix_contact_id = Column(String(50), nullable=True)
    entity_id = Column(String(50), nullable=True)
    entity_type_id = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    lead = relationship("Lead", back_populates="tourists")
    contacts = relationship("Contact", back_populates="lead_tourist")

    __table_args__ = (
        Index('idx_lead_tourists_lead_id', 'lead_id'),
        Index('idx_lead_tourists_entity', 'entity_type_id', 'entity_id'),
    )

    @property
    def full_name(self) -> str:
        parts = [self.last_name, self.first_name, self.middle_name]
        return " ".join(p for p in parts if p)
