import uuid
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Contact(Base):
    __tablename__ = 'contacts'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=True)
    phone = Column(String(50), nullable=True)
    passport = Column(String(100), nullable=True)
    birth_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    lead_id = Column(Uuid, ForeignKey('leads.id', ondelete='SET NULL'), nullable=True)
    lead_tourist_id = Column(Uuid, ForeignKey('lead_tourists.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    lead = relationship("Lead", back_populates="contacts")
    lead_tourist = relationship("LeadTourist", back_populates="contacts")
    deals = relationship("Deal", back_populates="contact", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="contact", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_contacts_lead_id', 'lead_id'),
        Index('idx_contacts_lead_tourist_id', 'lead_tourist_id'),
    )
