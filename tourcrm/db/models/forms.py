import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from .base import Base, now_utc
from ..types import JSONDocument


FORM_FIELD_TYPES = ("text", "email", "phone", "select", "textarea", "checkbox", "date", "number", "tour")


class Form(Base):
    __tablename__ = 'forms'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # Owner; public submissions are attributed to this user
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    fields = relationship(
        "FormField",
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="FormField.order",
    )
    submissions = relationship("FormSubmission", back_populates="form", cascade="all, delete-orphan")
    leads = relationship("Lead", back_populates="form")


class FormField(Base):
    __tablename__ = 'form_fields'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id = Column(Uuid, ForeignKey('forms.id', ondelete='CASCADE'), nullable=False)
    key = Column(String(100), nullable=False)
    label = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, default='text')
    is_required = Column(Boolean, nullable=False, default=False)
    order = Column(Integer, nullable=False, default=0)
    # Select options, placeholders, etc.
    config = Column(JSONDocument, nullable=True)

    form = relationship("Form", back_populates="fields")

    __table_args__ = (
        Index('idx_form_fields_form_id_order', 'form_id', 'order'),
    )


class FormSubmission(Base):
    __tablename__ = 'form_submissions'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id = Column(Uuid, ForeignKey('forms.id', ondelete='CASCADE'), nullable=False)
    lead_id = Column(Uuid, ForeignKey('leads.id', ondelete='SET NULL'), nullable=True)
    data = Column(JSONDocument, nullable=False)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)
    submitted_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    form = relationship("Form", back_populates="submissions")

    __table_args__ = (
        Index('idx_form_submissions_form_id', 'form_id', 'submitted_at'),
    )
