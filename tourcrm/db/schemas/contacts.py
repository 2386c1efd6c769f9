import uuid
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ContactBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    passport: Optional[str] = None
    birth_date: Optional[date] = None
    notes: Optional[str] = None
    lead_id: Optional[uuid.UUID] = None
    lead_tourist_id: Optional[uuid.UUID] = None


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    passport: Optional[str] = None
    birth_date: Optional[date] = None
    notes: Optional[str] = None
    lead_id: Optional[uuid.UUID] = None


class Contact(ContactBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
