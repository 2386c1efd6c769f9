import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from .contacts import Contact
from .deals import CityVisit, Deal
from .events import Group


LeadStatus = Literal["new", "contacted", "qualified", "won", "lost"]
LeadSource = Literal["manual", "form", "import", "booking", "other"]
TouristType = Literal["adult", "child", "infant"]


class LeadBase(BaseModel):
    last_name: str = Field(max_length=100)
    first_name: str = Field(max_length=100)
    middle_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: LeadStatus = "new"
    source: LeadSource = "manual"
    form_id: Optional[uuid.UUID] = None
    event_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    client_category: Optional[str] = None
    color: Optional[str] = None
    family_members_count: Optional[int] = Field(default=None, ge=1)
    tour_cost: Optional[Decimal] = None
    tour_cost_currency: str = "RUB"
    advance_payment: Optional[Decimal] = None
    advance_payment_currency: str = "RUB"
    remaining_payment: Optional[Decimal] = None
    remaining_payment_currency: str = "RUB"
    postponed_until: Optional[date] = None
    assigned_user_id: Optional[uuid.UUID] = None


class LeadCreate(LeadBase):
    last_name: str = Field(min_length=1, max_length=100)
    first_name: str = Field(min_length=1, max_length=100)


class LeadUpdate(BaseModel):
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    middle_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[LeadStatus] = None
    source: Optional[LeadSource] = None
    event_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    client_category: Optional[str] = None
    color: Optional[str] = None
    family_members_count: Optional[int] = Field(default=None, ge=1)
    tour_cost: Optional[Decimal] = None
    tour_cost_currency: Optional[str] = None
    advance_payment: Optional[Decimal] = None
    advance_payment_currency: Optional[str] = None
    remaining_payment: Optional[Decimal] = None
    remaining_payment_currency: Optional[str] = None
    postponed_until: Optional[date] = None
    assigned_user_id: Optional[uuid.UUID] = None
    # Free-form note stored with the status history entry
    status_note: Optional[str] = None


class Lead(LeadBase):
    id: uuid.UUID
    created_by_user_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class LeadStatusHistory(BaseModel):
    id: uuid.UUID
    lead_id: uuid.UUID
    old_status: Optional[str] = None
    new_status: str
    changed_by_user_id: Optional[uuid.UUID] = None
    note: Optional[str] = None
    changed_at: datetime
    model_config = ConfigDict(from_attributes=True)


class LeadTouristBase(BaseModel):
    last_name: str = Field(max_length=100)
    first_name: str = Field(max_length=100)
    middle_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    passport_series: Optional[str] = None
    passport_issued_by: Optional[str] = None
    registration_address: Optional[str] = None
    foreign_passport_name: Optional[str] = None
    foreign_passport_number: Optional[str] = None
    foreign_passport_valid_until: Optional[date] = None
    tourist_type: TouristType = "adult"
    notes: Optional[str] = None
    guide_comment: Optional[str] = None
    is_primary: bool = False


class LeadTouristCreate(LeadTouristBase):
    last_name: str = Field(min_length=1, max_length=100)
    first_name: str = Field(min_length=1, max_length=100)


class LeadTouristUpdate(BaseModel):
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    middle_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    passport_series: Optional[str] = None
    passport_issued_by: Optional[str] = None
    registration_address: Optional[str] = None
    foreign_passport_name: Optional[str] = None
    foreign_passport_number: Optional[str] = None
    foreign_passport_valid_until: Optional[date] = None
    tourist_type: Optional[TouristType] = None
    notes: Optional[str] = None
    guide_comment: Optional[str] = None
    is_primary: Optional[bool] = None


class LeadTourist(LeadTouristBase):
    id: uuid.UUID
    lead_id: Optional[uuid.UUID] = None
    is_auto_created: bool
    bitrix_contact_id: Optional[str] = None
    entity_id: Optional[str] = None
    entity_type_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ConvertLeadRequest(BaseModel):
    event_id: Optional[uuid.UUID] = None


class FamilyMember(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    passport: Optional[str] = None
    birth_date: Optional[date] = None
    notes: Optional[str] = None


class ConvertFamilyRequest(BaseModel):
    event_id: uuid.UUID
    group_name: Optional[str] = None
    members: List[FamilyMember] = Field(min_length=1)


class ConversionResult(BaseModel):
    contacts: List[Contact]
    deals: List[Deal]
    group: Optional[Group] = None
    message: str


class ContactDetails(BaseModel):
    contact: Contact
    lead_tourist: Optional[LeadTourist] = None
    lead: Optional[Lead] = None


class Participant(BaseModel):
    deal: Deal
    contact: Contact
    lead_tourist: Optional[LeadTourist] = None
    lead: Optional[Lead] = None
    visits: List[CityVisit] = []
    group: Optional[Group] = None
