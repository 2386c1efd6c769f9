import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


TourType = Literal["group", "individual", "excursion", "adventure", "cultural", "other"]
GroupType = Literal["family", "mini_group"]


class EventBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    country: str = "Китай"
    cities: List[str] = Field(min_length=1)
    tour_type: TourType = "group"
    start_date: date
    end_date: date
    participant_limit: int = Field(gt=0)
    price: Decimal = Field(ge=0)
    city_guides: Optional[Dict[str, str]] = None
    color: Optional[str] = None
    external_id: Optional[str] = None


class EventCreate(EventBase):
    @model_validator(mode="after")
    def _check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EventUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    country: Optional[str] = None
    cities: Optional[List[str]] = Field(default=None, min_length=1)
    tour_type: Optional[TourType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    participant_limit: Optional[int] = Field(default=None, gt=0)
    price: Optional[Decimal] = Field(default=None, ge=0)
    city_guides: Optional[Dict[str, str]] = None
    color: Optional[str] = None
    external_id: Optional[str] = None
    is_archived: Optional[bool] = None


class Event(EventBase):
    id: uuid.UUID
    is_full: bool
    is_archived: bool
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class EventWithStats(Event):
    booked_count: int
    available_spots: int


class EventAvailability(BaseModel):
    event_id: uuid.UUID
    participant_limit: int
    confirmed_count: int
    available_spots: int
    availability_percentage: int
    is_full: bool


class GroupBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: GroupType = "family"


class GroupCreate(GroupBase):
    event_id: uuid.UUID


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[GroupType] = None


class Group(GroupBase):
    id: uuid.UUID
    event_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class GroupMemberAdd(BaseModel):
    deal_id: uuid.UUID
    is_primary: bool = False
