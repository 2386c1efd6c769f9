import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from .contacts import Contact
from .events import Event


DealStatus = Literal["pending", "confirmed", "cancelled", "completed"]
TransportType = Literal["plane", "train"]
RoomType = Literal["twin", "double"]
TimeOfDay = Annotated[str, StringConstraints(pattern=r"^\d{2}:\d{2}$")]


class CityVisitBase(BaseModel):
    city: str = Field(min_length=1, max_length=100)
    arrival_date: date
    arrival_time: Optional[TimeOfDay] = None
    transport_type: TransportType = "plane"
    flight_number: Optional[str] = None
    airport: Optional[str] = None
    transfer: Optional[str] = None
    departure_date: Optional[date] = None
    departure_time: Optional[TimeOfDay] = None
    departure_transport_type: Optional[TransportType] = None
    departure_flight_number: Optional[str] = None
    departure_airport: Optional[str] = None
    departure_transfer: Optional[str] = None
    hotel_name: str = Field(min_length=1, max_length=255)
    room_type: Optional[RoomType] = None


class CityVisitCreate(CityVisitBase):
    pass


class CityVisitUpdate(BaseModel):
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
    arrival_date: Optional[date] = None
    arrival_time: Optional[TimeOfDay] = None
    transport_type: Optional[TransportType] = None
    flight_number: Optional[str] = None
    airport: Optional[str] = None
    transfer: Optional[str] = None
    departure_date: Optional[date] = None
    departure_time: Optional[TimeOfDay] = None
    departure_transport_type: Optional[TransportType] = None
    departure_flight_number: Optional[str] = None
    departure_airport: Optional[str] = None
    departure_transfer: Optional[str] = None
    hotel_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    room_type: Optional[RoomType] = None


class CityVisit(CityVisitBase):
    id: uuid.UUID
    deal_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class DealBase(BaseModel):
    contact_id: uuid.UUID
    event_id: uuid.UUID
    status: DealStatus = "pending"
    amount: Optional[Decimal] = None
    surcharge: Optional[Decimal] = None
    nights: Optional[int] = Field(default=None, ge=0)
    group_id: Optional[uuid.UUID] = None
    is_primary_in_group: bool = False
    bitrix_deal_id: Optional[str] = None


class DealCreate(DealBase):
    pass


class DealUpdate(BaseModel):
    status: Optional[DealStatus] = None
    amount: Optional[Decimal] = None
    surcharge: Optional[Decimal] = None
    nights: Optional[int] = Field(default=None, ge=0)
    group_id: Optional[uuid.UUID] = None
    is_primary_in_group: Optional[bool] = None
    bitrix_deal_id: Optional[str] = None


class Deal(DealBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class DealWithContact(Deal):
    contact: Contact
    visits: List[CityVisit] = []


class DealWithDetails(DealWithContact):
    event: Event
