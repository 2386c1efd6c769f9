import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class SyncLog(BaseModel):
    id: uuid.UUID
    operation: str
    entity_type: str
    entity_id: Optional[str] = None
    external_id: Optional[str] = None
    status: str
    details: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class SyncLogPage(BaseModel):
    logs: List[SyncLog]
    pagination: Pagination


class EntityTouristCreate(BaseModel):
    last_name: str = Field(min_length=1, max_length=100)
    first_name: str = Field(min_length=1, max_length=100)
    middle_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    passport_series: Optional[str] = None
    foreign_passport_number: Optional[str] = None
    notes: Optional[str] = None


class EntityTouristUpdate(BaseModel):
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    middle_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    passport_series: Optional[str] = None
    foreign_passport_number: Optional[str] = None
    notes: Optional[str] = None


class RouteUpdate(BaseModel):
    route: Any


class RouteResponse(BaseModel):
    entity_id: str
    entity_type_id: str
    route: Any = None


class BitrixStatus(BaseModel):
    enabled: bool
    route_field: Optional[str] = None
