import uuid
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel


class SummaryColumn(BaseModel):
    city: str
    title: str


class SummaryRow(BaseModel):
    index: int
    deal_id: uuid.UUID
    contact_id: uuid.UUID
    name: str
    phone: Optional[str] = None
    group_key: str
    group_name: Optional[str] = None
    group_index: int
    group_size: int
    is_first_in_group: bool
    cities: Dict[str, str]
    city_row_spans: Dict[str, int]
    render_city_cell: Dict[str, bool]
    hotels: str
    transports: str
    flight_numbers: str
    surcharge: Optional[Decimal] = None
    nights: Optional[int] = None
    merge_surcharge_nights: bool = False
    render_surcharge_nights: bool = True


class EventSummary(BaseModel):
    event_id: uuid.UUID
    event_name: str
    grouped: bool
    columns: List[SummaryColumn]
    rows: List[SummaryRow]
