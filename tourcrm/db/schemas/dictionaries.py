import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class DictionaryItemBase(BaseModel):
    type: str = Field(min_length=1, max_length=50)
    value: str = Field(min_length=1, max_length=100)
    label: str = Field(min_length=1, max_length=255)
    sort_order: int = 0
    is_active: bool = True
    parent_type: Optional[str] = None
    parent_value: Optional[str] = None


class DictionaryItemCreate(DictionaryItemBase):
    pass


class DictionaryItemUpdate(BaseModel):
    value: Optional[str] = Field(default=None, min_length=1, max_length=100)
    label: Optional[str] = Field(default=None, min_length=1, max_length=255)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None
    parent_type: Optional[str] = None
    parent_value: Optional[str] = None


class DictionaryItem(DictionaryItemBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class DictionaryTypeConfigUpsert(BaseModel):
    display_name: str = Field(min_length=1, max_length=255)
    is_multiple: bool = False
    description: Optional[str] = None


class DictionaryTypeConfig(DictionaryTypeConfigUpsert):
    id: uuid.UUID
    type: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
