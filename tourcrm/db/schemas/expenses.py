import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ParticipantExpenseUpsert(BaseModel):
    deal_id: uuid.UUID
    city: str = Field(min_length=1, max_length=100)
    expense_type: str = Field(min_length=1, max_length=100)
    amount: Optional[Decimal] = None
    currency: str = "RUB"
    comment: Optional[str] = None


class ParticipantExpense(ParticipantExpenseUpsert):
    id: uuid.UUID
    event_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CommonExpenseUpsert(BaseModel):
    city: str = Field(min_length=1, max_length=100)
    expense_type: str = Field(min_length=1, max_length=100)
    amount: Optional[Decimal] = None
    currency: str = "RUB"
    comment: Optional[str] = None


class CommonExpense(CommonExpenseUpsert):
    id: uuid.UUID
    event_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class EventExpenses(BaseModel):
    participant_expenses: List[ParticipantExpense]
    common_expenses: List[CommonExpense]


class BaseExpenseBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    amount: Decimal
    currency: str = "CNY"
    category: Optional[str] = None


class BaseExpenseCreate(BaseExpenseBase):
    pass


class BaseExpenseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    category: Optional[str] = None


class BaseExpense(BaseExpenseBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
