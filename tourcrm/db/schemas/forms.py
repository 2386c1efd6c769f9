import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


FieldType = Literal["text", "email", "phone", "select", "textarea", "checkbox", "date", "number", "tour"]


class FormBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: bool = True


class FormCreate(FormBase):
    pass


class FormUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class FormFieldBase(BaseModel):
    key: str = Field(min_length=1, max_length=100)
    label: str = Field(min_length=1, max_length=255)
    type: FieldType = "text"
    is_required: bool = False
    order: int = 0
    config: Optional[Dict[str, Any]] = None


class FormFieldCreate(FormFieldBase):
    pass


class FormFieldUpdate(BaseModel):
    key: Optional[str] = Field(default=None, min_length=1, max_length=100)
    label: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[FieldType] = None
    is_required: Optional[bool] = None
    order: Optional[int] = None
    config: Optional[Dict[str, Any]] = None


class FormField(FormFieldBase):
    id: uuid.UUID
    form_id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class Form(FormBase):
    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class FormWithFields(Form):
    fields: List[FormField] = []


class FormSubmission(BaseModel):
    id: uuid.UUID
    form_id: uuid.UUID
    lead_id: Optional[uuid.UUID] = None
    data: Dict[str, Any]
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    submitted_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PublicFormSubmit(BaseModel):
    data: Dict[str, Any]


class PublicFormSubmitResponse(BaseModel):
    success: bool
    lead_id: uuid.UUID
    submission_id: uuid.UUID


class PublicBookingRequest(BaseModel):
    event_id: Optional[uuid.UUID] = None
    participant_count: int = Field(default=1, ge=1)
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


class PublicBookingResponse(BaseModel):
    success: bool
    lead_id: uuid.UUID
    message: str
