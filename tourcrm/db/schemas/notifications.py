import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict


NotificationType = Literal["new_booking", "group_filled", "event_upcoming", "birthday_upcoming"]


class NotificationBase(BaseModel):
    type: NotificationType
    message: str
    event_id: Optional[uuid.UUID] = None
    contact_id: Optional[uuid.UUID] = None


class NotificationCreate(NotificationBase):
    pass


class Notification(NotificationBase):
    id: uuid.UUID
    is_read: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class NotificationScanRequest(BaseModel):
    days: int = 7


class NotificationScanResult(BaseModel):
    created: int
