"""Business logic services package with public service helpers."""

from .bitrix24 import (
    Bitrix24Config,
    Bitrix24Error,
    Bitrix24Service,
    get_bitrix24_service,
    reset_bitrix24_service,
)
from .notification_service import NotificationService

__all__ = [
    "Bitrix24Config",
    "Bitrix24Error",
    "Bitrix24Service",
    "get_bitrix24_service",
    "reset_bitrix24_service",
    "NotificationService",
]
