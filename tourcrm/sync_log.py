"""
Integration sync logging helpers and enums.

Every outbound Bitrix24 operation is recorded through ``log`` so the
persisted rows share one vocabulary; convenience wrappers exist per
remote entity type.
"""
from __future__ import annotations
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from tourcrm.db import models
from tourcrm.db.repositories import sync_logs as sync_log_repo


class SyncOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LINK = "link"
    ROUTE_UPDATE = "route_update"
    FETCH = "fetch"


class SyncEntity(str, Enum):
    CONTACT = "contact"
    ENTITY = "entity"
    DEAL = "deal"


class SyncStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


def _value(item: Enum | str | None) -> Optional[str]:
    if item is None:
        return None
    # Persist the plain value, not the Enum repr
    return item.value if isinstance(item, Enum) else str(item)


def log(
    db: Session,
    *,
    operation: SyncOperation | str,
    entity_type: SyncEntity | str,
    status: SyncStatus | str = SyncStatus.SUCCESS,
    entity_id: Optional[Any] = None,
    external_id: Optional[Any] = None,
    details: Optional[Dict[str, Any]] = None,
    error_message: Optional[str] = None,
) -> models.SyncLog:
    """Central sync logging helper."""
    return sync_log_repo.create_log(
        db,
        operation=_value(operation),
        entity_type=_value(entity_type),
        status=_value(status),
        entity_id=str(entity_id) if entity_id is not None else None,
        external_id=str(external_id) if external_id is not None else None,
        details=details or None,
        error_message=error_message,
    )

__all__ = ["SyncOperation", "SyncEntity", "SyncStatus", "log"]

# Convenience wrappers
def log_contact(db: Session, *, operation: SyncOperation, tourist_id: Any = None, bitrix_contact_id: Any = None, status: SyncStatus | str = SyncStatus.SUCCESS, details: Optional[Dict[str, Any]] = None, error_message: Optional[str] = None):
    return log(
        db,
        operation=operation,
        entity_type=SyncEntity.CONTACT,
        status=status,
        entity_id=tourist_id,
        external_id=bitrix_contact_id,
        details=details,
        error_message=error_message,
    )

def log_entity(db: Session, *, operation: SyncOperation, entity_type_id: Any, entity_id: Any, status: SyncStatus | str = SyncStatus.SUCCESS, details: Optional[Dict[str, Any]] = None, error_message: Optional[str] = None):
    merged = {"entity_type_id": str(entity_type_id)}
    merged.update(details or {})
    return log(
        db,
        operation=operation,
        entity_type=SyncEntity.ENTITY,
        status=status,
        external_id=entity_id,
        details=merged,
        error_message=error_message,
    )

__all__.extend(["log_contact", "log_entity"])
