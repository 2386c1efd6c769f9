"""
Repository for integration sync logs.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from tourcrm.db import models


def create_log(
    db: Session,
    *,
    operation: str,
    entity_type: str,
    status: str,
    entity_id: Optional[str] = None,
    external_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    error_message: Optional[str] = None,
) -> models.SyncLog:
    log = models.SyncLog(
        operation=operation,
        entity_type=entity_type,
        entity_id=entity_id,
        external_id=external_id,
        status=status,
        details=details,
        error_message=error_message,
    )
    db.add(log)
    db.commit()
    db.refresh(log)
    return log


def list_logs(db: Session, *, page: int = 1, limit: int = 20) -> Tuple[List[models.SyncLog], int]:
    q = db.query(models.SyncLog)
    total = q.count()
    logs = (
        q.order_by(models.SyncLog.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return logs, total
