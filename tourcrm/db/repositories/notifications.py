"""
Notification repository functions.
"""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from tourcrm.db import models


def create_notification(
    db: Session,
    *,
    type: str,
    message: str,
    event_id: Optional[uuid.UUID] = None,
    contact_id: Optional[uuid.UUID] = None,
) -> models.Notification:
    db_notification = models.Notification(type=type, message=message, event_id=event_id, contact_id=contact_id)
    db.add(db_notification)
    db.commit()
    db.refresh(db_notification)
    return db_notification


def get_notification(db: Session, notification_id: uuid.UUID) -> Optional[models.Notification]:
    return db.query(models.Notification).filter(models.Notification.id == notification_id).first()


def list_notifications(db: Session, *, unread_only: bool = False, limit: int = 200) -> List[models.Notification]:
    q = db.query(models.Notification)
    if unread_only:
        q = q.filter(models.Notification.is_read.is_(False))
    return q.order_by(models.Notification.created_at.desc()).limit(limit).all()


def has_unread(
    db: Session,
    *,
    type: str,
    event_id: Optional[uuid.UUID] = None,
    contact_id: Optional[uuid.UUID] = None,
) -> bool:
    q = db.query(models.Notification).filter(
        models.Notification.type == type,
        models.Notification.is_read.is_(False),
    )
    q = q.filter(models.Notification.event_id == event_id) if event_id else q.filter(models.Notification.event_id.is_(None))
    q = q.filter(models.Notification.contact_id == contact_id) if contact_id else q.filter(models.Notification.contact_id.is_(None))
    return q.first() is not None


def mark_read(db: Session, db_notification: models.Notification) -> models.Notification:
    db_notification.is_read = True
    db.commit()
    db.refresh(db_notification)
    return db_notification


def mark_all_read(db: Session) -> int:
    count = (
        db.query(models.Notification)
        .filter(models.Notification.is_read.is_(False))
        .update({models.Notification.is_read: True})
    )
    db.commit()
    return count


def delete_notification(db: Session, notification_id: uuid.UUID) -> bool:
    db_notification = get_notification(db, notification_id)
    if not db_notification:
        return False
    db.delete(db_notification)
    db.commit()
    return True
