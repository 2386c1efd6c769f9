"""
Notification API Endpoints

Lists and acknowledges the shared staff notification feed, and lets admins
trigger the upcoming event/birthday scan on demand.
"""
import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import schemas
from tourcrm.db.repositories import notifications as notification_repo
from tourcrm.api.deps import require_admin, require_editor
from tourcrm.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[schemas.Notification])
def get_notifications(
    limit: int = 200,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    """
    Get notifications, newest first.

    - **limit**: Maximum number of notifications to return (default 200)
    """
    return notification_repo.list_notifications(db, limit=limit)


@router.get("/unread", response_model=List[schemas.Notification])
def get_unread_notifications(
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return notification_repo.list_notifications(db, unread_only=True)


@router.patch("/{notification_id}/read", response_model=schemas.Notification)
def mark_notification_read(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    db_notification = notification_repo.get_notification(db, notification_id)
    if db_notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification_repo.mark_read(db, db_notification)


@router.post("/read-all")
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    count = notification_repo.mark_all_read(db)
    return {"message": f"Marked {count} notifications as read", "count": count}


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    if not notification_repo.delete_notification(db, notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")


@router.post("/scan", response_model=schemas.NotificationScanResult)
def scan_notifications(
    payload: Optional[schemas.NotificationScanRequest] = Body(default=None),
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    """Create upcoming-event and birthday notifications for the next days."""
    days = payload.days if payload is not None else 7
    created = NotificationService(db).scan_upcoming(date.today(), days=days)
    return schemas.NotificationScanResult(created=created)
