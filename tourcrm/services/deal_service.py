"""
Deal workflows shared by the deals API and lead conversion.

A new deal always gets one default visit per event city, announces itself
through ``NotificationService`` and refreshes the event's ``is_full`` flag.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from tourcrm.db import models, schemas
from tourcrm.db.repositories import deals as deal_repo
from tourcrm.db.repositories import events as event_repo
from tourcrm.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def create_deal_with_visits(db: Session, deal: schemas.DealCreate, event: models.Event) -> models.Deal:
    db_deal = deal_repo.create_deal(db, deal)
    deal_repo.create_default_visits(db, db_deal, event)
    NotificationService(db).notify_deal_created(db_deal)
    event_repo.refresh_fullness(db, event.id)
    logger.info("Created deal %s for contact %s on event %s", db_deal.id, db_deal.contact_id, event.id)
    return db_deal


def update_deal(db: Session, db_deal: models.Deal, changes: Dict) -> models.Deal:
    """Apply changes and keep capacity state of the touched events in sync."""
    old_event_id = db_deal.event_id
    old_status = db_deal.status
    db_deal = deal_repo.update_deal(db, db_deal, changes)

    event = event_repo.refresh_fullness(db, db_deal.event_id)
    if old_event_id != db_deal.event_id:
        event_repo.refresh_fullness(db, old_event_id)
    if event is not None and db_deal.status == "confirmed" and old_status != "confirmed":
        try:
            NotificationService(db).check_group_filled(event)
        except Exception:
            db.rollback()
            logger.exception("Capacity check failed for event %s", event.id)
    return db_deal


def move_deal(
    db: Session,
    db_deal: models.Deal,
    event: models.Event,
    *,
    group_id: Optional[object] = None,
    is_primary: bool = False,
) -> models.Deal:
    """Move a deal to another event and rebuild its visits for the new route."""
    previous_event_id = db_deal.event_id
    db_deal = deal_repo.update_deal(
        db,
        db_deal,
        {"event_id": event.id, "group_id": group_id, "is_primary_in_group": is_primary},
    )
    deal_repo.replace_visits(db, db_deal, event)
    event_repo.refresh_fullness(db, event.id)
    if previous_event_id != event.id:
        event_repo.refresh_fullness(db, previous_event_id)
    logger.info("Moved deal %s from event %s to %s", db_deal.id, previous_event_id, event.id)
    return db_deal


def delete_deal(db: Session, db_deal: models.Deal) -> bool:
    event_id = db_deal.event_id
    deleted = deal_repo.delete_deal(db, db_deal.id)
    if deleted:
        event_repo.refresh_fullness(db, event_id)
    return deleted
