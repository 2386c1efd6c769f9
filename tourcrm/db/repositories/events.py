"""
Event (tour) repository functions.

CRUD plus the booking statistics derived from confirmed deals, expired
event archiving and price propagation to leads.
"""
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from tourcrm.db import models, schemas


def create_event(db: Session, event: schemas.EventCreate) -> models.Event:
    db_event = models.Event(**event.model_dump())
    db.add(db_event)
    db.commit()
    db.refresh(db_event)
    return db_event


def get_event(db: Session, event_id: uuid.UUID) -> Optional[models.Event]:
    return db.query(models.Event).filter(models.Event.id == event_id).first()


def list_events(db: Session, *, include_archived: bool = True) -> List[models.Event]:
    q = db.query(models.Event)
    if not include_archived:
        q = q.filter(models.Event.is_archived.is_(False))
    return q.order_by(models.Event.start_date.desc()).all()


def update_event(db: Session, db_event: models.Event, changes: Dict) -> models.Event:
    for key, value in changes.items():
        setattr(db_event, key, value)
    db.commit()
    db.refresh(db_event)
    return db_event


def delete_event(db: Session, event_id: uuid.UUID) -> bool:
    db_event = get_event(db, event_id)
    if not db_event:
        return False
    try:
        db.delete(db_event)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete event {event_id}: {e}") from e


def count_confirmed(db: Session, event_id: uuid.UUID) -> int:
    return (
        db.query(func.count(models.Deal.id))
        .filter(models.Deal.event_id == event_id, models.Deal.status == "confirmed")
        .scalar()
        or 0
    )


def confirmed_counts(db: Session, event_ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
    if not event_ids:
        return {}
    rows = (
        db.query(models.Deal.event_id, func.count(models.Deal.id))
        .filter(models.Deal.event_id.in_(event_ids), models.Deal.status == "confirmed")
        .group_by(models.Deal.event_id)
        .all()
    )
    return {event_id: count for event_id, count in rows}


def with_stats(db_event: models.Event, booked_count: int) -> schemas.EventWithStats:
    base = schemas.Event.model_validate(db_event)
    return schemas.EventWithStats(
        **base.model_dump(),
        booked_count=booked_count,
        available_spots=db_event.participant_limit - booked_count,
    )


def get_event_with_stats(db: Session, event_id: uuid.UUID) -> Optional[schemas.EventWithStats]:
    db_event = get_event(db, event_id)
    if not db_event:
        return None
    return with_stats(db_event, count_confirmed(db, event_id))


def list_events_with_stats(db: Session, *, include_archived: bool = True) -> List[schemas.EventWithStats]:
    events = list_events(db, include_archived=include_archived)
    counts = confirmed_counts(db, [e.id for e in events])
    return [with_stats(e, counts.get(e.id, 0)) for e in events]


def availability(db: Session, db_event: models.Event) -> schemas.EventAvailability:
    confirmed = count_confirmed(db, db_event.id)
    limit = db_event.participant_limit
    available = max(0, limit - confirmed)
    percentage = round(available / limit * 100) if limit > 0 else 0
    return schemas.EventAvailability(
        event_id=db_event.id,
        participant_limit=limit,
        confirmed_count=confirmed,
        available_spots=available,
        availability_percentage=percentage,
        is_full=db_event.is_full or available == 0,
    )


def refresh_fullness(db: Session, event_id: uuid.UUID) -> Optional[models.Event]:
    """Recompute ``is_full`` from the confirmed deal count."""
    db_event = get_event(db, event_id)
    if not db_event:
        return None
    is_full = count_confirmed(db, event_id) >= db_event.participant_limit
    if db_event.is_full != is_full:
        db_event.is_full = is_full
        db.commit()
        db.refresh(db_event)
    return db_event


def archive_expired(db: Session, *, today: date) -> int:
    """Archive events whose end date has passed. Returns the number archived."""
    count = (
        db.query(models.Event)
        .filter(models.Event.end_date < today, models.Event.is_archived.is_(False))
        .update({models.Event.is_archived: True})
    )
    db.commit()
    return count


def set_archived(db: Session, db_event: models.Event, archived: bool) -> models.Event:
    db_event.is_archived = archived
    db.commit()
    db.refresh(db_event)
    return db_event


def update_lead_costs_by_event_price(db: Session, db_event: models.Event) -> int:
    """Reprice every lead on the event: price x number of tourists (at least one).

    Returns the number of leads touched.
    """
    leads = db.query(models.Lead).filter(models.Lead.event_id == db_event.id).all()
    price = Decimal(db_event.price)
    for lead in leads:
        travellers = max(1, len(lead.tourists))
        lead.tour_cost = price * travellers
        if lead.advance_payment is not None:
            lead.remaining_payment = lead.tour_cost - Decimal(lead.advance_payment)
    db.commit()
    return len(leads)
