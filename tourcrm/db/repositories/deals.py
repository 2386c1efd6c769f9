"""
Deal and city visit repository functions.
"""
from __future__ import annotations

import uuid
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from tourcrm.db import models, schemas


DEFAULT_TRANSPORT = "plane"


def create_deal(db: Session, deal: schemas.DealCreate) -> models.Deal:
    db_deal = models.Deal(**deal.model_dump())
    db.add(db_deal)
    db.commit()
    db.refresh(db_deal)
    return db_deal


def get_deal(db: Session, deal_id: uuid.UUID) -> Optional[models.Deal]:
    return db.query(models.Deal).filter(models.Deal.id == deal_id).first()


def list_deals_by_event(db: Session, event_id: uuid.UUID) -> List[models.Deal]:
    return (
        db.query(models.Deal)
        .filter(models.Deal.event_id == event_id)
        .order_by(models.Deal.created_at.asc())
        .all()
    )


def list_deals_by_contact(db: Session, contact_id: uuid.UUID) -> List[models.Deal]:
    return (
        db.query(models.Deal)
        .filter(models.Deal.contact_id == contact_id)
        .order_by(models.Deal.created_at.asc())
        .all()
    )


def update_deal(db: Session, db_deal: models.Deal, changes: Dict) -> models.Deal:
    for key, value in changes.items():
        setattr(db_deal, key, value)
    db.commit()
    db.refresh(db_deal)
    return db_deal


def delete_deal(db: Session, deal_id: uuid.UUID) -> bool:
    db_deal = get_deal(db, deal_id)
    if not db_deal:
        return False
    try:
        db.delete(db_deal)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete deal {deal_id}: {e}") from e


# City visits

def create_default_visits(db: Session, db_deal: models.Deal, db_event: models.Event) -> List[models.CityVisit]:
    """One visit per event city, arriving on the tour start date."""
    visits = [
        models.CityVisit(
            deal_id=db_deal.id,
            city=city,
            arrival_date=db_event.start_date,
            transport_type=DEFAULT_TRANSPORT,
            hotel_name=f"Hotel {city}",
        )
        for city in (db_event.cities or [])
    ]
    db.add_all(visits)
    db.commit()
    db.refresh(db_deal)
    return visits


def replace_visits(db: Session, db_deal: models.Deal, db_event: models.Event) -> List[models.CityVisit]:
    db_deal.visits.clear()
    db.flush()
    return create_default_visits(db, db_deal, db_event)


def list_visits(db: Session, deal_id: uuid.UUID) -> List[models.CityVisit]:
    return (
        db.query(models.CityVisit)
        .filter(models.CityVisit.deal_id == deal_id)
        .order_by(models.CityVisit.arrival_date.asc(), models.CityVisit.created_at.asc())
        .all()
    )


def get_visit(db: Session, visit_id: uuid.UUID) -> Optional[models.CityVisit]:
    return db.query(models.CityVisit).filter(models.CityVisit.id == visit_id).first()


def create_visit(db: Session, deal_id: uuid.UUID, visit: schemas.CityVisitCreate) -> models.CityVisit:
    db_visit = models.CityVisit(deal_id=deal_id, **visit.model_dump())
    db.add(db_visit)
    db.commit()
    db.refresh(db_visit)
    return db_visit


def update_visit(db: Session, db_visit: models.CityVisit, visit: schemas.CityVisitUpdate) -> models.CityVisit:
    for key, value in visit.model_dump(exclude_unset=True).items():
        setattr(db_visit, key, value)
    db.commit()
    db.refresh(db_visit)
    return db_visit


def delete_visit(db: Session, visit_id: uuid.UUID) -> bool:
    db_visit = get_visit(db, visit_id)
    if not db_visit:
        return False
    try:
        db.delete(db_visit)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete city visit {visit_id}: {e}") from e
