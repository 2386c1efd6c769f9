"""
Lead repository functions.

Covers leads, their status history and their tourists. Creating a lead
records the initial history entry and, by default, a primary tourist built
from the lead's own name and contacts. Status changes always write history.
"""
from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from tourcrm.db import models, schemas


# Lead fields mirrored onto the auto-created tourist when they change
AUTO_TOURIST_FIELDS = ("last_name", "first_name", "middle_name", "email", "phone")


def create_lead(
    db: Session,
    lead: schemas.LeadCreate | Dict,
    *,
    created_by_user_id: Optional[uuid.UUID] = None,
    with_auto_tourist: bool = True,
) -> models.Lead:
    data = lead.model_dump() if isinstance(lead, schemas.LeadBase) else dict(lead)
    data.setdefault("created_by_user_id", created_by_user_id)
    _derive_remaining_payment(data)
    db_lead = models.Lead(**data)
    db.add(db_lead)
    db.flush()

    db.add(
        models.LeadStatusHistory(
            lead_id=db_lead.id,
            old_status=None,
            new_status=db_lead.status,
            changed_by_user_id=db_lead.created_by_user_id,
            note="Lead created",
        )
    )
    if with_auto_tourist:
        db.add(
            models.LeadTourist(
                lead_id=db_lead.id,
                last_name=db_lead.last_name,
                first_name=db_lead.first_name,
                middle_name=db_lead.middle_name,
                email=db_lead.email,
                phone=db_lead.phone,
                tourist_type="adult",
                is_primary=True,
                is_auto_created=True,
            )
        )
    db.commit()
    db.refresh(db_lead)
    return db_lead


def _derive_remaining_payment(data: Dict) -> None:
    if data.get("remaining_payment") is not None:
        return
    cost, advance = data.get("tour_cost"), data.get("advance_payment")
    if cost is not None and advance is not None:
        data["remaining_payment"] = Decimal(cost) - Decimal(advance)


def get_lead(db: Session, lead_id: uuid.UUID) -> Optional[models.Lead]:
    return db.query(models.Lead).filter(models.Lead.id == lead_id).first()


def list_leads(
    db: Session,
    *,
    user_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
) -> List[models.Lead]:
    """List leads newest first; ``user_id`` narrows to assigned or created leads."""
    q = db.query(models.Lead)
    if user_id is not None:
        q = q.filter(or_(models.Lead.assigned_user_id == user_id, models.Lead.created_by_user_id == user_id))
    if status:
        q = q.filter(models.Lead.status == status)
    return q.order_by(models.Lead.created_at.desc()).all()


def list_leads_by_event(db: Session, event_id: uuid.UUID) -> List[models.Lead]:
    return db.query(models.Lead).filter(models.Lead.event_id == event_id).all()


def update_lead(
    db: Session,
    db_lead: models.Lead,
    changes: Dict,
    *,
    changed_by_user_id: Optional[uuid.UUID] = None,
    status_note: Optional[str] = None,
) -> models.Lead:
    old_status = db_lead.status
    if "remaining_payment" not in changes and {"tour_cost", "advance_payment"} & changes.keys():
        cost = changes.get("tour_cost", db_lead.tour_cost)
        advance = changes.get("advance_payment", db_lead.advance_payment)
        if cost is not None and advance is not None:
            changes = {**changes, "remaining_payment": Decimal(cost) - Decimal(advance)}

    for key, value in changes.items():
        setattr(db_lead, key, value)

    new_status = changes.get("status")
    if new_status is not None and new_status != old_status:
        db.add(
            models.LeadStatusHistory(
                lead_id=db_lead.id,
                old_status=old_status,
                new_status=new_status,
                changed_by_user_id=changed_by_user_id or db_lead.assigned_user_id or db_lead.created_by_user_id,
                note=status_note,
            )
        )
    db.commit()
    db.refresh(db_lead)
    return db_lead


def sync_auto_tourist(db: Session, db_lead: models.Lead, changed_fields: List[str]) -> Optional[models.LeadTourist]:
    """Mirror the lead's name/email/phone onto its auto-created tourist."""
    fields = [f for f in changed_fields if f in AUTO_TOURIST_FIELDS]
    if not fields:
        return None
    tourist = next((t for t in db_lead.tourists if t.is_auto_created), None)
    if tourist is None:
        return None
    for field in fields:
        setattr(tourist, field, getattr(db_lead, field))
    db.commit()
    db.refresh(tourist)
    return tourist


def delete_lead(db: Session, lead_id: uuid.UUID) -> bool:
    db_lead = get_lead(db, lead_id)
    if not db_lead:
        return False
    try:
        # History and tourists cascade; contacts keep existing without the lead link
        db.query(models.FormSubmission).filter(models.FormSubmission.lead_id == lead_id).update(
            {models.FormSubmission.lead_id: None}
        )
        db.delete(db_lead)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete lead {lead_id}: {e}") from e


def list_history(db: Session, lead_id: uuid.UUID) -> List[models.LeadStatusHistory]:
    return (
        db.query(models.LeadStatusHistory)
        .filter(models.LeadStatusHistory.lead_id == lead_id)
        .order_by(models.LeadStatusHistory.changed_at.desc())
        .all()
    )


# Tourists

def list_tourists(db: Session, lead_id: uuid.UUID) -> List[models.LeadTourist]:
    return (
        db.query(models.LeadTourist)
        .filter(models.LeadTourist.lead_id == lead_id)
        .order_by(models.LeadTourist.is_primary.desc(), models.LeadTourist.created_at.asc())
        .all()
    )


def list_entity_tourists(db: Session, *, entity_type_id: str, entity_id: str) -> List[models.LeadTourist]:
    return (
        db.query(models.LeadTourist)
        .filter(
            models.LeadTourist.entity_type_id == entity_type_id,
            models.LeadTourist.entity_id == entity_id,
        )
        .order_by(models.LeadTourist.created_at.asc())
        .all()
    )


def get_tourist(db: Session, tourist_id: uuid.UUID) -> Optional[models.LeadTourist]:
    return db.query(models.LeadTourist).filter(models.LeadTourist.id == tourist_id).first()


def get_primary_tourist(db: Session, lead_id: uuid.UUID) -> Optional[models.LeadTourist]:
    return (
        db.query(models.LeadTourist)
        .filter(models.LeadTourist.lead_id == lead_id, models.LeadTourist.is_primary.is_(True))
        .first()
    )


def create_tourist(db: Session, tourist: Dict) -> models.LeadTourist:
    db_tourist = models.LeadTourist(**tourist)
    db.add(db_tourist)
    db.commit()
    db.refresh(db_tourist)
    return db_tourist


def update_tourist(db: Session, db_tourist: models.LeadTourist, changes: Dict) -> models.LeadTourist:
    if changes.get("is_primary") and db_tourist.lead_id is not None:
        (
            db.query(models.LeadTourist)
            .filter(models.LeadTourist.lead_id == db_tourist.lead_id, models.LeadTourist.id != db_tourist.id)
            .update({models.LeadTourist.is_primary: False})
        )
    for key, value in changes.items():
        setattr(db_tourist, key, value)
    db.commit()
    db.refresh(db_tourist)
    return db_tourist


def delete_tourist(db: Session, tourist_id: uuid.UUID) -> bool:
    db_tourist = get_tourist(db, tourist_id)
    if not db_tourist:
        return False
    try:
        db.delete(db_tourist)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete tourist {tourist_id}: {e}") from e
