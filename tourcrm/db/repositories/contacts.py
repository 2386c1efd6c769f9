"""
Contact repository functions.
"""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from tourcrm.db import models, schemas


def create_contact(db: Session, contact: schemas.ContactCreate) -> models.Contact:
    db_contact = models.Contact(**contact.model_dump())
    db.add(db_contact)
    db.commit()
    db.refresh(db_contact)
    return db_contact


def get_contact(db: Session, contact_id: uuid.UUID) -> Optional[models.Contact]:
    return db.query(models.Contact).filter(models.Contact.id == contact_id).first()


def get_contact_by_lead_tourist(db: Session, lead_tourist_id: uuid.UUID) -> Optional[models.Contact]:
    return (
        db.query(models.Contact)
        .filter(models.Contact.lead_tourist_id == lead_tourist_id)
        .order_by(models.Contact.created_at.asc())
        .first()
    )


def list_contacts(db: Session, skip: int = 0, limit: int = 500) -> List[models.Contact]:
    return (
        db.query(models.Contact)
        .order_by(models.Contact.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def update_contact(db: Session, db_contact: models.Contact, contact: schemas.ContactUpdate) -> models.Contact:
    for key, value in contact.model_dump(exclude_unset=True).items():
        setattr(db_contact, key, value)
    db.commit()
    db.refresh(db_contact)
    return db_contact


def delete_contact(db: Session, contact_id: uuid.UUID) -> bool:
    db_contact = get_contact(db, contact_id)
    if not db_contact:
        return False
    try:
        db.delete(db_contact)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete contact {contact_id}: {e}") from e
