"""
Deal group repository functions (families and mini-groups on an event).
"""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from tourcrm.db import models, schemas


def create_group(db: Session, *, event_id: uuid.UUID, name: str, type: str = "family") -> models.Group:
    db_group = models.Group(event_id=event_id, name=name, type=type)
    db.add(db_group)
    db.commit()
    db.refresh(db_group)
    return db_group


def get_group(db: Session, group_id: uuid.UUID) -> Optional[models.Group]:
    return db.query(models.Group).filter(models.Group.id == group_id).first()


def list_groups_by_event(db: Session, event_id: uuid.UUID) -> List[models.Group]:
    return (
        db.query(models.Group)
        .filter(models.Group.event_id == event_id)
        .order_by(models.Group.created_at.asc())
        .all()
    )


def update_group(db: Session, db_group: models.Group, group: schemas.GroupUpdate) -> models.Group:
    for key, value in group.model_dump(exclude_unset=True).items():
        setattr(db_group, key, value)
    db.commit()
    db.refresh(db_group)
    return db_group


def delete_group(db: Session, group_id: uuid.UUID) -> bool:
    db_group = get_group(db, group_id)
    if not db_group:
        return False
    try:
        for deal in list(db_group.deals):
            deal.group_id = None
            deal.is_primary_in_group = False
        db.delete(db_group)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete group {group_id}: {e}") from e


def add_member(db: Session, db_group: models.Group, db_deal: models.Deal, *, is_primary: bool = False) -> models.Deal:
    if is_primary:
        (
            db.query(models.Deal)
            .filter(models.Deal.group_id == db_group.id, models.Deal.id != db_deal.id)
            .update({models.Deal.is_primary_in_group: False})
        )
    db_deal.group_id = db_group.id
    db_deal.is_primary_in_group = is_primary
    db.commit()
    db.refresh(db_deal)
    return db_deal


def remove_member(db: Session, db_deal: models.Deal) -> models.Deal:
    db_deal.group_id = None
    db_deal.is_primary_in_group = False
    db.commit()
    db.refresh(db_deal)
    return db_deal
