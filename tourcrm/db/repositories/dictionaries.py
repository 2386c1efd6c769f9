"""
System dictionary repository functions (select options used by forms and
the back office) and their per-type display configuration.
"""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from tourcrm.db import models, schemas


def list_items(db: Session, *, type: Optional[str] = None, active_only: bool = False) -> List[models.SystemDictionary]:
    q = db.query(models.SystemDictionary)
    if type:
        q = q.filter(models.SystemDictionary.type == type)
    if active_only:
        q = q.filter(models.SystemDictionary.is_active.is_(True))
    return q.order_by(
        models.SystemDictionary.type.asc(),
        models.SystemDictionary.sort_order.asc(),
        models.SystemDictionary.label.asc(),
    ).all()


def get_item(db: Session, item_id: uuid.UUID) -> Optional[models.SystemDictionary]:
    return db.query(models.SystemDictionary).filter(models.SystemDictionary.id == item_id).first()


def get_item_by_value(db: Session, *, type: str, value: str) -> Optional[models.SystemDictionary]:
    return (
        db.query(models.SystemDictionary)
        .filter(models.SystemDictionary.type == type, models.SystemDictionary.value == value)
        .first()
    )


def create_item(db: Session, item: schemas.DictionaryItemCreate) -> models.SystemDictionary:
    db_item = models.SystemDictionary(**item.model_dump())
    db.add(db_item)
    db.commit()
    db.refresh(db_item)
    return db_item


def update_item(
    db: Session, db_item: models.SystemDictionary, item: schemas.DictionaryItemUpdate
) -> models.SystemDictionary:
    for key, value in item.model_dump(exclude_unset=True).items():
        setattr(db_item, key, value)
    db.commit()
    db.refresh(db_item)
    return db_item


def delete_item(db: Session, item_id: uuid.UUID) -> bool:
    db_item = get_item(db, item_id)
    if not db_item:
        return False
    db.delete(db_item)
    db.commit()
    return True


def list_type_configs(db: Session) -> List[models.DictionaryTypeConfig]:
    return db.query(models.DictionaryTypeConfig).order_by(models.DictionaryTypeConfig.type.asc()).all()


def get_type_config(db: Session, type: str) -> Optional[models.DictionaryTypeConfig]:
    return db.query(models.DictionaryTypeConfig).filter(models.DictionaryTypeConfig.type == type).first()


def upsert_type_config(
    db: Session, type: str, config: schemas.DictionaryTypeConfigUpsert
) -> models.DictionaryTypeConfig:
    db_config = get_type_config(db, type)
    if db_config is None:
        db_config = models.DictionaryTypeConfig(type=type, **config.model_dump())
        db.add(db_config)
    else:
        for key, value in config.model_dump().items():
            setattr(db_config, key, value)
    db.commit()
    db.refresh(db_config)
    return db_config
