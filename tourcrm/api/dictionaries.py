"""
System dictionary API endpoints.

Editors read, admins write. Two routers: item CRUD under ``/dictionaries``
and type configuration under ``/dictionary-types``.
"""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import schemas
from tourcrm.db.repositories import dictionaries as dictionary_repo
from tourcrm.api.deps import require_admin, require_editor

router = APIRouter(prefix="/dictionaries", tags=["dictionaries"])
types_router = APIRouter(prefix="/dictionary-types", tags=["dictionaries"])


@router.get("", response_model=List[schemas.DictionaryItem])
def list_items(
    type: Optional[str] = None,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return dictionary_repo.list_items(db, type=type)


@router.post("", response_model=schemas.DictionaryItem, status_code=status.HTTP_201_CREATED)
def create_item(
    payload: schemas.DictionaryItemCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if dictionary_repo.get_item_by_value(db, type=payload.type, value=payload.value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Dictionary item already exists")
    return dictionary_repo.create_item(db, payload)


@router.patch("/{item_id}", response_model=schemas.DictionaryItem)
def update_item(
    item_id: uuid.UUID,
    payload: schemas.DictionaryItemUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    db_item = dictionary_repo.get_item(db, item_id)
    if db_item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dictionary item not found")
    if payload.value is not None and payload.value != db_item.value:
        if dictionary_repo.get_item_by_value(db, type=db_item.type, value=payload.value):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Dictionary item already exists")
    return dictionary_repo.update_item(db, db_item, payload)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if not dictionary_repo.delete_item(db, item_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dictionary item not found")


@types_router.get("", response_model=List[schemas.DictionaryTypeConfig])
def list_types(
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return dictionary_repo.list_type_configs(db)


@types_router.put("/{type}", response_model=schemas.DictionaryTypeConfig)
def upsert_type(
    type: str,
    payload: schemas.DictionaryTypeConfigUpsert,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    return dictionary_repo.upsert_type_config(db, type, payload)
