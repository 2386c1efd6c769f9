"""
Deal group API endpoints (families and mini-groups).
"""
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import models, schemas
from tourcrm.db.repositories import deals as deal_repo
from tourcrm.db.repositories import events as event_repo
from tourcrm.db.repositories import groups as group_repo
from tourcrm.api.deps import require_editor

router = APIRouter(prefix="/groups", tags=["groups"])


def _get_group_or_404(db: Session, group_id: uuid.UUID) -> models.Group:
    db_group = group_repo.get_group(db, group_id)
    if db_group is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    return db_group


@router.post("", response_model=schemas.Group, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: schemas.GroupCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    if event_repo.get_event(db, payload.event_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return group_repo.create_group(db, event_id=payload.event_id, name=payload.name, type=payload.type)


@router.patch("/{group_id}", response_model=schemas.Group)
def update_group(
    group_id: uuid.UUID,
    payload: schemas.GroupUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return group_repo.update_group(db, _get_group_or_404(db, group_id), payload)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_group(
    group_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    if not group_repo.delete_group(db, group_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")


@router.post("/{group_id}/members", response_model=schemas.Deal)
def add_member(
    group_id: uuid.UUID,
    payload: schemas.GroupMemberAdd,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    db_group = _get_group_or_404(db, group_id)
    db_deal = deal_repo.get_deal(db, payload.deal_id)
    if db_deal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deal not found")
    if db_deal.event_id != db_group.event_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Deal belongs to a different event")
    return group_repo.add_member(db, db_group, db_deal, is_primary=payload.is_primary)


@router.delete("/{group_id}/members/{deal_id}", response_model=schemas.Deal)
def remove_member(
    group_id: uuid.UUID,
    deal_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _get_group_or_404(db, group_id)
    db_deal = deal_repo.get_deal(db, deal_id)
    if db_deal is None or db_deal.group_id != group_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deal not found in group")
    return group_repo.remove_member(db, db_deal)
