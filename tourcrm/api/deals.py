"""
Deals API endpoints, including the deal's city visits.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import models, schemas
from tourcrm.db.repositories import contacts as contact_repo
from tourcrm.db.repositories import deals as deal_repo
from tourcrm.db.repositories import events as event_repo
from tourcrm.api.deps import require_admin, require_editor
from tourcrm.services import deal_service

router = APIRouter(prefix="/deals", tags=["deals"])


def get_deal_or_404(db: Session, deal_id: uuid.UUID) -> models.Deal:
    db_deal = deal_repo.get_deal(db, deal_id)
    if db_deal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deal not found")
    return db_deal


@router.post("", response_model=schemas.DealWithContact, status_code=status.HTTP_201_CREATED)
def create_deal(
    payload: schemas.DealCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    if contact_repo.get_contact(db, payload.contact_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    db_event = event_repo.get_event(db, payload.event_id)
    if db_event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return deal_service.create_deal_with_visits(db, payload, db_event)


@router.get("/{deal_id}", response_model=schemas.DealWithDetails)
def get_deal(
    deal_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return get_deal_or_404(db, deal_id)


@router.patch("/{deal_id}", response_model=schemas.Deal)
def update_deal(
    deal_id: uuid.UUID,
    payload: schemas.DealUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    db_deal = get_deal_or_404(db, deal_id)
    return deal_service.update_deal(db, db_deal, payload.model_dump(exclude_unset=True))


@router.delete("/{deal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_deal(
    deal_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    deal_service.delete_deal(db, get_deal_or_404(db, deal_id))


@router.get("/{deal_id}/visits", response_model=List[schemas.CityVisit])
def list_visits(
    deal_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    get_deal_or_404(db, deal_id)
    return deal_repo.list_visits(db, deal_id)


@router.post("/{deal_id}/visits", response_model=schemas.CityVisit, status_code=status.HTTP_201_CREATED)
def create_visit(
    deal_id: uuid.UUID,
    payload: schemas.CityVisitCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    get_deal_or_404(db, deal_id)
    return deal_repo.create_visit(db, deal_id, payload)
