"""
Leads API endpoints.

Leads carry a status history and a list of tourists. Giving a lead an event
(on create, on update or when a tourist is added) triggers auto-conversion
into contacts and deals; manual conversion endpoints do the same on demand
and mark the lead as won.
"""
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import models, schemas
from tourcrm.db.repositories import leads as lead_repo
from tourcrm.api.deps import get_current_user_context, require_admin, require_editor
from tourcrm.api.permissions import can_view_lead, is_admin, is_viewer
from tourcrm.services import lead_conversion
from tourcrm.services.lead_conversion import ConversionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])


def get_lead_or_404(db: Session, lead_id: uuid.UUID, current_user=None) -> models.Lead:
    """Fetch a lead; leads outside a manager's scope answer 404 like missing ones."""
    db_lead = lead_repo.get_lead(db, lead_id)
    if db_lead is None or (current_user is not None and not can_view_lead(db_lead, current_user)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    return db_lead


def _conversion_result(outcome: lead_conversion.ConversionOutcome) -> schemas.ConversionResult:
    return schemas.ConversionResult.model_validate(outcome, from_attributes=True)


@router.get("", response_model=List[schemas.Lead])
def list_leads(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    """
    List leads, newest first.

    - Admins see every lead
    - Managers see leads assigned to or created by them
    - Viewers have no access
    """
    user, current_user = user_context
    if is_viewer(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Viewers cannot access leads")
    return lead_repo.list_leads(
        db,
        user_id=None if is_admin(current_user) else user.id,
        status=status_filter,
    )


@router.get("/{lead_id}", response_model=schemas.Lead)
def get_lead(
    lead_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _user, current_user = user_context
    return get_lead_or_404(db, lead_id, current_user)


@router.get("/{lead_id}/history", response_model=List[schemas.LeadStatusHistory])
def get_lead_history(
    lead_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _user, current_user = user_context
    get_lead_or_404(db, lead_id, current_user)
    return lead_repo.list_history(db, lead_id)


@router.post("", response_model=schemas.Lead, status_code=status.HTTP_201_CREATED)
def create_lead(
    payload: schemas.LeadCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    user, _ctx = user_context
    db_lead = lead_repo.create_lead(db, payload, created_by_user_id=user.id)
    logger.info("Created lead %s by %s", db_lead.id, user.username)
    if db_lead.event_id is not None:
        lead_conversion.auto_convert_lead_to_event(db, db_lead.id, db_lead.event_id)
        db.refresh(db_lead)
    return db_lead


@router.patch("/{lead_id}", response_model=schemas.Lead)
def update_lead(
    lead_id: uuid.UUID,
    payload: schemas.LeadUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    user, current_user = user_context
    db_lead = get_lead_or_404(db, lead_id, current_user)
    changes = payload.model_dump(exclude_unset=True)
    status_note = changes.pop("status_note", None)
    previous_event_id = db_lead.event_id

    db_lead = lead_repo.update_lead(db, db_lead, changes, changed_by_user_id=user.id, status_note=status_note)
    lead_repo.sync_auto_tourist(db, db_lead, list(changes.keys()))

    if "event_id" in changes and db_lead.event_id is not None and db_lead.event_id != previous_event_id:
        lead_conversion.auto_convert_lead_to_event(db, db_lead.id, db_lead.event_id, previous_event_id)
        db.refresh(db_lead)
    return db_lead


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lead(
    lead_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if not lead_repo.delete_lead(db, lead_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")


# Tourists

@router.get("/{lead_id}/tourists", response_model=List[schemas.LeadTourist])
def list_tourists(
    lead_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _user, current_user = user_context
    get_lead_or_404(db, lead_id, current_user)
    return lead_repo.list_tourists(db, lead_id)


@router.post("/{lead_id}/tourists", response_model=schemas.LeadTourist, status_code=status.HTTP_201_CREATED)
def create_tourist(
    lead_id: uuid.UUID,
    payload: schemas.LeadTouristCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _user, current_user = user_context
    db_lead = get_lead_or_404(db, lead_id, current_user)
    if payload.is_primary and lead_repo.get_primary_tourist(db, lead_id) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Lead already has a primary tourist")
    tourist = lead_repo.create_tourist(db, {**payload.model_dump(), "lead_id": lead_id, "is_auto_created": False})
    if db_lead.event_id is not None:
        lead_conversion.auto_convert_lead_to_event(db, lead_id, db_lead.event_id)
        db.refresh(tourist)
    return tourist


# Conversion

@router.post("/{lead_id}/convert", response_model=schemas.ConversionResult)
def convert_lead(
    lead_id: uuid.UUID,
    payload: schemas.ConvertLeadRequest,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    user, current_user = user_context
    db_lead = get_lead_or_404(db, lead_id, current_user)
    event_id = payload.event_id or db_lead.event_id
    if event_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="event_id is required")
    try:
        outcome = lead_conversion.convert_lead(db, lead_id, event_id, changed_by_user_id=user.id)
    except ConversionError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except Exception:
        db.rollback()
        logger.exception("Conversion of lead %s failed", lead_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to convert lead")
    return _conversion_result(outcome)


@router.post("/{lead_id}/convert-family", response_model=schemas.ConversionResult)
def convert_family(
    lead_id: uuid.UUID,
    payload: schemas.ConvertFamilyRequest,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    user, current_user = user_context
    get_lead_or_404(db, lead_id, current_user)
    try:
        outcome = lead_conversion.convert_family(db, lead_id, payload, changed_by_user_id=user.id)
    except ConversionError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to convert family; all changes were rolled back",
        )
    return _conversion_result(outcome)
