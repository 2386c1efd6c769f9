"""
Public (unauthenticated) endpoints.

Serves booking forms and their submissions, direct tour bookings, event
availability and the dictionaries the public pages need. Form and booking
intake can be switched off with the ``public_forms`` feature flag.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import schemas
from tourcrm.db.repositories import dictionaries as dictionary_repo
from tourcrm.db.repositories import events as event_repo
from tourcrm.api.deps import client_ip
from tourcrm.services import public_intake
from tourcrm.services.public_intake import IntakeNotFoundError, IntakeValidationError
from tourcrm.utils.feature_flags import public_forms_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/public", tags=["public"])


def require_public_forms():
    if not public_forms_enabled():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Public forms are disabled")


@router.get("/forms/{form_id}", response_model=schemas.FormWithFields, dependencies=[Depends(require_public_forms)])
def get_public_form(form_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        return public_intake.get_active_form(db, form_id)
    except IntakeNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post(
    "/forms/{form_id}/submit",
    response_model=schemas.PublicFormSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_public_forms)],
)
def submit_public_form(
    form_id: uuid.UUID,
    payload: schemas.PublicFormSubmit,
    request: Request,
    db: Session = Depends(get_db),
):
    try:
        result = public_intake.submit_form(
            db,
            form_id,
            payload.data,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    except IntakeNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except IntakeValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return schemas.PublicFormSubmitResponse(
        success=True,
        lead_id=result.lead.id,
        submission_id=result.submission.id,
    )


@router.post(
    "/bookings",
    response_model=schemas.PublicBookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_public_forms)],
)
def create_public_booking(payload: schemas.PublicBookingRequest, db: Session = Depends(get_db)):
    try:
        lead = public_intake.create_booking(db, payload)
    except IntakeNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except IntakeValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return schemas.PublicBookingResponse(success=True, lead_id=lead.id, message="Booking received")


@router.get("/events/{event_id}/availability", response_model=schemas.EventAvailability)
def get_availability(event_id: uuid.UUID, db: Session = Depends(get_db)):
    db_event = event_repo.get_event(db, event_id)
    if db_event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event_repo.availability(db, db_event)


@router.get("/dictionaries/{type}", response_model=list[schemas.DictionaryItem])
def get_public_dictionary(type: str, db: Session = Depends(get_db)):
    return dictionary_repo.list_items(db, type=type, active_only=True)


@router.get("/dictionary-types/{type}", response_model=schemas.DictionaryTypeConfig)
def get_public_dictionary_type(type: str, db: Session = Depends(get_db)):
    config = dictionary_repo.get_type_config(db, type)
    if config is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dictionary type not found")
    return config
