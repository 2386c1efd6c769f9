"""
Contacts API endpoints.

Besides plain CRUD, ``/contacts/{id}/details`` exposes the contact together
with its lead tourist and lead, and lets editors update the tourist record
while keeping the contact's own fields in step.
"""
import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import models, schemas
from tourcrm.db.repositories import contacts as contact_repo
from tourcrm.db.repositories import leads as lead_repo
from tourcrm.api.deps import require_admin, require_editor
from tourcrm.api.permissions import ensure_can_edit_lead
from tourcrm.utils.names import display_name, split_contact_name

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _get_contact_or_404(db: Session, contact_id: uuid.UUID) -> models.Contact:
    db_contact = contact_repo.get_contact(db, contact_id)
    if db_contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return db_contact


def _details(db_contact: models.Contact) -> schemas.ContactDetails:
    return schemas.ContactDetails(
        contact=schemas.Contact.model_validate(db_contact),
        lead_tourist=schemas.LeadTourist.model_validate(db_contact.lead_tourist) if db_contact.lead_tourist else None,
        lead=schemas.Lead.model_validate(db_contact.lead) if db_contact.lead else None,
    )


@router.get("", response_model=List[schemas.Contact])
def list_contacts(
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return contact_repo.list_contacts(db)


@router.get("/{contact_id}", response_model=schemas.Contact)
def get_contact(
    contact_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return _get_contact_or_404(db, contact_id)


@router.post("", response_model=schemas.Contact, status_code=status.HTTP_201_CREATED)
def create_contact(
    payload: schemas.ContactCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return contact_repo.create_contact(db, payload)


@router.patch("/{contact_id}", response_model=schemas.Contact)
def update_contact(
    contact_id: uuid.UUID,
    payload: schemas.ContactUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return contact_repo.update_contact(db, _get_contact_or_404(db, contact_id), payload)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(
    contact_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if not contact_repo.delete_contact(db, contact_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")


@router.get("/{contact_id}/details", response_model=schemas.ContactDetails)
def get_contact_details(
    contact_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return _details(_get_contact_or_404(db, contact_id))


@router.patch("/{contact_id}/details", response_model=schemas.ContactDetails)
def update_contact_details(
    contact_id: uuid.UUID,
    payload: schemas.LeadTouristUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    """Update the contact's tourist record and mirror it onto the contact."""
    _user, current_user = user_context
    db_contact = _get_contact_or_404(db, contact_id)
    if current_user["role"] == "manager":
        ensure_can_edit_lead(db_contact.lead, current_user)

    changes = payload.model_dump(exclude_unset=True)
    tourist = db_contact.lead_tourist
    if tourist is None:
        first, last = split_contact_name(db_contact.name)
        tourist = lead_repo.create_tourist(
            db,
            {
                "lead_id": db_contact.lead_id,
                "first_name": first,
                "last_name": last or first,
                "email": db_contact.email,
                "phone": db_contact.phone,
                "date_of_birth": db_contact.birth_date,
                "is_primary": False,
                "is_auto_created": False,
            },
        )
        db_contact.lead_tourist_id = tourist.id
        logger.info("Created tourist %s for contact %s", tourist.id, contact_id)
    tourist = lead_repo.update_tourist(db, tourist, changes)

    db_contact.name = display_name(tourist.first_name, tourist.last_name, tourist.middle_name) or db_contact.name
    db_contact.email = tourist.email
    db_contact.phone = tourist.phone
    db_contact.birth_date = tourist.date_of_birth
    passport = tourist.foreign_passport_number or tourist.passport_series
    if passport:
        db_contact.passport = passport
    db.commit()
    db.refresh(db_contact)
    return _details(db_contact)
