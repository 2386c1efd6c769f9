"""
Form builder API endpoints (authenticated side).

The public rendering and submission endpoints live in ``tourcrm.api.public``.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import models, schemas
from tourcrm.db.repositories import forms as form_repo
from tourcrm.api.deps import require_editor

router = APIRouter(prefix="/forms", tags=["forms"])


def _get_form_or_404(db: Session, form_id: uuid.UUID) -> models.Form:
    db_form = form_repo.get_form(db, form_id)
    if db_form is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found")
    return db_form


@router.get("", response_model=List[schemas.Form])
def list_forms(
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return form_repo.list_forms(db)


@router.get("/{form_id}", response_model=schemas.FormWithFields)
def get_form(
    form_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return _get_form_or_404(db, form_id)


@router.post("", response_model=schemas.Form, status_code=status.HTTP_201_CREATED)
def create_form(
    payload: schemas.FormCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    user, _ctx = user_context
    return form_repo.create_form(db, payload, user_id=user.id)


@router.patch("/{form_id}", response_model=schemas.Form)
def update_form(
    form_id: uuid.UUID,
    payload: schemas.FormUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return form_repo.update_form(db, _get_form_or_404(db, form_id), payload)


@router.delete("/{form_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_form(
    form_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    if not form_repo.delete_form(db, form_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found")


@router.get("/{form_id}/submissions", response_model=List[schemas.FormSubmission])
def list_submissions(
    form_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _get_form_or_404(db, form_id)
    return form_repo.list_submissions(db, form_id)


# Fields

@router.post("/{form_id}/fields", response_model=schemas.FormField, status_code=status.HTTP_201_CREATED)
def create_field(
    form_id: uuid.UUID,
    payload: schemas.FormFieldCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _get_form_or_404(db, form_id)
    return form_repo.create_field(db, form_id, payload)


@router.patch("/fields/{field_id}", response_model=schemas.FormField)
def update_field(
    field_id: uuid.UUID,
    payload: schemas.FormFieldUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    db_field = form_repo.get_field(db, field_id)
    if db_field is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Field not found")
    return form_repo.update_field(db, db_field, payload)


@router.delete("/fields/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_field(
    field_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    if not form_repo.delete_field(db, field_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Field not found")
