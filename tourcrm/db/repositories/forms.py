"""
Form builder repository functions: forms, their fields and submissions.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from tourcrm.db import models, schemas


def create_form(db: Session, form: schemas.FormCreate, *, user_id: Optional[uuid.UUID]) -> models.Form:
    db_form = models.Form(user_id=user_id, **form.model_dump())
    db.add(db_form)
    db.commit()
    db.refresh(db_form)
    return db_form


def get_form(db: Session, form_id: uuid.UUID) -> Optional[models.Form]:
    return db.query(models.Form).filter(models.Form.id == form_id).first()


def list_forms(db: Session) -> List[models.Form]:
    return db.query(models.Form).order_by(models.Form.created_at.desc()).all()


def update_form(db: Session, db_form: models.Form, form: schemas.FormUpdate) -> models.Form:
    for key, value in form.model_dump(exclude_unset=True).items():
        setattr(db_form, key, value)
    db.commit()
    db.refresh(db_form)
    return db_form


def delete_form(db: Session, form_id: uuid.UUID) -> bool:
    db_form = get_form(db, form_id)
    if not db_form:
        return False
    try:
        # Fields first, then the form (submissions cascade with it)
        db.query(models.FormField).filter(models.FormField.form_id == form_id).delete()
        db.delete(db_form)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete form {form_id}: {e}") from e


# Fields

def list_fields(db: Session, form_id: uuid.UUID) -> List[models.FormField]:
    return (
        db.query(models.FormField)
        .filter(models.FormField.form_id == form_id)
        .order_by(models.FormField.order.asc())
        .all()
    )


def get_field(db: Session, field_id: uuid.UUID) -> Optional[models.FormField]:
    return db.query(models.FormField).filter(models.FormField.id == field_id).first()


def create_field(db: Session, form_id: uuid.UUID, field: schemas.FormFieldCreate) -> models.FormField:
    db_field = models.FormField(form_id=form_id, **field.model_dump())
    db.add(db_field)
    db.commit()
    db.refresh(db_field)
    return db_field


def update_field(db: Session, db_field: models.FormField, field: schemas.FormFieldUpdate) -> models.FormField:
    for key, value in field.model_dump(exclude_unset=True).items():
        setattr(db_field, key, value)
    db.commit()
    db.refresh(db_field)
    return db_field


def delete_field(db: Session, field_id: uuid.UUID) -> bool:
    db_field = get_field(db, field_id)
    if not db_field:
        return False
    db.delete(db_field)
    db.commit()
    return True


# Submissions

def create_submission(
    db: Session,
    *,
    form_id: uuid.UUID,
    data: Dict[str, Any],
    lead_id: Optional[uuid.UUID] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> models.FormSubmission:
    db_submission = models.FormSubmission(
        form_id=form_id,
        lead_id=lead_id,
        data=data,
        ip_address=ip_address,
        user_agent=user_agent[:500] if user_agent else None,
    )
    db.add(db_submission)
    db.commit()
    db.refresh(db_submission)
    return db_submission


def list_submissions(db: Session, form_id: uuid.UUID) -> List[models.FormSubmission]:
    return (
        db.query(models.FormSubmission)
        .filter(models.FormSubmission.form_id == form_id)
        .order_by(models.FormSubmission.submitted_at.desc())
        .all()
    )
