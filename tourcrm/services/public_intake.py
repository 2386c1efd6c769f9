"""
Public intake: unauthenticated form submissions and tour bookings that
become leads.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from tourcrm.db import models, schemas
from tourcrm.db.repositories import events as event_repo
from tourcrm.db.repositories import forms as form_repo
from tourcrm.db.repositories import leads as lead_repo
from tourcrm.utils.names import find_name_value, parse_full_name

logger = logging.getLogger(__name__)


class IntakeValidationError(ValueError):
    """The submitted data cannot become a lead (HTTP 400)."""


class IntakeNotFoundError(LookupError):
    """The form or event referenced by the submission does not exist (HTTP 404)."""


@dataclass
class SubmissionResult:
    lead: models.Lead
    submission: models.FormSubmission


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip()) or value == []


def _first_value(fields, data: Dict[str, Any], field_type: str) -> Optional[str]:
    field = next((f for f in fields if f.type == field_type), None)
    if field is None or _is_blank(data.get(field.key)):
        return None
    return str(data[field.key]).strip()


def _event_from_value(db: Session, value: Any) -> Optional[models.Event]:
    try:
        event_id = uuid.UUID(str(value))
    except ValueError:
        return None
    return event_repo.get_event(db, event_id)


def get_active_form(db: Session, form_id: uuid.UUID) -> models.Form:
    form = form_repo.get_form(db, form_id)
    if form is None or not form.is_active:
        raise IntakeNotFoundError("Form not found or inactive")
    return form


def submit_form(
    db: Session,
    form_id: uuid.UUID,
    data: Dict[str, Any],
    *,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> SubmissionResult:
    form = get_active_form(db, form_id)
    fields = list(form.fields)

    missing = [f.key for f in fields if f.is_required and _is_blank(data.get(f.key))]
    if missing:
        raise IntakeValidationError(f"Missing required fields: {', '.join(missing)}")

    tour_field = next((f for f in fields if f.type == "tour" and not _is_blank(data.get(f.key))), None)
    selected_tour_id = str(data[tour_field.key]) if tour_field else None
    event = _event_from_value(db, selected_tour_id) if selected_tour_id else None

    email = _first_value(fields, data, "email")
    phone = _first_value(fields, data, "phone")
    lead_name = find_name_value(fields, data)
    if lead_name is None:
        if event is not None:
            lead_name = f"Booking for {event.name}"
        else:
            lead_name = email or phone or "Unknown"

    notes = None
    if event is not None:
        notes = f"Selected tour: {event.name} (ID: {selected_tour_id})"
    elif selected_tour_id:
        notes = f"Selected tour ID: {selected_tour_id}"

    parsed = parse_full_name(lead_name)
    lead = lead_repo.create_lead(
        db,
        {
            "last_name": parsed.last_name,
            "first_name": parsed.first_name,
            "middle_name": parsed.middle_name,
            "email": email,
            "phone": phone,
            "event_id": event.id if event else None,
            "source": "form",
            "form_id": form.id,
            "status": "new",
            "notes": notes,
        },
        created_by_user_id=form.user_id,
    )
    submission = form_repo.create_submission(
        db,
        form_id=form.id,
        data=data,
        lead_id=lead.id,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    logger.info("Form %s submission %s created lead %s", form.id, submission.id, lead.id)
    return SubmissionResult(lead=lead, submission=submission)


def create_booking(db: Session, request: schemas.PublicBookingRequest) -> models.Lead:
    """Turn a public booking request into a ``booking`` lead after a capacity check."""
    name = (request.name or "").strip()
    if request.event_id is None or not name or not (request.email or request.phone):
        raise IntakeValidationError("event_id, name, and either email or phone are required")

    event = event_repo.get_event(db, request.event_id)
    if event is None:
        raise IntakeNotFoundError("Event not found")
    if event.is_full:
        raise IntakeValidationError("Event is fully booked")

    available = event.participant_limit - event_repo.count_confirmed(db, event.id)
    if available <= 0:
        raise IntakeValidationError("No available spots")
    if request.participant_count > available:
        raise IntakeValidationError(
            f"Only {available} spots available, but {request.participant_count} requested"
        )

    event_info = (
        f"Event: {event.name}\n"
        f"Country: {event.country}\n"
        f"Tour Type: {event.tour_type}\n"
        f"Dates: {event.start_date.isoformat()} - {event.end_date.isoformat()}\n"
        f"Participants: {request.participant_count}"
    )
    parsed = parse_full_name(name)
    lead = lead_repo.create_lead(
        db,
        {
            "last_name": parsed.last_name,
            "first_name": parsed.first_name,
            "middle_name": parsed.middle_name,
            "email": request.email or None,
            "phone": request.phone or None,
            "event_id": event.id,
            "source": "booking",
            "status": "new",
            "family_members_count": request.participant_count,
            "notes": f"{request.notes}\n\n{event_info}" if request.notes else event_info,
        },
        created_by_user_id=None,
    )
    logger.info("Public booking for event %s created lead %s", event.id, lead.id)
    return lead
