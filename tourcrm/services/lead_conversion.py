"""
Lead conversion: turning a lead and its tourists into contacts and deals
on an event.

Three entry points share the same building blocks:

- ``auto_convert_lead_to_event`` runs whenever a lead gets (or changes) its
  event. It is idempotent, moves deals off a previous event and never raises.
- ``convert_lead`` is the manual conversion; it also marks the lead as won.
- ``convert_family`` builds a family group from explicit member data and
  rolls everything back when any step fails.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from tourcrm.db import models, schemas
from tourcrm.db.repositories import contacts as contact_repo
from tourcrm.db.repositories import deals as deal_repo
from tourcrm.db.repositories import events as event_repo
from tourcrm.db.repositories import groups as group_repo
from tourcrm.db.repositories import leads as lead_repo
from tourcrm.services import deal_service
from tourcrm.utils.feature_flags import auto_conversion_enabled
from tourcrm.utils.names import display_name

logger = logging.getLogger(__name__)


class ConversionError(ValueError):
    """Raised when the lead or event of a conversion does not exist."""


@dataclass
class ConversionOutcome:
    contacts: List[models.Contact] = field(default_factory=list)
    deals: List[models.Deal] = field(default_factory=list)
    group: Optional[models.Group] = None
    message: str = ""


def family_group_name(last_name: str) -> str:
    return f"Семья {last_name}".strip()


def _load(db: Session, lead_id: uuid.UUID, event_id: uuid.UUID) -> tuple[models.Lead, models.Event]:
    lead = lead_repo.get_lead(db, lead_id)
    if lead is None:
        raise ConversionError("Lead not found")
    event = event_repo.get_event(db, event_id)
    if event is None:
        raise ConversionError("Event not found")
    return lead, event


def _deal_for_event(db: Session, contact: models.Contact, event_id: uuid.UUID) -> Optional[models.Deal]:
    return next((d for d in deal_repo.list_deals_by_contact(db, contact.id) if d.event_id == event_id), None)


def _new_deal(
    db: Session,
    contact: models.Contact,
    event: models.Event,
    *,
    group_id: Optional[uuid.UUID] = None,
    is_primary: bool = False,
) -> models.Deal:
    return deal_service.create_deal_with_visits(
        db,
        schemas.DealCreate(
            contact_id=contact.id,
            event_id=event.id,
            status="pending",
            amount=event.price,
            group_id=group_id,
            is_primary_in_group=is_primary,
        ),
        event,
    )


def _fallback_contact(db: Session, lead: models.Lead) -> models.Contact:
    existing = (
        db.query(models.Contact)
        .filter(models.Contact.lead_id == lead.id, models.Contact.lead_tourist_id.is_(None))
        .order_by(models.Contact.created_at.asc())
        .first()
    )
    if existing is not None:
        return existing
    return contact_repo.create_contact(
        db,
        schemas.ContactCreate(
            name=display_name(lead.first_name, lead.last_name, lead.middle_name) or "Unknown",
            email=lead.email,
            phone=lead.phone,
            notes=lead.notes,
            lead_id=lead.id,
        ),
    )


def _tourist_contact(db: Session, lead: models.Lead, tourist: models.LeadTourist) -> tuple[models.Contact, bool]:
    """Return (contact, created) for a tourist, reusing the linked contact."""
    contact = contact_repo.get_contact_by_lead_tourist(db, tourist.id)
    if contact is not None:
        return contact, False
    contact = contact_repo.create_contact(
        db,
        schemas.ContactCreate(
            name=display_name(tourist.first_name, tourist.last_name, tourist.middle_name) or "Unknown",
            email=tourist.email,
            phone=tourist.phone,
            birth_date=tourist.date_of_birth,
            notes=tourist.notes,
            lead_id=lead.id,
            lead_tourist_id=tourist.id,
        ),
    )
    return contact, True


def _family_group(db: Session, lead: models.Lead, event: models.Event, primary: models.LeadTourist) -> models.Group:
    """Reuse the group already holding this lead's deals on the event, else create one."""
    existing = (
        db.query(models.Group)
        .join(models.Deal, models.Deal.group_id == models.Group.id)
        .join(models.Contact, models.Contact.id == models.Deal.contact_id)
        .filter(models.Group.event_id == event.id, models.Contact.lead_id == lead.id)
        .first()
    )
    if existing is not None:
        return existing
    group = group_repo.create_group(db, event_id=event.id, name=family_group_name(primary.last_name), type="family")
    logger.info("Created family group %s (%s) on event %s", group.id, group.name, event.id)
    return group


def _convert(
    db: Session,
    lead: models.Lead,
    event: models.Event,
    previous_event_id: Optional[uuid.UUID] = None,
) -> ConversionOutcome:
    outcome = ConversionOutcome()
    tourists = lead_repo.list_tourists(db, lead.id)

    if not tourists:
        contact = _fallback_contact(db, lead)
        outcome.contacts.append(contact)
        deal = _deal_for_event(db, contact, event.id)
        if deal is None:
            deal = _new_deal(db, contact, event)
        outcome.deals.append(deal)
        outcome.message = "Lead converted successfully"
        return outcome

    if len(tourists) > 1:
        primary = next((t for t in tourists if t.is_primary), tourists[0])
        outcome.group = _family_group(db, lead, event, primary)
    group_id = outcome.group.id if outcome.group else None

    for tourist in tourists:
        contact, created = _tourist_contact(db, lead, tourist)
        outcome.contacts.append(contact)

        if not created:
            existing = _deal_for_event(db, contact, event.id)
            if existing is not None:
                logger.debug("Deal %s already exists for contact %s on event %s", existing.id, contact.id, event.id)
                outcome.deals.append(existing)
                continue
            if previous_event_id is not None:
                previous = _deal_for_event(db, contact, previous_event_id)
                if previous is not None:
                    outcome.deals.append(
                        deal_service.move_deal(db, previous, event, group_id=group_id, is_primary=tourist.is_primary)
                    )
                    continue
                logger.warning("No deal on previous event %s for contact %s; creating one", previous_event_id, contact.id)

        outcome.deals.append(_new_deal(db, contact, event, group_id=group_id, is_primary=tourist.is_primary))

    outcome.message = (
        f"Created {len(outcome.contacts)} contacts and family group"
        if len(tourists) > 1
        else "Lead converted successfully"
    )
    return outcome


def auto_convert_lead_to_event(
    db: Session,
    lead_id: uuid.UUID,
    event_id: Optional[uuid.UUID],
    previous_event_id: Optional[uuid.UUID] = None,
) -> bool:
    """Convert a lead onto its event. Returns False when skipped or failed."""
    if event_id is None or not auto_conversion_enabled():
        return False
    try:
        lead, event = _load(db, lead_id, event_id)
    except ConversionError as exc:
        logger.info("Auto-conversion of lead %s skipped: %s", lead_id, exc)
        return False
    try:
        outcome = _convert(db, lead, event, previous_event_id)
    except Exception:
        db.rollback()
        logger.exception("Auto-conversion of lead %s to event %s failed", lead_id, event_id)
        return False
    logger.info(
        "Auto-converted lead %s to event %s (%s contacts, %s deals)",
        lead_id, event_id, len(outcome.contacts), len(outcome.deals),
    )
    return True


def convert_lead(
    db: Session,
    lead_id: uuid.UUID,
    event_id: uuid.UUID,
    *,
    changed_by_user_id: Optional[uuid.UUID] = None,
) -> ConversionOutcome:
    lead, event = _load(db, lead_id, event_id)
    logger.info("Converting lead %s to event %s", lead_id, event_id)
    outcome = _convert(db, lead, event)
    lead_repo.update_lead(db, lead, {"status": "won"}, changed_by_user_id=changed_by_user_id)
    return outcome


def convert_family(
    db: Session,
    lead_id: uuid.UUID,
    request: schemas.ConvertFamilyRequest,
    *,
    changed_by_user_id: Optional[uuid.UUID] = None,
) -> ConversionOutcome:
    """Create a family group with one contact and deal per member.

    On failure the created deals, contacts and group are deleted in reverse
    order and the original error is re-raised.
    """
    lead, event = _load(db, lead_id, request.event_id)
    outcome = ConversionOutcome()
    try:
        outcome.group = group_repo.create_group(
            db,
            event_id=event.id,
            name=request.group_name or family_group_name(lead.last_name),
            type="family",
        )
        for index, member in enumerate(request.members):
            contact = contact_repo.create_contact(
                db,
                schemas.ContactCreate(
                    name=member.name,
                    email=member.email,
                    phone=member.phone,
                    passport=member.passport,
                    birth_date=member.birth_date,
                    notes=member.notes,
                    lead_id=lead.id,
                ),
            )
            outcome.contacts.append(contact)
            outcome.deals.append(_new_deal(db, contact, event, group_id=outcome.group.id, is_primary=index == 0))
    except Exception:
        logger.exception("Family conversion of lead %s failed, rolling back", lead_id)
        db.rollback()
        _rollback(db, outcome)
        raise

    lead_repo.update_lead(db, lead, {"status": "won"}, changed_by_user_id=changed_by_user_id)
    outcome.message = f"Successfully created family group with {len(outcome.deals)} members"
    return outcome


def _rollback(db: Session, outcome: ConversionOutcome) -> None:
    # Deals first (visits cascade), then contacts, then the group
    for deal in reversed(outcome.deals):
        try:
            deal_service.delete_deal(db, deal)
        except Exception:
            logger.exception("Failed to roll back deal %s", deal.id)
    for contact in reversed(outcome.contacts):
        try:
            contact_repo.delete_contact(db, contact.id)
        except Exception:
            logger.exception("Failed to roll back contact %s", contact.id)
    if outcome.group is not None:
        try:
            group_repo.delete_group(db, outcome.group.id)
        except Exception:
            logger.exception("Failed to roll back group %s", outcome.group.id)
