"""Participant rows of an event: deal plus contact, tourist, lead, visits and group."""
from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from tourcrm.db import models, schemas


def list_participants(
    db: Session,
    event: models.Event,
    *,
    cities: Optional[Iterable[str]] = None,
) -> List[schemas.Participant]:
    """Return the event's participants in booking order.

    When ``cities`` is given, visits outside those cities are dropped (a
    city guide only sees their own legs).
    """
    allowed = {c.lower() for c in cities} if cities is not None else None
    deals = (
        db.query(models.Deal)
        .options(
            selectinload(models.Deal.contact).selectinload(models.Contact.lead_tourist),
            selectinload(models.Deal.contact).selectinload(models.Contact.lead),
            selectinload(models.Deal.visits),
            selectinload(models.Deal.group),
        )
        .filter(models.Deal.event_id == event.id)
        .order_by(models.Deal.created_at.asc())
        .all()
    )
    participants = []
    for deal in deals:
        contact = deal.contact
        visits = [v for v in deal.visits if allowed is None or v.city.lower() in allowed]
        participants.append(
            schemas.Participant(
                deal=schemas.Deal.model_validate(deal),
                contact=schemas.Contact.model_validate(contact),
                lead_tourist=schemas.LeadTourist.model_validate(contact.lead_tourist) if contact.lead_tourist else None,
                lead=schemas.Lead.model_validate(contact.lead) if contact.lead else None,
                visits=[schemas.CityVisit.model_validate(v) for v in visits],
                group=schemas.Group.model_validate(deal.group) if deal.group else None,
            )
        )
    return participants
