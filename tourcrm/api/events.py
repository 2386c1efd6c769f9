"""
Events (tours) API endpoints.

Covers event CRUD, archiving, per-event participant/deal/group listings and
the report endpoints (summary JSON and ``.xlsx`` exports). Viewers act as
city guides: they only see events they are assigned to, and only the
cities assigned to them.
"""
import logging
import uuid
from datetime import date
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import models, schemas
from tourcrm.db.repositories import deals as deal_repo
from tourcrm.db.repositories import events as event_repo
from tourcrm.db.repositories import groups as group_repo
from tourcrm.api.deps import get_current_user_context, require_admin, require_editor
from tourcrm.api.permissions import ensure_can_view_event, is_viewer, viewer_cities
from tourcrm.services import summary_report
from tourcrm.services.participants import list_participants
from tourcrm.utils.feature_flags import auto_archive_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def _get_event_or_404(db: Session, event_id: uuid.UUID) -> models.Event:
    db_event = event_repo.get_event(db, event_id)
    if db_event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return db_event


def _visible_event(db: Session, event_id: uuid.UUID, current_user) -> models.Event:
    db_event = _get_event_or_404(db, event_id)
    ensure_can_view_event(db_event, current_user)
    return db_event


def _city_filter(db_event: models.Event, current_user) -> Optional[List[str]]:
    return viewer_cities(db_event, current_user) if is_viewer(current_user) else None


def _xlsx_response(content: bytes, filename: str) -> Response:
    # RFC 5987 form: event names are usually Cyrillic
    disposition = f"attachment; filename*=UTF-8''{quote(filename)}"
    return Response(
        content=content,
        media_type=summary_report.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": disposition},
    )


def _parse_custom_groups(raw: List[str]) -> List[List[uuid.UUID]]:
    groups = []
    for item in raw:
        try:
            ids = [uuid.UUID(part.strip()) for part in item.split(",") if part.strip()]
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid deal id in custom_group")
        if ids:
            groups.append(ids)
    return groups


@router.get("", response_model=List[schemas.EventWithStats])
def list_events(
    include_archived: bool = False,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    """List events newest first; finished events are archived on the way."""
    _user, current_user = user_context
    if auto_archive_enabled():
        archived = event_repo.archive_expired(db, today=date.today())
        if archived:
            logger.info("Auto-archived %s expired events", archived)

    events = event_repo.list_events_with_stats(db, include_archived=include_archived)
    if not is_viewer(current_user):
        return events
    visible = []
    for event in events:
        cities = viewer_cities(event, current_user)
        if cities:
            visible.append(event.model_copy(update={"cities": cities}))
    return visible


@router.get("/{event_id}", response_model=schemas.EventWithStats)
def get_event(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _user, current_user = user_context
    db_event = _visible_event(db, event_id, current_user)
    event = event_repo.with_stats(db_event, event_repo.count_confirmed(db, event_id))
    cities = _city_filter(db_event, current_user)
    if cities is not None:
        event = event.model_copy(update={"cities": cities})
    return event


@router.post("", response_model=schemas.Event, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: schemas.EventCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    db_event = event_repo.create_event(db, payload)
    logger.info("Created event %s (%s)", db_event.id, db_event.name)
    return db_event


@router.patch("/{event_id}", response_model=schemas.Event)
def update_event(
    event_id: uuid.UUID,
    payload: schemas.EventUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    db_event = _get_event_or_404(db, event_id)
    changes = payload.model_dump(exclude_unset=True)
    start = changes.get("start_date", db_event.start_date)
    end = changes.get("end_date", db_event.end_date)
    if start and end and end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date must not be before start_date")

    old_price = db_event.price
    db_event = event_repo.update_event(db, db_event, changes)
    if "price" in changes and changes["price"] != old_price:
        touched = event_repo.update_lead_costs_by_event_price(db, db_event)
        logger.info("Repriced %s leads after price change on event %s", touched, event_id)
    if "participant_limit" in changes:
        db_event = event_repo.refresh_fullness(db, event_id)
    return db_event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if not event_repo.delete_event(db, event_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")


@router.post("/{event_id}/archive", response_model=schemas.Event)
def archive_event(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return event_repo.set_archived(db, _get_event_or_404(db, event_id), True)


@router.post("/{event_id}/unarchive", response_model=schemas.Event)
def unarchive_event(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return event_repo.set_archived(db, _get_event_or_404(db, event_id), False)


@router.get("/{event_id}/participants", response_model=List[schemas.Participant])
def get_participants(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _user, current_user = user_context
    db_event = _visible_event(db, event_id, current_user)
    return list_participants(db, db_event, cities=_city_filter(db_event, current_user))


@router.get("/{event_id}/deals", response_model=List[schemas.DealWithContact])
def get_event_deals(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _get_event_or_404(db, event_id)
    return deal_repo.list_deals_by_event(db, event_id)


@router.get("/{event_id}/groups", response_model=List[schemas.Group])
def get_event_groups(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _user, current_user = user_context
    _visible_event(db, event_id, current_user)
    return group_repo.list_groups_by_event(db, event_id)


# Reports

@router.get("/{event_id}/participants/export")
def export_participants(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _user, current_user = user_context
    db_event = _visible_event(db, event_id, current_user)
    participants = list_participants(db, db_event, cities=_city_filter(db_event, current_user))
    content = summary_report.export_participants(participants)
    return _xlsx_response(content, summary_report.export_filename(f"{db_event.name}_участники"))


@router.get("/{event_id}/summary", response_model=schemas.EventSummary)
def get_summary(
    event_id: uuid.UUID,
    grouped: bool = True,
    ungrouped: List[uuid.UUID] = Query(default=[]),
    custom_group: List[str] = Query(default=[]),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    """Deal-grouped tourist summary.

    - **grouped**: false renders one row per participant
    - **custom_group**: repeatable, comma-separated deal ids forming one group
    - **ungrouped**: repeatable deal ids that should stand alone
    """
    _user, current_user = user_context
    db_event = _visible_event(db, event_id, current_user)
    cities = _city_filter(db_event, current_user)
    participants = list_participants(db, db_event, cities=cities)
    return summary_report.build_summary(
        db_event,
        participants,
        grouped=grouped,
        custom_groups=_parse_custom_groups(custom_group),
        ungrouped=ungrouped,
        cities=cities,
    )


@router.get("/{event_id}/summary/export")
def export_summary(
    event_id: uuid.UUID,
    grouped: bool = True,
    ungrouped: List[uuid.UUID] = Query(default=[]),
    custom_group: List[str] = Query(default=[]),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _user, current_user = user_context
    db_event = _visible_event(db, event_id, current_user)
    cities = _city_filter(db_event, current_user)
    participants = list_participants(db, db_event, cities=cities)
    summary = summary_report.build_summary(
        db_event,
        participants,
        grouped=grouped,
        custom_groups=_parse_custom_groups(custom_group),
        ungrouped=ungrouped,
        cities=cities,
    )
    content = summary_report.export_summary(summary)
    return _xlsx_response(content, summary_report.export_filename(db_event.name))


@router.get("/{event_id}/cities/{city}/export")
def export_city(
    event_id: uuid.UUID,
    city: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _user, current_user = user_context
    db_event = _visible_event(db, event_id, current_user)
    allowed = _city_filter(db_event, current_user)
    cities = allowed if allowed is not None else list(db_event.cities or [])
    if city.lower() not in {c.lower() for c in cities}:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="City not found")
    participants = list_participants(db, db_event, cities=[city])
    content = summary_report.export_city(participants, city)
    return _xlsx_response(content, summary_report.export_filename(f"{db_event.name}_{city}"))
