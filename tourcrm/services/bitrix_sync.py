"""
Bitrix24 sync workflows for tourists attached to smart-process entities.

Every remote call is recorded through ``tourcrm.sync_log``. Creating a
tourist is all-or-nothing: when a remote step fails, whatever was already
created (remote contact, local tourist) is removed again before the error
propagates.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from tourcrm import sync_log
from tourcrm.db import models
from tourcrm.db.repositories import leads as lead_repo
from tourcrm.services.bitrix24 import Bitrix24Error, Bitrix24Service
from tourcrm.sync_log import SyncOperation, SyncStatus
from tourcrm.utils.names import display_name

logger = logging.getLogger(__name__)

# Tourist fields that have a counterpart on the Bitrix24 contact
_REMOTE_FIELDS = ("last_name", "first_name", "middle_name", "email", "phone")


def _remote_name(tourist: models.LeadTourist) -> str:
    return display_name(tourist.first_name, tourist.last_name, tourist.middle_name)


def create_entity_tourist(
    db: Session,
    service: Optional[Bitrix24Service],
    *,
    entity_id: str,
    entity_type_id: str,
    data: Dict[str, Any],
) -> models.LeadTourist:
    """Create a tourist for an entity and mirror it as a linked Bitrix24 contact.

    Re-raises the remote error after rolling back when any remote step fails.
    Without a configured service the tourist is stored locally only.
    """
    tourist = lead_repo.create_tourist(
        db,
        {**data, "lead_id": None, "entity_id": str(entity_id), "entity_type_id": str(entity_type_id)},
    )
    if service is None:
        return tourist

    tourist_id = tourist.id
    try:
        contact_id = service.create_contact(_remote_name(tourist), tourist.email, tourist.phone)
    except Exception as exc:
        logger.warning("Bitrix24 contact creation failed for tourist %s; removing it", tourist_id)
        sync_log.log_contact(
            db,
            operation=SyncOperation.CREATE,
            tourist_id=tourist_id,
            status=SyncStatus.ERROR,
            error_message=str(exc),
        )
        lead_repo.delete_tourist(db, tourist_id)
        raise

    tourist = lead_repo.update_tourist(db, tourist, {"bitrix_contact_id": contact_id})
    sync_log.log_contact(db, operation=SyncOperation.CREATE, tourist_id=tourist_id, bitrix_contact_id=contact_id)

    try:
        service.link_contact_to_entity(str(entity_id), str(entity_type_id), contact_id)
    except Exception as exc:
        logger.warning(
            "Linking Bitrix24 contact %s to entity %s/%s failed; rolling back",
            contact_id, entity_type_id, entity_id,
        )
        sync_log.log_entity(
            db,
            operation=SyncOperation.LINK,
            entity_type_id=entity_type_id,
            entity_id=entity_id,
            status=SyncStatus.ERROR,
            details={"contact_id": contact_id},
            error_message=str(exc),
        )
        try:
            service.delete_contact(contact_id)
            sync_log.log_contact(db, operation=SyncOperation.DELETE, tourist_id=tourist_id, bitrix_contact_id=contact_id)
        except Bitrix24Error as cleanup_exc:
            logger.error("Could not delete orphaned Bitrix24 contact %s: %s", contact_id, cleanup_exc)
            sync_log.log_contact(
                db,
                operation=SyncOperation.DELETE,
                tourist_id=tourist_id,
                bitrix_contact_id=contact_id,
                status=SyncStatus.ERROR,
                error_message=str(cleanup_exc),
            )
        lead_repo.delete_tourist(db, tourist_id)
        raise

    sync_log.log_entity(
        db,
        operation=SyncOperation.LINK,
        entity_type_id=entity_type_id,
        entity_id=entity_id,
        details={"contact_id": contact_id},
    )
    return tourist


def update_entity_tourist(
    db: Session,
    service: Optional[Bitrix24Service],
    tourist: models.LeadTourist,
    changes: Dict[str, Any],
) -> models.LeadTourist:
    tourist = lead_repo.update_tourist(db, tourist, changes)
    if service is None or not tourist.bitrix_contact_id:
        return tourist

    touched = [f for f in _REMOTE_FIELDS if f in changes]
    if not touched:
        return tourist
    remote: Dict[str, Any] = {}
    if {"last_name", "first_name", "middle_name"} & set(touched):
        remote["name"] = _remote_name(tourist)
    if "email" in touched:
        remote["email"] = tourist.email
    if "phone" in touched:
        remote["phone"] = tourist.phone

    try:
        service.update_contact(tourist.bitrix_contact_id, remote)
    except Bitrix24Error as exc:
        sync_log.log_contact(
            db,
            operation=SyncOperation.UPDATE,
            tourist_id=tourist.id,
            bitrix_contact_id=tourist.bitrix_contact_id,
            status=SyncStatus.ERROR,
            error_message=str(exc),
        )
        raise
    sync_log.log_contact(
        db,
        operation=SyncOperation.UPDATE,
        tourist_id=tourist.id,
        bitrix_contact_id=tourist.bitrix_contact_id,
        details={"fields": sorted(remote)},
    )
    return tourist


def delete_entity_tourist(
    db: Session,
    service: Optional[Bitrix24Service],
    tourist: models.LeadTourist,
) -> bool:
    """Delete the remote contact when linked, then the local tourist.

    Remote failures are recorded but never block the local delete.
    """
    tourist_id: uuid.UUID = tourist.id
    contact_id = tourist.bitrix_contact_id
    if service is not None and contact_id:
        try:
            service.delete_contact(contact_id)
            sync_log.log_contact(db, operation=SyncOperation.DELETE, tourist_id=tourist_id, bitrix_contact_id=contact_id)
        except Bitrix24Error as exc:
            logger.warning("Bitrix24 contact %s delete failed: %s", contact_id, exc)
            sync_log.log_contact(
                db,
                operation=SyncOperation.DELETE,
                tourist_id=tourist_id,
                bitrix_contact_id=contact_id,
                status=SyncStatus.ERROR,
                error_message=str(exc),
            )
    return lead_repo.delete_tourist(db, tourist_id)


def push_route(db: Session, service: Bitrix24Service, *, entity_id: str, entity_type_id: str, route: Any) -> None:
    try:
        service.update_entity_user_fields(entity_id, entity_type_id, route)
    except Bitrix24Error as exc:
        sync_log.log_entity(
            db,
            operation=SyncOperation.ROUTE_UPDATE,
            entity_type_id=entity_type_id,
            entity_id=entity_id,
            status=SyncStatus.ERROR,
            error_message=str(exc),
        )
        raise
    sync_log.log_entity(db, operation=SyncOperation.ROUTE_UPDATE, entity_type_id=entity_type_id, entity_id=entity_id)


def fetch_route(db: Session, service: Bitrix24Service, *, entity_id: str, entity_type_id: str) -> Any:
    try:
        route = service.get_entity_user_fields(entity_id, entity_type_id)
    except Bitrix24Error as exc:
        sync_log.log_entity(
            db,
            operation=SyncOperation.FETCH,
            entity_type_id=entity_type_id,
            entity_id=entity_id,
            status=SyncStatus.ERROR,
            error_message=str(exc),
        )
        raise
    sync_log.log_entity(
        db,
        operation=SyncOperation.FETCH,
        entity_type_id=entity_type_id,
        entity_id=entity_id,
        details={"has_route": route is not None},
    )
    return route
