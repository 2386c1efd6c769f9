"""
Bitrix24 integration endpoints.

Tourists attached to a Bitrix24 smart-process entity are mirrored as linked
Bitrix24 contacts, and the entity's route is kept in a user field. Remote
failures answer 502; operations that need the remote side answer 503 when
the integration is not configured.
"""
import logging
import math
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import models, schemas
from tourcrm.db.repositories import leads as lead_repo
from tourcrm.db.repositories import sync_logs as sync_log_repo
from tourcrm.api.deps import require_admin, require_editor
from tourcrm.services import bitrix_sync
from tourcrm.services.bitrix24 import Bitrix24Error, Bitrix24Service, get_bitrix24_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bitrix", tags=["bitrix24"])
sync_logs_router = APIRouter(prefix="/sync-logs", tags=["bitrix24"])


def _bad_gateway(exc: Bitrix24Error) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


def _require_service(service: Optional[Bitrix24Service]) -> Bitrix24Service:
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Bitrix24 integration is not configured")
    return service


def _get_tourist_or_404(db: Session, tourist_id: uuid.UUID) -> models.LeadTourist:
    tourist = lead_repo.get_tourist(db, tourist_id)
    if tourist is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tourist not found")
    return tourist


@router.get("/status", response_model=schemas.BitrixStatus)
def get_status(
    service: Optional[Bitrix24Service] = Depends(get_bitrix24_service),
    user_context=Depends(require_editor),
):
    return schemas.BitrixStatus(
        enabled=service is not None,
        route_field=service.config.route_field if service is not None else None,
    )


@router.get("/entities/{entity_type_id}/{entity_id}/tourists", response_model=List[schemas.LeadTourist])
def list_entity_tourists(
    entity_type_id: int,
    entity_id: int,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return lead_repo.list_entity_tourists(db, entity_type_id=str(entity_type_id), entity_id=str(entity_id))


@router.post(
    "/entities/{entity_type_id}/{entity_id}/tourists",
    response_model=schemas.LeadTourist,
    status_code=status.HTTP_201_CREATED,
)
def create_entity_tourist(
    entity_type_id: int,
    entity_id: int,
    payload: schemas.EntityTouristCreate,
    db: Session = Depends(get_db),
    service: Optional[Bitrix24Service] = Depends(get_bitrix24_service),
    user_context=Depends(require_editor),
):
    try:
        return bitrix_sync.create_entity_tourist(
            db,
            service,
            entity_id=str(entity_id),
            entity_type_id=str(entity_type_id),
            data=payload.model_dump(),
        )
    except Bitrix24Error as exc:
        raise _bad_gateway(exc)


@router.patch("/tourists/{tourist_id}", response_model=schemas.LeadTourist)
def update_entity_tourist(
    tourist_id: uuid.UUID,
    payload: schemas.EntityTouristUpdate,
    db: Session = Depends(get_db),
    service: Optional[Bitrix24Service] = Depends(get_bitrix24_service),
    user_context=Depends(require_editor),
):
    tourist = _get_tourist_or_404(db, tourist_id)
    try:
        return bitrix_sync.update_entity_tourist(db, service, tourist, payload.model_dump(exclude_unset=True))
    except Bitrix24Error as exc:
        raise _bad_gateway(exc)


@router.delete("/tourists/{tourist_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entity_tourist(
    tourist_id: uuid.UUID,
    db: Session = Depends(get_db),
    service: Optional[Bitrix24Service] = Depends(get_bitrix24_service),
    user_context=Depends(require_editor),
):
    bitrix_sync.delete_entity_tourist(db, service, _get_tourist_or_404(db, tourist_id))


@router.get("/entities/{entity_type_id}/{entity_id}/route", response_model=schemas.RouteResponse)
def get_route(
    entity_type_id: int,
    entity_id: int,
    db: Session = Depends(get_db),
    service: Optional[Bitrix24Service] = Depends(get_bitrix24_service),
    user_context=Depends(require_editor),
):
    service = _require_service(service)
    try:
        route = bitrix_sync.fetch_route(db, service, entity_id=str(entity_id), entity_type_id=str(entity_type_id))
    except Bitrix24Error as exc:
        raise _bad_gateway(exc)
    return schemas.RouteResponse(entity_id=str(entity_id), entity_type_id=str(entity_type_id), route=route)


@router.put("/entities/{entity_type_id}/{entity_id}/route", response_model=schemas.RouteResponse)
def put_route(
    entity_type_id: int,
    entity_id: int,
    payload: schemas.RouteUpdate,
    db: Session = Depends(get_db),
    service: Optional[Bitrix24Service] = Depends(get_bitrix24_service),
    user_context=Depends(require_editor),
):
    service = _require_service(service)
    try:
        bitrix_sync.push_route(
            db, service, entity_id=str(entity_id), entity_type_id=str(entity_type_id), route=payload.route
        )
    except Bitrix24Error as exc:
        raise _bad_gateway(exc)
    return schemas.RouteResponse(entity_id=str(entity_id), entity_type_id=str(entity_type_id), route=payload.route)


@router.get("/deals")
def list_deals(
    category_id: Optional[str] = None,
    service: Optional[Bitrix24Service] = Depends(get_bitrix24_service),
    user_context=Depends(require_editor),
):
    service = _require_service(service)
    deal_filter = {"CATEGORY_ID": category_id} if category_id else {}
    try:
        return service.list_deals(deal_filter)
    except Bitrix24Error as exc:
        raise _bad_gateway(exc)


@sync_logs_router.get("", response_model=schemas.SyncLogPage)
def list_sync_logs(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=200),
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    logs, total = sync_log_repo.list_logs(db, page=page, limit=limit)
    return schemas.SyncLogPage(
        logs=[schemas.SyncLog.model_validate(log) for log in logs],
        pagination=schemas.Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if total else 0,
        ),
    )
