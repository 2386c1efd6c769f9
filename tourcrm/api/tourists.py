"""
Lead tourist API endpoints addressed by tourist id.
"""
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import schemas
from tourcrm.db.repositories import leads as lead_repo
from tourcrm.api.deps import require_admin, require_editor
from tourcrm.api.permissions import ensure_can_edit_lead

router = APIRouter(prefix="/tourists", tags=["tourists"])


@router.patch("/{tourist_id}", response_model=schemas.LeadTourist)
def update_tourist(
    tourist_id: uuid.UUID,
    payload: schemas.LeadTouristUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _user, current_user = user_context
    tourist = lead_repo.get_tourist(db, tourist_id)
    if tourist is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tourist not found")
    if current_user["role"] == "manager":
        ensure_can_edit_lead(tourist.lead, current_user)
    return lead_repo.update_tourist(db, tourist, payload.model_dump(exclude_unset=True))


@router.delete("/{tourist_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tourist(
    tourist_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if not lead_repo.delete_tourist(db, tourist_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tourist not found")
