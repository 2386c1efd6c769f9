"""
City visit API endpoints addressed by visit id.
"""
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import schemas
from tourcrm.db.repositories import deals as deal_repo
from tourcrm.api.deps import require_editor

router = APIRouter(prefix="/visits", tags=["visits"])


@router.patch("/{visit_id}", response_model=schemas.CityVisit)
def update_visit(
    visit_id: uuid.UUID,
    payload: schemas.CityVisitUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    db_visit = deal_repo.get_visit(db, visit_id)
    if db_visit is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Visit not found")
    return deal_repo.update_visit(db, db_visit, payload)


@router.delete("/{visit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_visit(
    visit_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    if not deal_repo.delete_visit(db, visit_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Visit not found")
