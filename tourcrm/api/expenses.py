"""
Expense API endpoints.

Per-event participant and common expenses are upserted on their natural
keys; base expenses are a price list managed by admins.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import schemas
from tourcrm.db.repositories import deals as deal_repo
from tourcrm.db.repositories import events as event_repo
from tourcrm.db.repositories import expenses as expense_repo
from tourcrm.api.deps import require_admin, require_editor

router = APIRouter(prefix="/events/{event_id}/expenses", tags=["expenses"])
base_router = APIRouter(prefix="/base-expenses", tags=["expenses"])


def _ensure_event(db: Session, event_id: uuid.UUID) -> None:
    if event_repo.get_event(db, event_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")


@router.get("", response_model=schemas.EventExpenses)
def get_event_expenses(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _ensure_event(db, event_id)
    return schemas.EventExpenses(
        participant_expenses=[
            schemas.ParticipantExpense.model_validate(e) for e in expense_repo.list_participant_expenses(db, event_id)
        ],
        common_expenses=[schemas.CommonExpense.model_validate(e) for e in expense_repo.list_common_expenses(db, event_id)],
    )


@router.put("/participant", response_model=schemas.ParticipantExpense)
def upsert_participant_expense(
    event_id: uuid.UUID,
    payload: schemas.ParticipantExpenseUpsert,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _ensure_event(db, event_id)
    db_deal = deal_repo.get_deal(db, payload.deal_id)
    if db_deal is None or db_deal.event_id != event_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Deal does not belong to this event")
    return expense_repo.upsert_participant_expense(db, event_id, payload)


@router.delete("/participant", status_code=status.HTTP_204_NO_CONTENT)
def delete_participant_expense(
    event_id: uuid.UUID,
    deal_id: uuid.UUID,
    city: str,
    expense_type: str,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    if not expense_repo.delete_participant_expense(db, event_id, deal_id=deal_id, city=city, expense_type=expense_type):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")


@router.put("/common", response_model=schemas.CommonExpense)
def upsert_common_expense(
    event_id: uuid.UUID,
    payload: schemas.CommonExpenseUpsert,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    _ensure_event(db, event_id)
    return expense_repo.upsert_common_expense(db, event_id, payload)


@router.delete("/common", status_code=status.HTTP_204_NO_CONTENT)
def delete_common_expense(
    event_id: uuid.UUID,
    city: str,
    expense_type: str,
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    if not expense_repo.delete_common_expense(db, event_id, city=city, expense_type=expense_type):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")


# Base expenses

@base_router.get("", response_model=List[schemas.BaseExpense])
def list_base_expenses(
    db: Session = Depends(get_db),
    user_context=Depends(require_editor),
):
    return expense_repo.list_base_expenses(db)


@base_router.post("", response_model=schemas.BaseExpense, status_code=status.HTTP_201_CREATED)
def create_base_expense(
    payload: schemas.BaseExpenseCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    return expense_repo.create_base_expense(db, payload)


@base_router.patch("/{expense_id}", response_model=schemas.BaseExpense)
def update_base_expense(
    expense_id: uuid.UUID,
    payload: schemas.BaseExpenseUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    db_expense = expense_repo.get_base_expense(db, expense_id)
    if db_expense is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Base expense not found")
    return expense_repo.update_base_expense(db, db_expense, payload)


@base_router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_base_expense(
    expense_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if not expense_repo.delete_base_expense(db, expense_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Base expense not found")
