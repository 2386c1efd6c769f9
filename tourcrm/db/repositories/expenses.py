"""
Expense repository functions: per-participant and common event expenses
(upserted on their natural keys) and the base expense catalog.
"""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from tourcrm.db import models, schemas


def list_participant_expenses(db: Session, event_id: uuid.UUID) -> List[models.ParticipantExpense]:
    return (
        db.query(models.ParticipantExpense)
        .filter(models.ParticipantExpense.event_id == event_id)
        .order_by(models.ParticipantExpense.city.asc(), models.ParticipantExpense.expense_type.asc())
        .all()
    )


def list_common_expenses(db: Session, event_id: uuid.UUID) -> List[models.CommonExpense]:
    return (
        db.query(models.CommonExpense)
        .filter(models.CommonExpense.event_id == event_id)
        .order_by(models.CommonExpense.city.asc(), models.CommonExpense.expense_type.asc())
        .all()
    )


def upsert_participant_expense(
    db: Session, event_id: uuid.UUID, expense: schemas.ParticipantExpenseUpsert
) -> models.ParticipantExpense:
    db_expense = (
        db.query(models.ParticipantExpense)
        .filter(
            models.ParticipantExpense.event_id == event_id,
            models.ParticipantExpense.deal_id == expense.deal_id,
            models.ParticipantExpense.city == expense.city,
            models.ParticipantExpense.expense_type == expense.expense_type,
        )
        .first()
    )
    if db_expense is None:
        db_expense = models.ParticipantExpense(event_id=event_id, **expense.model_dump())
        db.add(db_expense)
    else:
        db_expense.amount = expense.amount
        db_expense.currency = expense.currency
        db_expense.comment = expense.comment
    db.commit()
    db.refresh(db_expense)
    return db_expense


def delete_participant_expense(
    db: Session, event_id: uuid.UUID, *, deal_id: uuid.UUID, city: str, expense_type: str
) -> bool:
    count = (
        db.query(models.ParticipantExpense)
        .filter(
            models.ParticipantExpense.event_id == event_id,
            models.ParticipantExpense.deal_id == deal_id,
            models.ParticipantExpense.city == city,
            models.ParticipantExpense.expense_type == expense_type,
        )
        .delete()
    )
    db.commit()
    return count > 0


def upsert_common_expense(db: Session, event_id: uuid.UUID, expense: schemas.CommonExpenseUpsert) -> models.CommonExpense:
    db_expense = (
        db.query(models.CommonExpense)
        .filter(
            models.CommonExpense.event_id == event_id,
            models.CommonExpense.city == expense.city,
            models.CommonExpense.expense_type == expense.expense_type,
        )
        .first()
    )
    if db_expense is None:
        db_expense = models.CommonExpense(event_id=event_id, **expense.model_dump())
        db.add(db_expense)
    else:
        db_expense.amount = expense.amount
        db_expense.currency = expense.currency
        db_expense.comment = expense.comment
    db.commit()
    db.refresh(db_expense)
    return db_expense


def delete_common_expense(db: Session, event_id: uuid.UUID, *, city: str, expense_type: str) -> bool:
    count = (
        db.query(models.CommonExpense)
        .filter(
            models.CommonExpense.event_id == event_id,
            models.CommonExpense.city == city,
            models.CommonExpense.expense_type == expense_type,
        )
        .delete()
    )
    db.commit()
    return count > 0


# Base expense catalog

def list_base_expenses(db: Session) -> List[models.BaseExpense]:
    return (
        db.query(models.BaseExpense)
        .order_by(models.BaseExpense.category.asc(), models.BaseExpense.name.asc())
        .all()
    )


def get_base_expense(db: Session, expense_id: uuid.UUID) -> Optional[models.BaseExpense]:
    return db.query(models.BaseExpense).filter(models.BaseExpense.id == expense_id).first()


def create_base_expense(db: Session, expense: schemas.BaseExpenseCreate) -> models.BaseExpense:
    db_expense = models.BaseExpense(**expense.model_dump())
    db.add(db_expense)
    db.commit()
    db.refresh(db_expense)
    return db_expense


def update_base_expense(
    db: Session, db_expense: models.BaseExpense, expense: schemas.BaseExpenseUpdate
) -> models.BaseExpense:
    for key, value in expense.model_dump(exclude_unset=True).items():
        setattr(db_expense, key, value)
    db.commit()
    db.refresh(db_expense)
    return db_expense


def delete_base_expense(db: Session, expense_id: uuid.UUID) -> bool:
    db_expense = get_base_expense(db, expense_id)
    if not db_expense:
        return False
    db.delete(db_expense)
    db.commit()
    return True
