"""
User repository functions.

Create/read/update/delete for staff accounts. Passwords are hashed on the
way in and never returned.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from tourcrm.db import models, schemas
from tourcrm.utils.token_crypto import hash_password


def create_user(db: Session, user: schemas.UserCreate) -> models.User:
    db_user = models.User(
        username=user.username.strip(),
        name=user.name,
        email=user.email,
        role=user.role,
        password_hash=hash_password(user.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def get_user(db: Session, user_id: uuid.UUID) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(func.lower(models.User.username) == username.strip().lower())
        .first()
    )


def list_users(db: Session, *, roles: Sequence[str] | None = None) -> List[models.User]:
    q = db.query(models.User)
    if roles:
        q = q.filter(models.User.role.in_(list(roles)))
    return q.order_by(models.User.name.asc()).all()


def count_admins(db: Session) -> int:
    return db.query(models.User).filter(models.User.role == "admin").count()


def update_user(db: Session, user_id: uuid.UUID, user: schemas.UserUpdate) -> Optional[models.User]:
    db_user = get_user(db, user_id)
    if not db_user:
        return None
    update_data = user.model_dump(exclude_unset=True)
    password = update_data.pop("password", None)
    for key, value in update_data.items():
        setattr(db_user, key, value)
    if password:
        db_user.password_hash = hash_password(password)
    db.commit()
    db.refresh(db_user)
    return db_user


def set_password(db: Session, db_user: models.User, password: str) -> models.User:
    db_user.password_hash = hash_password(password)
    db.commit()
    db.refresh(db_user)
    return db_user


def delete_user(db: Session, user_id: uuid.UUID) -> bool:
    db_user = get_user(db, user_id)
    if not db_user:
        return False
    try:
        # Detach ownership references that are optional on the referencing side
        db.query(models.Lead).filter(models.Lead.assigned_user_id == user_id).update(
            {models.Lead.assigned_user_id: None}
        )
        db.query(models.Lead).filter(models.Lead.created_by_user_id == user_id).update(
            {models.Lead.created_by_user_id: None}
        )
        db.query(models.LeadStatusHistory).filter(models.LeadStatusHistory.changed_by_user_id == user_id).update(
            {models.LeadStatusHistory.changed_by_user_id: None}
        )
        db.query(models.Form).filter(models.Form.user_id == user_id).update(
            {models.Form.user_id: None}
        )
        db.delete(db_user)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete user {user_id}: {e}") from e
