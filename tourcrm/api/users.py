"""
Users API endpoints.

Staff account management; every route requires an admin.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import schemas
from tourcrm.db.repositories import sessions as session_repo
from tourcrm.db.repositories import users as user_repo
from tourcrm.api.deps import require_admin

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[schemas.User])
def list_users(
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    return user_repo.list_users(db)


@router.get("/viewers", response_model=List[schemas.User])
def list_viewers(
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    return user_repo.list_users(db, roles=["viewer"])


@router.get("/managers", response_model=List[schemas.User])
def list_managers(
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    return user_repo.list_users(db, roles=["manager", "admin"])


@router.post("", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: schemas.UserCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if user_repo.get_user_by_username(db, payload.username):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")
    return user_repo.create_user(db, payload)


@router.patch("/{user_id}", response_model=schemas.User)
def update_user(
    user_id: uuid.UUID,
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    if payload.username is not None:
        existing = user_repo.get_user_by_username(db, payload.username)
        if existing is not None and existing.id != user_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")
    db_user = user_repo.update_user(db, user_id, payload)
    if db_user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if payload.password:
        # A new password invalidates every open session of that user
        session_repo.revoke_all_for_user(db, user_id=db_user.id)
    return db_user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_admin),
):
    user, _ctx = user_context
    if user.id == user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account")
    if not user_repo.delete_user(db, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
