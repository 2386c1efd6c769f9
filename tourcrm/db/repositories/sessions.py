"""
Repositories for login sessions.

Implements create/get/revoke and last-used updates for bearer session tokens.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from tourcrm.db import models
from tourcrm.utils import token_crypto


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_session(
    db: Session,
    *,
    user_id: uuid.UUID,
    ttl: timedelta,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Tuple[models.AuthSession, str]:
    token_id, secret, full_token = token_crypto.generate_token()
    now = _now()
    auth_session = models.AuthSession(
        user_id=user_id,
        token_id=token_id,
        token_hash=token_crypto.digest_secret(secret, token_id),
        ip_address=ip_address,
        user_agent=user_agent[:500] if user_agent else None,
        created_at=now,
        expires_at=now + ttl,
    )
    db.add(auth_session)
    db.commit()
    db.refresh(auth_session)
    return auth_session, full_token


def get_by_token_id(db: Session, *, token_id: str) -> Optional[models.AuthSession]:
    return db.query(models.AuthSession).filter(models.AuthSession.token_id == token_id).first()


def is_expired(auth_session: models.AuthSession, *, now: Optional[datetime] = None) -> bool:
    expires_at = auth_session.expires_at
    # SQLite returns naive datetimes; stored values are always UTC
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return (now or _now()) >= expires_at


def mark_used_now(db: Session, *, auth_session: models.AuthSession) -> None:
    auth_session.last_used_at = _now()
    db.commit()


def revoke(db: Session, *, auth_session: models.AuthSession) -> models.AuthSession:
    if auth_session.revoked_at is None:
        auth_session.revoked_at = _now()
        db.commit()
        db.refresh(auth_session)
    return auth_session


def revoke_all_for_user(db: Session, *, user_id: uuid.UUID) -> int:
    count = (
        db.query(models.AuthSession)
        .filter(models.AuthSession.user_id == user_id, models.AuthSession.revoked_at.is_(None))
        .update({models.AuthSession.revoked_at: _now()})
    )
    db.commit()
    return count
