"""
API dependency helpers.

Resolves the bearer session token into the current user and exposes the
role guards used by the routers.
"""
from typing import Any, Dict, Optional, Tuple

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import models
from tourcrm.db.repositories import sessions as session_repo
from tourcrm.utils.token_crypto import parse_token, verify_secret


# Contract:
# Returns (sqlalchemy User model, current_user_context_dict)
# Raises 401 if the session cannot be resolved.

def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user_context(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
) -> Tuple[models.User, Dict[str, Any]]:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise _unauthorized()
    parsed = parse_token(authorization[7:].strip())
    if not parsed:
        raise _unauthorized()

    auth_session = session_repo.get_by_token_id(db, token_id=parsed.token_id)
    if not auth_session or not verify_secret(parsed.secret, parsed.token_id, auth_session.token_hash):
        raise _unauthorized()
    if auth_session.revoked_at is not None or session_repo.is_expired(auth_session):
        raise _unauthorized()

    user = auth_session.user
    if user is None:
        raise _unauthorized()
    session_repo.mark_used_now(db, auth_session=auth_session)

    current_user = {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "role": user.role,
        "is_admin": user.role == "admin",
        "session": auth_session,
    }
    return user, current_user


def require_admin(user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    if user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Admin access required")
    return user_context


def require_editor(user_context=Depends(get_current_user_context)):
    """Admins and managers; viewers are read-only."""
    user, _ctx = user_context
    if user.role == "viewer":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Viewers have read-only access")
    return user_context


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None
