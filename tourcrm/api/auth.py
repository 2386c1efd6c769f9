"""
Authentication endpoints and helpers.

Username/password login issues bearer session tokens, failed attempts are
rate limited per client IP, and an optional first admin is bootstrapped
from environment configuration at startup.
"""
import logging
import os
import threading
import time
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from tourcrm.db.database import get_db
from tourcrm.db import models, schemas
from tourcrm.db.repositories import sessions as session_repo
from tourcrm.db.repositories import users as user_repo
from tourcrm.utils.token_crypto import verify_password
from tourcrm.api.deps import client_ip, get_current_user_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def session_ttl() -> timedelta:
    return timedelta(hours=_int_env("SESSION_TTL_HOURS", 168))


class LoginRateLimiter:
    """Sliding-window counter of failed logins keyed by client IP."""

    def __init__(self, max_attempts: int, window_seconds: int, sweep_every: int = 100):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.sweep_every = sweep_every
        self._since_sweep = 0
        self._failures: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls) -> "LoginRateLimiter":
        return cls(
            max_attempts=_int_env("LOGIN_MAX_ATTEMPTS", 5),
            window_seconds=_int_env("LOGIN_WINDOW_SECONDS", 900),
        )

    def _recent(self, key: str, now: float) -> List[float]:
        cutoff = now - self.window_seconds
        recent = [t for t in self._failures.get(key, []) if t > cutoff]
        if recent:
            self._failures[key] = recent
        else:
            self._failures.pop(key, None)
        return recent

    def _sweep(self, now: float) -> None:
        # Drop keys whose failures have all left the window
        for key in list(self._failures):
            self._recent(key, now)
        self._since_sweep = 0

    def retry_after(self, key: str, now: Optional[float] = None) -> int:
        """Seconds until ``key`` may try again; 0 when not blocked."""
        now = time.monotonic() if now is None else now
        with self._lock:
            recent = self._recent(key, now)
            if len(recent) < self.max_attempts:
                return 0
            return max(1, int(recent[0] + self.window_seconds - now) + 1)

    def register_failure(self, key: str, now: Optional[float] = None) -> None:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._recent(key, now)
            self._failures.setdefault(key, []).append(now)
            self._since_sweep += 1
            if self._since_sweep >= self.sweep_every:
                self._sweep(now)

    def reset(self, key: str) -> None:
        with self._lock:
            self._failures.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._failures.clear()


login_rate_limiter = LoginRateLimiter.from_env()


def authenticate(db: Session, username: str, password: str) -> Optional[models.User]:
    user = user_repo.get_user_by_username(db, username or "")
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


@router.post("/login", response_model=schemas.LoginResponse)
def login(
    payload: schemas.LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    ip = client_ip(request) or "unknown"
    retry_after = login_rate_limiter.retry_after(ip)
    if retry_after:
        logger.warning("Login rate limit hit for %s (retry in %ss)", ip, retry_after)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "message": "Too many login attempts. Try again later.",
                "retry_after_seconds": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )

    user = authenticate(db, payload.username, payload.password)
    if user is None:
        login_rate_limiter.register_failure(ip)
        logger.info("Failed login for username=%s from %s", payload.username, ip)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    login_rate_limiter.reset(ip)
    auth_session, token = session_repo.create_session(
        db,
        user_id=user.id,
        ttl=session_ttl(),
        ip_address=ip,
        user_agent=request.headers.get("user-agent"),
    )
    logger.info("User %s logged in", user.username)
    return schemas.LoginResponse(
        token=token,
        expires_at=auth_session.expires_at,
        user=schemas.User.model_validate(user),
    )


@router.post("/logout")
def logout(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _user, ctx = user_context
    session_repo.revoke(db, auth_session=ctx["session"])
    return {"message": "Logged out"}


@router.get("/me", response_model=schemas.User)
def me(user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return user


def bootstrap_admin(db: Session) -> Tuple[Optional[models.User], bool]:
    """Create the first admin from BOOTSTRAP_ADMIN_* when no admin exists.

    Returns (user, created).
    """
    username = (os.getenv("BOOTSTRAP_ADMIN_USERNAME") or "").strip()
    password = os.getenv("BOOTSTRAP_ADMIN_PASSWORD") or ""
    if not username or not password:
        return None, False
    if user_repo.count_admins(db) > 0:
        return None, False
    existing = user_repo.get_user_by_username(db, username)
    if existing is not None:
        existing.role = "admin"
        db.commit()
        db.refresh(existing)
        logger.info("Promoted existing user %s to admin", username)
        return existing, False
    user = user_repo.create_user(
        db,
        schemas.UserCreate(username=username, name=username, password=password, role="admin"),
    )
    logger.info("Bootstrapped admin user %s", username)
    return user, True
