import os
from datetime import date, timedelta
from decimal import Decimal

import pytest

# Integration is configured per test; never reach a real webhook from the suite
os.environ.pop("BITRIX24_WEBHOOK_URL", None)
os.environ.pop("BOOTSTRAP_ADMIN_USERNAME", None)
os.environ.pop("BOOTSTRAP_ADMIN_PASSWORD", None)
os.environ.setdefault("PYTEST_RUNNING", "1")

from fastapi.testclient import TestClient

import tourcrm.db.database as db_module
from tourcrm.db import models
from tourcrm.db.repositories import sessions as session_repo
from tourcrm.api.auth import login_rate_limiter
from tourcrm.api.main import app
from tourcrm.services.bitrix24 import reset_bitrix24_service
from tourcrm.utils.feature_flags import refresh_feature_flag_cache
from tourcrm.utils.token_crypto import hash_password

_FLAG_ENV = (
    "FEATURE_BITRIX_SYNC_ENABLED",
    "FEATURE_AUTO_CONVERSION_ENABLED",
    "FEATURE_PUBLIC_FORMS_ENABLED",
    "FEATURE_AUTO_ARCHIVE_ENABLED",
)

# Session shared between the test body and request handlers
_CURRENT_SESSION = None


@pytest.fixture(autouse=True)
def _isolated_runtime(monkeypatch):
    """Reset process-wide caches so tests never see each other's config."""
    for env_name in _FLAG_ENV:
        monkeypatch.delenv(env_name, raising=False)
    monkeypatch.delenv("BITRIX24_WEBHOOK_URL", raising=False)
    refresh_feature_flag_cache()
    reset_bitrix24_service()
    login_rate_limiter.clear()
    yield
    refresh_feature_flag_cache()
    reset_bitrix24_service()
    login_rate_limiter.clear()


# Fresh schema per test on the shared in-memory SQLite engine
@pytest.fixture
def db_session():
    global _CURRENT_SESSION
    models.Base.metadata.create_all(bind=db_module.engine)
    session = db_module.SessionLocal()
    _CURRENT_SESSION = session
    try:
        yield session
    finally:
        _CURRENT_SESSION = None
        session.close()
        models.Base.metadata.drop_all(bind=db_module.engine)


def _override_get_db():
    if _CURRENT_SESSION is not None:
        yield _CURRENT_SESSION
        return
    # Last resort: ad-hoc session
    session = db_module.SessionLocal()
    try:
        yield session
    finally:
        session.close()


app.dependency_overrides[db_module.get_db] = _override_get_db


@pytest.fixture
def db(db_session):
    return db_session


@pytest.fixture
def client(db_session):
    return TestClient(app)


# User / auth fixtures

DEFAULT_PASSWORD = "secret-pass"


@pytest.fixture
def user_factory(db_session):
    def _create(username: str, role: str = "manager", password: str = DEFAULT_PASSWORD, name: str | None = None):
        user = models.User(
            username=username,
            name=name or username.title(),
            role=role,
            password_hash=hash_password(password),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def auth_headers(db_session):
    def _headers(user) -> dict:
        _, token = session_repo.create_session(db_session, user_id=user.id, ttl=timedelta(hours=1))
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def admin_user(user_factory):
    return user_factory("admin", role="admin")


@pytest.fixture
def manager_user(user_factory):
    return user_factory("manager", role="manager")


@pytest.fixture
def viewer_user(user_factory):
    return user_factory("viewer", role="viewer")


@pytest.fixture
def admin_headers(admin_user, auth_headers):
    return auth_headers(admin_user)


@pytest.fixture
def manager_headers(manager_user, auth_headers):
    return auth_headers(manager_user)


@pytest.fixture
def viewer_headers(viewer_user, auth_headers):
    return auth_headers(viewer_user)


# Domain factories

@pytest.fixture
def event_factory(db_session):
    def _create(**overrides):
        start = overrides.pop("start_date", date.today() + timedelta(days=30))
        values = {
            "name": "Золотой Китай",
            "country": "Китай",
            "cities": ["Beijing", "Xian", "Shanghai"],
            "tour_type": "group",
            "start_date": start,
            "end_date": start + timedelta(days=10),
            "participant_limit": 10,
            "price": Decimal("150000.00"),
        }
        values.update(overrides)
        event = models.Event(**values)
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event
    return _create


@pytest.fixture
def contact_factory(db_session):
    def _create(name: str = "Иван Петров", **overrides):
        contact = models.Contact(name=name, **overrides)
        db_session.add(contact)
        db_session.commit()
        db_session.refresh(contact)
        return contact
    return _create


@pytest.fixture
def deal_factory(db_session, contact_factory):
    def _create(event, contact=None, status: str = "confirmed", **overrides):
        deal = models.Deal(
            contact_id=(contact or contact_factory()).id,
            event_id=event.id,
            status=status,
            **overrides,
        )
        db_session.add(deal)
        db_session.commit()
        db_session.refresh(deal)
        return deal
    return _create


@pytest.fixture
def lead_factory(db_session):
    def _create(**overrides):
        values = {"last_name": "Иванов", "first_name": "Иван", "status": "new", "source": "manual"}
        values.update(overrides)
        lead = models.Lead(**values)
        db_session.add(lead)
        db_session.commit()
        db_session.refresh(lead)
        return lead
    return _create
