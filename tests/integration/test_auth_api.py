from tourcrm.api.auth import bootstrap_admin, login_rate_limiter
from tourcrm.db import models

DEFAULT_PASSWORD = "secret-pass"


def _login(client, username, password=DEFAULT_PASSWORD):
    return client.post("/auth/login", json={"username": username, "password": password})


def test_login_returns_token_usable_for_me(client, manager_user):
    r = _login(client, "manager")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["user"]["username"] == "manager"
    assert body["user"]["role"] == "manager"
    assert "password_hash" not in body["user"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["id"] == str(manager_user.id)


def test_login_wrong_password_is_401(client, manager_user):
    r = _login(client, "manager", "nope")
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid username or password"


def test_unknown_user_is_401(client, db_session):
    assert _login(client, "ghost").status_code == 401


def test_requests_without_token_are_401(client, db_session):
    r = client.get("/auth/me")
    assert r.status_code == 401
    assert r.headers.get("www-authenticate") == "Bearer"
    assert client.get("/events", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_repeated_failures_are_rate_limited(client, manager_user):
    for _ in range(login_rate_limiter.max_attempts):
        assert _login(client, "manager", "wrong").status_code == 401

    # Even the right password is refused while blocked
    r = _login(client, "manager")
    assert r.status_code == 429
    assert int(r.headers["Retry-After"]) >= 1
    assert r.json()["detail"]["retry_after_seconds"] >= 1


def test_successful_login_resets_failures(client, manager_user):
    for _ in range(login_rate_limiter.max_attempts - 1):
        _login(client, "manager", "wrong")
    assert _login(client, "manager").status_code == 200
    assert _login(client, "manager", "wrong").status_code == 401
    assert _login(client, "manager").status_code == 200


def test_logout_revokes_session(client, manager_user):
    token = _login(client, "manager").json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    r = client.post("/auth/logout", headers=headers)
    assert r.status_code == 200
    assert client.get("/auth/me", headers=headers).status_code == 401


def test_bootstrap_admin_creates_first_admin(db_session, monkeypatch):
    monkeypatch.setenv("BOOTSTRAP_ADMIN_USERNAME", "root")
    monkeypatch.setenv("BOOTSTRAP_ADMIN_PASSWORD", "changeme")

    user, created = bootstrap_admin(db_session)
    assert created is True
    assert user.role == "admin"

    # Second run is a no-op once an admin exists
    again, created_again = bootstrap_admin(db_session)
    assert again is None and created_again is False
    assert db_session.query(models.User).count() == 1


def test_bootstrap_admin_promotes_existing_user(db_session, user_factory, monkeypatch):
    user_factory("root", role="viewer")
    monkeypatch.setenv("BOOTSTRAP_ADMIN_USERNAME", "root")
    monkeypatch.setenv("BOOTSTRAP_ADMIN_PASSWORD", "changeme")

    user, created = bootstrap_admin(db_session)
    assert created is False
    assert user.role == "admin"


def test_bootstrap_admin_without_env_does_nothing(db_session):
    assert bootstrap_admin(db_session) == (None, False)
