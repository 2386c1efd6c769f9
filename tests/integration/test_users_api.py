def test_users_require_admin(client, manager_headers, viewer_headers):
    assert client.get("/users", headers=manager_headers).status_code == 403
    assert client.get("/users", headers=viewer_headers).status_code == 403


def test_create_and_list_users(client, admin_headers):
    r = client.post(
        "/users",
        json={"username": "guide1", "name": "Гид Пекин", "password": "guide-pass", "role": "viewer"},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "viewer"
    assert "password" not in r.json()

    usernames = {u["username"] for u in client.get("/users", headers=admin_headers).json()}
    assert usernames == {"admin", "guide1"}

    viewers = client.get("/users/viewers", headers=admin_headers).json()
    assert [u["username"] for u in viewers] == ["guide1"]
    managers = client.get("/users/managers", headers=admin_headers).json()
    assert [u["username"] for u in managers] == ["admin"]


def test_duplicate_username_rejected(client, admin_headers, manager_user):
    r = client.post(
        "/users",
        json={"username": "manager", "name": "Another", "password": "whatever"},
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Username already exists"


def test_short_password_rejected(client, admin_headers):
    r = client.post(
        "/users",
        json={"username": "shorty", "name": "Shorty", "password": "123"},
        headers=admin_headers,
    )
    assert r.status_code == 422


def test_password_change_revokes_sessions(client, admin_headers, manager_user, manager_headers):
    assert client.get("/auth/me", headers=manager_headers).status_code == 200

    r = client.patch(f"/users/{manager_user.id}", json={"password": "brand-new"}, headers=admin_headers)
    assert r.status_code == 200
    assert client.get("/auth/me", headers=manager_headers).status_code == 401

    login = client.post("/auth/login", json={"username": "manager", "password": "brand-new"})
    assert login.status_code == 200


def test_rename_to_taken_username_rejected(client, admin_headers, manager_user, viewer_user):
    r = client.patch(f"/users/{viewer_user.id}", json={"username": "manager"}, headers=admin_headers)
    assert r.status_code == 400


def test_admin_cannot_delete_self(client, admin_user, admin_headers):
    r = client.delete(f"/users/{admin_user.id}", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot delete your own account"


def test_delete_user(client, admin_headers, viewer_user):
    assert client.delete(f"/users/{viewer_user.id}", headers=admin_headers).status_code == 204
    assert client.delete(f"/users/{viewer_user.id}", headers=admin_headers).status_code == 404
