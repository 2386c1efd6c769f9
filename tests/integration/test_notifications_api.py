import uuid
from datetime import date, timedelta

from tourcrm.db.repositories import notifications as notification_repo


def _seed(db_session, count=2):
    return [
        notification_repo.create_notification(db_session, type="new_booking", message=f"Booking {i}")
        for i in range(count)
    ]


def test_list_and_mark_read(client, db_session, manager_headers):
    first, _second = _seed(db_session)

    listed = client.get("/notifications", headers=manager_headers).json()
    assert len(listed) == 2
    assert {n["is_read"] for n in listed} == {False}

    r = client.patch(f"/notifications/{first.id}/read", headers=manager_headers)
    assert r.json()["is_read"] is True
    assert len(client.get("/notifications/unread", headers=manager_headers).json()) == 1

    r = client.post("/notifications/read-all", headers=manager_headers)
    assert r.json()["count"] == 1
    assert client.get("/notifications/unread", headers=manager_headers).json() == []


def test_limit_parameter(client, db_session, manager_headers):
    _seed(db_session, count=3)
    assert len(client.get("/notifications", params={"limit": 2}, headers=manager_headers).json()) == 2


def test_delete_notification(client, db_session, manager_headers):
    (notification,) = _seed(db_session, count=1)
    assert client.delete(f"/notifications/{notification.id}", headers=manager_headers).status_code == 204
    assert client.delete(f"/notifications/{notification.id}", headers=manager_headers).status_code == 404
    assert client.patch(f"/notifications/{uuid.uuid4()}/read", headers=manager_headers).status_code == 404


def test_viewers_have_no_feed(client, viewer_headers):
    assert client.get("/notifications", headers=viewer_headers).status_code == 403


def test_scan_is_admin_only(client, manager_headers):
    assert client.post("/notifications/scan", headers=manager_headers).status_code == 403


def test_scan_creates_upcoming_notifications(client, event_factory, admin_headers):
    event_factory(name="Скоро", start_date=date.today() + timedelta(days=3))
    event_factory(name="Нескоро", start_date=date.today() + timedelta(days=60))

    r = client.post("/notifications/scan", json={"days": 7}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["created"] == 1

    types = [n["type"] for n in client.get("/notifications", headers=admin_headers).json()]
    assert types == ["event_upcoming"]

    # Re-running does not duplicate unread notifications
    assert client.post("/notifications/scan", headers=admin_headers).json()["created"] == 0
