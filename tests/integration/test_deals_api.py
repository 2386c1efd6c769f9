import uuid

from tourcrm.db import models


def _create_deal(client, headers, contact, event, **extra):
    payload = {"contact_id": str(contact.id), "event_id": str(event.id), **extra}
    r = client.post("/deals", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_new_deal_gets_visit_per_city_and_booking_notification(
    client, db_session, event_factory, contact_factory, manager_headers
):
    event = event_factory()
    contact = contact_factory("Анна Смирнова")

    deal = _create_deal(client, manager_headers, contact, event)
    assert deal["status"] == "pending"
    assert sorted(v["city"] for v in deal["visits"]) == ["Beijing", "Shanghai", "Xian"]
    assert all(v["hotel_name"] for v in deal["visits"])

    notifications = db_session.query(models.Notification).all()
    assert [n.type for n in notifications] == ["new_booking"]
    assert "Анна Смирнова" in notifications[0].message


def test_create_deal_unknown_contact_or_event(client, event_factory, contact_factory, manager_headers):
    event = event_factory()
    contact = contact_factory()
    r = client.post(
        "/deals",
        json={"contact_id": str(uuid.uuid4()), "event_id": str(event.id)},
        headers=manager_headers,
    )
    assert r.status_code == 404
    r = client.post(
        "/deals",
        json={"contact_id": str(contact.id), "event_id": str(uuid.uuid4())},
        headers=manager_headers,
    )
    assert r.status_code == 404


def test_confirming_last_spot_marks_event_full(client, db_session, event_factory, contact_factory, manager_headers):
    event = event_factory(participant_limit=1)
    deal = _create_deal(client, manager_headers, contact_factory(), event)

    r = client.patch(f"/deals/{deal['id']}", json={"status": "confirmed"}, headers=manager_headers)
    assert r.status_code == 200

    db_session.refresh(event)
    assert event.is_full is True
    filled = db_session.query(models.Notification).filter(models.Notification.type == "group_filled").count()
    assert filled == 1

    # Cancelling frees the spot again
    client.patch(f"/deals/{deal['id']}", json={"status": "cancelled"}, headers=manager_headers)
    db_session.refresh(event)
    assert event.is_full is False


def test_get_deal_includes_event_and_contact(client, event_factory, deal_factory, manager_headers):
    event = event_factory()
    deal = deal_factory(event)

    body = client.get(f"/deals/{deal.id}", headers=manager_headers).json()
    assert body["event"]["id"] == str(event.id)
    assert body["contact"]["name"] == "Иван Петров"


def test_delete_deal_is_admin_only(client, event_factory, deal_factory, manager_headers, admin_headers):
    deal = deal_factory(event_factory())
    assert client.delete(f"/deals/{deal.id}", headers=manager_headers).status_code == 403
    assert client.delete(f"/deals/{deal.id}", headers=admin_headers).status_code == 204
    assert client.get(f"/deals/{deal.id}", headers=admin_headers).status_code == 404


def test_visit_crud(client, event_factory, deal_factory, manager_headers):
    deal = deal_factory(event_factory())

    r = client.post(
        f"/deals/{deal.id}/visits",
        json={
            "city": "Guilin",
            "arrival_date": "2025-06-10",
            "arrival_time": "09:30",
            "transport_type": "train",
            "hotel_name": "Li River Resort",
            "room_type": "twin",
        },
        headers=manager_headers,
    )
    assert r.status_code == 201, r.text
    visit_id = r.json()["id"]

    r = client.patch(f"/visits/{visit_id}", json={"flight_number": "CZ3281"}, headers=manager_headers)
    assert r.json()["flight_number"] == "CZ3281"

    visits = client.get(f"/deals/{deal.id}/visits", headers=manager_headers).json()
    assert [v["city"] for v in visits] == ["Guilin"]

    assert client.delete(f"/visits/{visit_id}", headers=manager_headers).status_code == 204
    assert client.delete(f"/visits/{visit_id}", headers=manager_headers).status_code == 404


def test_visit_rejects_malformed_time(client, event_factory, deal_factory, manager_headers):
    deal = deal_factory(event_factory())
    r = client.post(
        f"/deals/{deal.id}/visits",
        json={"city": "Guilin", "arrival_date": "2025-06-10", "arrival_time": "9am", "hotel_name": "X"},
        headers=manager_headers,
    )
    assert r.status_code == 422


def test_group_membership(client, event_factory, deal_factory, manager_headers):
    event = event_factory()
    first = deal_factory(event)
    second = deal_factory(event)

    r = client.post("/groups", json={"event_id": str(event.id), "name": "Семья Ким"}, headers=manager_headers)
    assert r.status_code == 201, r.text
    group_id = r.json()["id"]

    r = client.post(
        f"/groups/{group_id}/members",
        json={"deal_id": str(first.id), "is_primary": True},
        headers=manager_headers,
    )
    assert r.json()["is_primary_in_group"] is True

    # A new primary demotes the previous one
    client.post(
        f"/groups/{group_id}/members",
        json={"deal_id": str(second.id), "is_primary": True},
        headers=manager_headers,
    )
    assert client.get(f"/deals/{first.id}", headers=manager_headers).json()["is_primary_in_group"] is False

    r = client.delete(f"/groups/{group_id}/members/{first.id}", headers=manager_headers)
    assert r.json()["group_id"] is None
    assert client.delete(f"/groups/{group_id}/members/{first.id}", headers=manager_headers).status_code == 404


def test_group_rejects_deal_from_other_event(client, event_factory, deal_factory, manager_headers):
    event = event_factory()
    foreign = deal_factory(event_factory(name="Другой тур"))

    group_id = client.post(
        "/groups", json={"event_id": str(event.id), "name": "Мини-группа", "type": "mini_group"}, headers=manager_headers
    ).json()["id"]
    r = client.post(f"/groups/{group_id}/members", json={"deal_id": str(foreign.id)}, headers=manager_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Deal belongs to a different event"


def test_deleting_group_releases_members(client, db_session, event_factory, deal_factory, manager_headers):
    event = event_factory()
    deal = deal_factory(event)
    group_id = client.post(
        "/groups", json={"event_id": str(event.id), "name": "Семья"}, headers=manager_headers
    ).json()["id"]
    client.post(f"/groups/{group_id}/members", json={"deal_id": str(deal.id)}, headers=manager_headers)

    assert client.delete(f"/groups/{group_id}", headers=manager_headers).status_code == 204
    db_session.refresh(deal)
    assert deal.group_id is None
