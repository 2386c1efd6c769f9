import uuid

from tourcrm.db import models
from tourcrm.utils.feature_flags import refresh_feature_flag_cache


def _build_form(client, headers, *, is_active=True):
    r = client.post("/forms", json={"name": "Заявка", "is_active": is_active}, headers=headers)
    assert r.status_code == 201, r.text
    form_id = r.json()["id"]
    for order, field in enumerate(
        [
            {"key": "full_name", "label": "ФИО", "type": "text", "is_required": True},
            {"key": "phone", "label": "Телефон", "type": "phone"},
            {"key": "tour", "label": "Тур", "type": "tour"},
        ]
    ):
        r = client.post(f"/forms/{form_id}/fields", json={**field, "order": order}, headers=headers)
        assert r.status_code == 201, r.text
    return form_id


def test_form_builder_crud(client, manager_headers):
    form_id = _build_form(client, manager_headers)

    form = client.get(f"/forms/{form_id}", headers=manager_headers).json()
    assert [f["key"] for f in form["fields"]] == ["full_name", "phone", "tour"]

    field_id = form["fields"][1]["id"]
    r = client.patch(f"/forms/fields/{field_id}", json={"is_required": True}, headers=manager_headers)
    assert r.json()["is_required"] is True
    assert client.delete(f"/forms/fields/{field_id}", headers=manager_headers).status_code == 204

    r = client.patch(f"/forms/{form_id}", json={"name": "Заявка 2"}, headers=manager_headers)
    assert r.json()["name"] == "Заявка 2"
    assert len(client.get("/forms", headers=manager_headers).json()) == 1
    assert client.delete(f"/forms/{form_id}", headers=manager_headers).status_code == 204


def test_viewers_cannot_build_forms(client, viewer_headers):
    assert client.get("/forms", headers=viewer_headers).status_code == 403


def test_public_form_submission(client, db_session, manager_headers, event_factory):
    event = event_factory()
    form_id = _build_form(client, manager_headers)

    public = client.get(f"/public/forms/{form_id}")
    assert public.status_code == 200
    assert len(public.json()["fields"]) == 3

    r = client.post(
        f"/public/forms/{form_id}/submit",
        json={"data": {"full_name": "Егоров Егор", "phone": "+7 912 000-00-00", "tour": str(event.id)}},
        headers={"User-Agent": "public-site", "X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["success"] is True

    lead = db_session.get(models.Lead, uuid.UUID(body["lead_id"]))
    assert (lead.last_name, lead.first_name) == ("Егоров", "Егор")
    assert lead.source == "form"

    submissions = client.get(f"/forms/{form_id}/submissions", headers=manager_headers).json()
    assert submissions[0]["ip_address"] == "203.0.113.7"
    assert submissions[0]["user_agent"] == "public-site"
    assert submissions[0]["lead_id"] == body["lead_id"]


def test_public_submission_missing_required_field(client, manager_headers):
    form_id = _build_form(client, manager_headers)
    r = client.post(f"/public/forms/{form_id}/submit", json={"data": {"phone": "123"}})
    assert r.status_code == 400
    assert "full_name" in r.json()["detail"]


def test_inactive_form_is_hidden(client, manager_headers):
    form_id = _build_form(client, manager_headers, is_active=False)
    assert client.get(f"/public/forms/{form_id}").status_code == 404
    assert client.post(f"/public/forms/{form_id}/submit", json={"data": {"full_name": "X"}}).status_code == 404


def test_public_forms_flag_disables_intake(client, manager_headers, event_factory, monkeypatch):
    form_id = _build_form(client, manager_headers)
    event = event_factory()
    monkeypatch.setenv("FEATURE_PUBLIC_FORMS_ENABLED", "false")
    refresh_feature_flag_cache()

    assert client.get(f"/public/forms/{form_id}").status_code == 404
    r = client.post(
        "/public/bookings",
        json={"event_id": str(event.id), "name": "Иван", "phone": "1"},
    )
    assert r.status_code == 404
    # Availability stays public
    assert client.get(f"/public/events/{event.id}/availability").status_code == 200


def test_public_booking(client, db_session, event_factory):
    event = event_factory(participant_limit=4)
    r = client.post(
        "/public/bookings",
        json={"event_id": str(event.id), "participant_count": 2, "name": "Смирнов Алексей", "email": "a@example.com"},
    )
    assert r.status_code == 201, r.text
    lead = db_session.get(models.Lead, uuid.UUID(r.json()["lead_id"]))
    assert lead.source == "booking"
    assert lead.family_members_count == 2
    assert lead.event_id == event.id


def test_public_booking_rejects_overbooking(client, event_factory, deal_factory):
    event = event_factory(participant_limit=2)
    deal_factory(event)

    r = client.post(
        "/public/bookings",
        json={"event_id": str(event.id), "participant_count": 2, "name": "Иван", "phone": "+7"},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Only 1 spots available, but 2 requested"


def test_public_booking_requires_contact(client, event_factory):
    event = event_factory()
    r = client.post("/public/bookings", json={"event_id": str(event.id), "name": "Иван"})
    assert r.status_code == 400


def test_public_booking_unknown_event(client, db_session):
    r = client.post("/public/bookings", json={"event_id": str(uuid.uuid4()), "name": "Иван", "phone": "+7"})
    assert r.status_code == 404


def test_availability(client, event_factory, deal_factory):
    event = event_factory(participant_limit=4)
    deal_factory(event)

    body = client.get(f"/public/events/{event.id}/availability").json()
    assert body["confirmed_count"] == 1
    assert body["available_spots"] == 3
    assert body["availability_percentage"] == 75
    assert body["is_full"] is False
