import uuid
from decimal import Decimal

from tourcrm.db import models
from tourcrm.db.repositories import leads as lead_repo


def _create_lead(client, headers, **fields):
    payload = {"last_name": "Соколова", "first_name": "Мария", "phone": "+7 999 123-45-67", **fields}
    r = client.post("/leads", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_create_lead_records_history_and_auto_tourist(client, manager_user, manager_headers):
    lead = _create_lead(client, manager_headers, tour_cost="200000", advance_payment="50000")
    assert lead["created_by_user_id"] == str(manager_user.id)
    assert Decimal(lead["remaining_payment"]) == Decimal("150000")

    history = client.get(f"/leads/{lead['id']}/history", headers=manager_headers).json()
    assert [(h["old_status"], h["new_status"]) for h in history] == [(None, "new")]

    tourists = client.get(f"/leads/{lead['id']}/tourists", headers=manager_headers).json()
    assert len(tourists) == 1
    assert tourists[0]["is_primary"] is True
    assert tourists[0]["is_auto_created"] is True
    assert tourists[0]["phone"] == "+7 999 123-45-67"


def test_status_change_appends_history(client, manager_headers):
    lead = _create_lead(client, manager_headers)
    r = client.patch(
        f"/leads/{lead['id']}",
        json={"status": "contacted", "status_note": "Перезвонить в пятницу"},
        headers=manager_headers,
    )
    assert r.status_code == 200

    history = client.get(f"/leads/{lead['id']}/history", headers=manager_headers).json()
    latest = history[0]
    assert (latest["old_status"], latest["new_status"]) == ("new", "contacted")
    assert latest["note"] == "Перезвонить в пятницу"


def test_lead_name_changes_reach_auto_tourist(client, db_session, manager_headers):
    lead = _create_lead(client, manager_headers)
    client.patch(f"/leads/{lead['id']}", json={"last_name": "Орлова", "email": "m@example.com"}, headers=manager_headers)

    tourist = lead_repo.get_primary_tourist(db_session, uuid.UUID(lead["id"]))
    assert tourist.last_name == "Орлова"
    assert tourist.email == "m@example.com"


def test_viewers_cannot_list_leads(client, viewer_headers):
    r = client.get("/leads", headers=viewer_headers)
    assert r.status_code == 403


def test_managers_see_only_their_leads(client, manager_user, manager_headers, admin_headers, lead_factory):
    _create_lead(client, manager_headers, first_name="Своя")
    lead_factory(first_name="Чужая")
    lead_factory(first_name="Назначенная", assigned_user_id=manager_user.id)

    names = {l["first_name"] for l in client.get("/leads", headers=manager_headers).json()}
    assert names == {"Своя", "Назначенная"}
    assert len(client.get("/leads", headers=admin_headers).json()) == 3


def test_managers_cannot_reach_other_leads_by_id(client, event_factory, manager_headers, admin_headers, lead_factory):
    foreign = lead_factory(first_name="Чужая")
    url = f"/leads/{foreign.id}"

    assert client.get(url, headers=manager_headers).status_code == 404
    assert client.get(f"{url}/history", headers=manager_headers).status_code == 404
    assert client.get(f"{url}/tourists", headers=manager_headers).status_code == 404
    assert client.patch(url, json={"status": "lost"}, headers=manager_headers).status_code == 404
    r = client.post(f"{url}/convert", json={"event_id": str(event_factory().id)}, headers=manager_headers)
    assert r.status_code == 404

    assert client.get(url, headers=admin_headers).json()["status"] == "new"


def test_status_filter(client, admin_headers, lead_factory):
    lead_factory(status="new")
    lead_factory(status="lost")
    leads = client.get("/leads", params={"status": "lost"}, headers=admin_headers).json()
    assert [l["status"] for l in leads] == ["lost"]


def test_lead_with_event_is_converted_on_create(client, db_session, event_factory, manager_headers):
    event = event_factory()
    lead = _create_lead(client, manager_headers, event_id=str(event.id))

    contacts = db_session.query(models.Contact).filter(models.Contact.lead_id == uuid.UUID(lead["id"])).all()
    assert [c.name for c in contacts] == ["Мария Соколова"]
    deals = db_session.query(models.Deal).filter(models.Deal.event_id == event.id).all()
    assert len(deals) == 1
    assert deals[0].status == "pending"


def test_auto_conversion_respects_flag(client, db_session, event_factory, manager_headers, monkeypatch):
    from tourcrm.utils.feature_flags import refresh_feature_flag_cache

    monkeypatch.setenv("FEATURE_AUTO_CONVERSION_ENABLED", "0")
    refresh_feature_flag_cache()
    event = event_factory()
    _create_lead(client, manager_headers, event_id=str(event.id))

    assert db_session.query(models.Deal).count() == 0


def test_adding_tourist_to_lead_with_event_books_them(client, db_session, event_factory, manager_headers):
    event = event_factory()
    lead = _create_lead(client, manager_headers, event_id=str(event.id))

    r = client.post(
        f"/leads/{lead['id']}/tourists",
        json={"last_name": "Соколов", "first_name": "Пётр", "tourist_type": "child"},
        headers=manager_headers,
    )
    assert r.status_code == 201, r.text

    deals = db_session.query(models.Deal).filter(models.Deal.event_id == event.id).all()
    assert len(deals) == 2
    assert {d.group_id for d in deals} != {None}


def test_second_primary_tourist_rejected(client, manager_headers):
    lead = _create_lead(client, manager_headers)
    r = client.post(
        f"/leads/{lead['id']}/tourists",
        json={"last_name": "Соколов", "first_name": "Иван", "is_primary": True},
        headers=manager_headers,
    )
    assert r.status_code == 400


def test_changing_event_moves_deals(client, db_session, event_factory, manager_headers):
    first = event_factory(name="Первый")
    second = event_factory(name="Второй", cities=["Chengdu"])
    lead = _create_lead(client, manager_headers, event_id=str(first.id))

    r = client.patch(f"/leads/{lead['id']}", json={"event_id": str(second.id)}, headers=manager_headers)
    assert r.status_code == 200

    deals = db_session.query(models.Deal).all()
    assert len(deals) == 1
    assert deals[0].event_id == second.id
    assert [v.city for v in deals[0].visits] == ["Chengdu"]


def test_manual_convert_marks_lead_won(client, event_factory, manager_headers):
    event = event_factory()
    lead = _create_lead(client, manager_headers)

    r = client.post(f"/leads/{lead['id']}/convert", json={"event_id": str(event.id)}, headers=manager_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "Lead converted successfully"
    assert len(body["contacts"]) == 1 and len(body["deals"]) == 1
    assert client.get(f"/leads/{lead['id']}", headers=manager_headers).json()["status"] == "won"


def test_convert_requires_an_event(client, manager_headers):
    lead = _create_lead(client, manager_headers)
    r = client.post(f"/leads/{lead['id']}/convert", json={}, headers=manager_headers)
    assert r.status_code == 400


def test_convert_unknown_event_is_404(client, manager_headers):
    lead = _create_lead(client, manager_headers)
    r = client.post(f"/leads/{lead['id']}/convert", json={"event_id": str(uuid.uuid4())}, headers=manager_headers)
    assert r.status_code == 404


def test_convert_family(client, event_factory, manager_headers):
    event = event_factory()
    lead = _create_lead(client, manager_headers)

    r = client.post(
        f"/leads/{lead['id']}/convert-family",
        json={
            "event_id": str(event.id),
            "members": [{"name": "Мария Соколова"}, {"name": "Пётр Соколов", "birth_date": "2015-03-01"}],
        },
        headers=manager_headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["group"]["name"] == "Семья Соколова"
    assert [d["is_primary_in_group"] for d in body["deals"]] == [True, False]
    assert body["message"] == "Successfully created family group with 2 members"


def test_delete_lead_is_admin_only(client, manager_headers, admin_headers):
    lead = _create_lead(client, manager_headers)
    assert client.delete(f"/leads/{lead['id']}", headers=manager_headers).status_code == 403
    assert client.delete(f"/leads/{lead['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/leads/{lead['id']}", headers=admin_headers).status_code == 404


def test_tourist_edit_limited_to_assigned_manager(client, db_session, user_factory, manager_headers, admin_headers):
    other = user_factory("other-manager")
    lead = lead_repo.create_lead(db_session, {"last_name": "Ли", "first_name": "Вэй", "assigned_user_id": other.id})
    tourist = lead_repo.get_primary_tourist(db_session, lead.id)

    r = client.patch(f"/tourists/{tourist.id}", json={"guide_comment": "x"}, headers=manager_headers)
    assert r.status_code == 403
    r = client.patch(f"/tourists/{tourist.id}", json={"guide_comment": "аллергия"}, headers=admin_headers)
    assert r.json()["guide_comment"] == "аллергия"
