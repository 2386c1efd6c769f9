from datetime import date, timedelta
from decimal import Decimal

from tourcrm.db.repositories import leads as lead_repo
from tourcrm.services.summary_report import XLSX_MEDIA_TYPE


def _event_payload(**overrides):
    start = date.today() + timedelta(days=40)
    payload = {
        "name": "Шёлковый путь",
        "cities": ["Urumqi", "Kashgar"],
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=7)).isoformat(),
        "participant_limit": 12,
        "price": "99000.00",
    }
    payload.update(overrides)
    return payload


def test_create_event_and_get_stats(client, manager_headers):
    r = client.post("/events", json=_event_payload(), headers=manager_headers)
    assert r.status_code == 201, r.text
    event = r.json()
    assert event["country"] == "Китай"
    assert event["is_full"] is False

    detail = client.get(f"/events/{event['id']}", headers=manager_headers).json()
    assert detail["booked_count"] == 0
    assert detail["available_spots"] == 12


def test_create_event_rejects_inverted_dates(client, manager_headers):
    start = date.today() + timedelta(days=10)
    r = client.post(
        "/events",
        json=_event_payload(start_date=start.isoformat(), end_date=(start - timedelta(days=1)).isoformat()),
        headers=manager_headers,
    )
    assert r.status_code == 422


def test_viewer_cannot_create_event(client, viewer_headers):
    assert client.post("/events", json=_event_payload(), headers=viewer_headers).status_code == 403


def test_delete_event_is_admin_only(client, event_factory, manager_headers, admin_headers):
    event = event_factory()
    assert client.delete(f"/events/{event.id}", headers=manager_headers).status_code == 403
    assert client.delete(f"/events/{event.id}", headers=admin_headers).status_code == 204
    assert client.get(f"/events/{event.id}", headers=admin_headers).status_code == 404


def test_booked_count_counts_confirmed_deals_only(client, event_factory, deal_factory, manager_headers):
    event = event_factory(participant_limit=3)
    deal_factory(event)
    deal_factory(event, status="pending")

    listed = client.get("/events", headers=manager_headers).json()
    assert listed[0]["booked_count"] == 1
    assert listed[0]["available_spots"] == 2


def test_listing_archives_finished_events(client, event_factory, manager_headers):
    current = event_factory(name="Текущий")
    past = event_factory(name="Прошедший", start_date=date.today() - timedelta(days=20))

    names = [e["name"] for e in client.get("/events", headers=manager_headers).json()]
    assert names == ["Текущий"]

    everything = client.get("/events", params={"include_archived": True}, headers=manager_headers).json()
    archived = {e["id"]: e["is_archived"] for e in everything}
    assert archived == {str(current.id): False, str(past.id): True}


def test_listing_keeps_finished_events_when_auto_archive_off(client, event_factory, manager_headers, monkeypatch):
    from tourcrm.utils.feature_flags import refresh_feature_flag_cache

    monkeypatch.setenv("FEATURE_AUTO_ARCHIVE_ENABLED", "false")
    refresh_feature_flag_cache()
    event_factory(start_date=date.today() - timedelta(days=20))

    assert len(client.get("/events", headers=manager_headers).json()) == 1


def test_archive_and_unarchive(client, event_factory, manager_headers):
    event = event_factory()
    r = client.post(f"/events/{event.id}/archive", headers=manager_headers)
    assert r.json()["is_archived"] is True
    assert client.get("/events", headers=manager_headers).json() == []

    r = client.post(f"/events/{event.id}/unarchive", headers=manager_headers)
    assert r.json()["is_archived"] is False


def test_viewer_sees_only_guided_events_and_cities(client, event_factory, viewer_user, viewer_headers):
    guided = event_factory(city_guides={"Xian": str(viewer_user.id)})
    other = event_factory(name="Другой тур")

    listed = client.get("/events", headers=viewer_headers).json()
    assert [e["id"] for e in listed] == [str(guided.id)]
    assert listed[0]["cities"] == ["Xian"]

    assert client.get(f"/events/{guided.id}", headers=viewer_headers).json()["cities"] == ["Xian"]
    assert client.get(f"/events/{other.id}", headers=viewer_headers).status_code == 403


def test_viewer_participants_limited_to_guided_cities(
    client, event_factory, deal_factory, db_session, viewer_user, viewer_headers
):
    from tourcrm.db.repositories import deals as deal_repo

    event = event_factory(city_guides={"Shanghai": str(viewer_user.id)})
    deal = deal_factory(event)
    deal_repo.create_default_visits(db_session, deal, event)

    participants = client.get(f"/events/{event.id}/participants", headers=viewer_headers).json()
    assert len(participants) == 1
    assert [v["city"] for v in participants[0]["visits"]] == ["Shanghai"]

    assert client.get(f"/events/{event.id}/cities/Beijing/export", headers=viewer_headers).status_code == 404
    r = client.get(f"/events/{event.id}/cities/Shanghai/export", headers=viewer_headers)
    assert r.status_code == 200

    summary = client.get(f"/events/{event.id}/summary", headers=viewer_headers).json()
    assert [c["city"] for c in summary["columns"]] == ["Shanghai"]


def test_city_export_with_reserved_sheet_characters(client, event_factory, manager_headers):
    event = event_factory(cities=["Xian: day 1"])
    r = client.get(f"/events/{event.id}/cities/Xian: day 1/export", headers=manager_headers)
    assert r.status_code == 200
    assert r.content[:2] == b"PK"


def test_price_change_reprices_leads(client, db_session, event_factory, manager_headers):
    event = event_factory(price=Decimal("100000.00"))
    lead = lead_repo.create_lead(
        db_session,
        {"last_name": "Ли", "first_name": "Мэй", "event_id": event.id, "advance_payment": Decimal("50000.00")},
    )
    lead_repo.create_tourist(db_session, {"lead_id": lead.id, "last_name": "Ли", "first_name": "Вэй"})

    r = client.patch(f"/events/{event.id}", json={"price": "120000.00"}, headers=manager_headers)
    assert r.status_code == 200, r.text

    db_session.refresh(lead)
    assert lead.tour_cost == Decimal("240000.00")
    assert lead.remaining_payment == Decimal("190000.00")


def test_update_rejects_end_before_start(client, event_factory, manager_headers):
    event = event_factory()
    r = client.patch(
        f"/events/{event.id}",
        json={"end_date": (event.start_date - timedelta(days=1)).isoformat()},
        headers=manager_headers,
    )
    assert r.status_code == 400


def test_lowering_limit_marks_event_full(client, event_factory, deal_factory, manager_headers):
    event = event_factory(participant_limit=5)
    deal_factory(event)
    deal_factory(event)

    r = client.patch(f"/events/{event.id}", json={"participant_limit": 2}, headers=manager_headers)
    assert r.json()["is_full"] is True


def test_event_deals_and_groups(client, event_factory, deal_factory, db_session, manager_headers):
    from tourcrm.db.repositories import groups as group_repo

    event = event_factory()
    deal_factory(event)
    group_repo.create_group(db_session, event_id=event.id, name="Семья Ван", type="family")

    deals = client.get(f"/events/{event.id}/deals", headers=manager_headers).json()
    assert deals[0]["contact"]["name"] == "Иван Петров"
    groups = client.get(f"/events/{event.id}/groups", headers=manager_headers).json()
    assert [g["name"] for g in groups] == ["Семья Ван"]


def test_summary_endpoints(client, event_factory, deal_factory, db_session, manager_headers):
    from tourcrm.db.repositories import deals as deal_repo

    event = event_factory()
    deal = deal_factory(event)
    deal_repo.create_default_visits(db_session, deal, event)

    summary = client.get(f"/events/{event.id}/summary", headers=manager_headers)
    assert summary.status_code == 200, summary.text
    body = summary.json()
    assert [c["city"] for c in body["columns"]] == ["Beijing", "Xian", "Shanghai"]
    assert len(body["rows"]) == 1

    export = client.get(f"/events/{event.id}/summary/export", headers=manager_headers)
    assert export.status_code == 200
    assert export.headers["content-type"] == XLSX_MEDIA_TYPE
    assert "filename*=UTF-8''" in export.headers["content-disposition"]
    assert export.content[:2] == b"PK"

    participants = client.get(f"/events/{event.id}/participants/export", headers=manager_headers)
    assert participants.status_code == 200
    assert participants.headers["content-type"] == XLSX_MEDIA_TYPE


def test_summary_rejects_bad_custom_group(client, event_factory, manager_headers):
    event = event_factory()
    r = client.get(
        f"/events/{event.id}/summary",
        params={"custom_group": "not-a-uuid"},
        headers=manager_headers,
    )
    assert r.status_code == 400
