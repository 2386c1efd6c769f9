from tourcrm.db.repositories import leads as lead_repo


def test_contact_crud(client, manager_headers, admin_headers):
    r = client.post(
        "/contacts",
        json={"name": "Ольга Ким", "email": "olga@example.com", "birth_date": "1990-04-12"},
        headers=manager_headers,
    )
    assert r.status_code == 201, r.text
    contact_id = r.json()["id"]

    r = client.patch(f"/contacts/{contact_id}", json={"phone": "+7 900 000-00-00"}, headers=manager_headers)
    assert r.json()["phone"] == "+7 900 000-00-00"
    assert [c["name"] for c in client.get("/contacts", headers=manager_headers).json()] == ["Ольга Ким"]

    assert client.delete(f"/contacts/{contact_id}", headers=manager_headers).status_code == 403
    assert client.delete(f"/contacts/{contact_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/contacts/{contact_id}", headers=admin_headers).status_code == 404


def test_viewers_cannot_read_contacts(client, viewer_headers):
    assert client.get("/contacts", headers=viewer_headers).status_code == 403


def test_details_include_tourist_and_lead(client, db_session, contact_factory, manager_user, manager_headers):
    lead = lead_repo.create_lead(
        db_session, {"last_name": "Ким", "first_name": "Ольга", "assigned_user_id": manager_user.id}
    )
    tourist = lead_repo.get_primary_tourist(db_session, lead.id)
    contact = contact_factory("Ольга Ким", lead_id=lead.id, lead_tourist_id=tourist.id)

    body = client.get(f"/contacts/{contact.id}/details", headers=manager_headers).json()
    assert body["lead"]["id"] == str(lead.id)
    assert body["lead_tourist"]["id"] == str(tourist.id)


def test_details_update_mirrors_tourist_onto_contact(
    client, db_session, contact_factory, manager_user, manager_headers
):
    lead = lead_repo.create_lead(
        db_session, {"last_name": "Ким", "first_name": "Ольга", "assigned_user_id": manager_user.id}
    )
    tourist = lead_repo.get_primary_tourist(db_session, lead.id)
    contact = contact_factory("Ольга Ким", lead_id=lead.id, lead_tourist_id=tourist.id)

    r = client.patch(
        f"/contacts/{contact.id}/details",
        json={"first_name": "Ольга", "last_name": "Пак", "foreign_passport_number": "75 1234567"},
        headers=manager_headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["lead_tourist"]["last_name"] == "Пак"
    assert body["contact"]["name"] == "Ольга Пак"
    assert body["contact"]["passport"] == "75 1234567"


def test_details_update_creates_missing_tourist(client, contact_factory, admin_headers):
    contact = contact_factory("Сергей Волков", phone="+7 911 111-11-11")

    r = client.patch(f"/contacts/{contact.id}/details", json={"notes": "вегетарианец"}, headers=admin_headers)
    assert r.status_code == 200, r.text
    tourist = r.json()["lead_tourist"]
    assert tourist["first_name"] == "Сергей"
    assert tourist["last_name"] == "Волков"
    assert tourist["phone"] == "+7 911 111-11-11"
    assert r.json()["contact"]["lead_tourist_id"] == tourist["id"]


def test_manager_cannot_edit_details_of_foreign_lead(
    client, db_session, contact_factory, user_factory, manager_headers
):
    other = user_factory("other-manager")
    lead = lead_repo.create_lead(db_session, {"last_name": "Ли", "first_name": "Вэй", "assigned_user_id": other.id})
    contact = contact_factory("Вэй Ли", lead_id=lead.id)

    r = client.patch(f"/contacts/{contact.id}/details", json={"notes": "x"}, headers=manager_headers)
    assert r.status_code == 403
