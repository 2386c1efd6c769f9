import uuid
from unittest.mock import patch

import pytest

from tourcrm.db import models, schemas
from tourcrm.db.repositories import leads as lead_repo
from tourcrm.services import lead_conversion
from tourcrm.services.lead_conversion import (
    ConversionError,
    auto_convert_lead_to_event,
    convert_family,
    convert_lead,
)
from tourcrm.utils.feature_flags import refresh_feature_flag_cache


def _lead(db, **overrides):
    data = {"last_name": "Иванов", "first_name": "Иван", "email": "ivan@example.com", "phone": "+7900"}
    data.update(overrides)
    return lead_repo.create_lead(db, data)


def _add_tourist(db, lead, first_name, is_primary=False):
    return lead_repo.create_tourist(
        db,
        {"lead_id": lead.id, "last_name": lead.last_name, "first_name": first_name, "is_primary": is_primary},
    )


def _deals(db):
    return db.query(models.Deal).all()


def test_convert_single_tourist_lead(db_session, event_factory):
    event = event_factory()
    lead = _lead(db_session)

    outcome = convert_lead(db_session, lead.id, event.id)

    assert outcome.message == "Lead converted successfully"
    assert outcome.group is None
    [contact] = outcome.contacts
    [deal] = outcome.deals
    tourist = lead_repo.get_primary_tourist(db_session, lead.id)
    assert contact.name == "Иван Иванов"
    assert contact.lead_id == lead.id and contact.lead_tourist_id == tourist.id
    assert deal.status == "pending" and deal.amount == event.price
    assert sorted(v.city for v in deal.visits) == ["Beijing", "Shanghai", "Xian"]

    db_session.refresh(lead)
    assert lead.status == "won"
    assert [h.new_status for h in lead_repo.list_history(db_session, lead.id)][0] == "won"
    notification_types = {n.type for n in db_session.query(models.Notification).all()}
    assert "new_booking" in notification_types


def test_auto_conversion_is_idempotent(db_session, event_factory):
    event = event_factory()
    lead = _lead(db_session, event_id=None)

    assert auto_convert_lead_to_event(db_session, lead.id, event.id) is True
    assert auto_convert_lead_to_event(db_session, lead.id, event.id) is True

    assert len(_deals(db_session)) == 1
    assert db_session.query(models.Contact).count() == 1


def test_multiple_tourists_get_a_family_group(db_session, event_factory):
    event = event_factory()
    lead = _lead(db_session)
    _add_tourist(db_session, lead, "Мария")

    outcome = convert_lead(db_session, lead.id, event.id)

    assert outcome.group is not None
    assert outcome.group.name == "Семья Иванов" and outcome.group.type == "family"
    assert outcome.message == "Created 2 contacts and family group"
    assert {d.group_id for d in outcome.deals} == {outcome.group.id}
    primaries = [d for d in outcome.deals if d.is_primary_in_group]
    assert len(primaries) == 1
    assert primaries[0].contact.name == "Иван Иванов"

    # Converting again reuses the group
    again = convert_lead(db_session, lead.id, event.id)
    assert again.group.id == outcome.group.id
    assert db_session.query(models.Group).count() == 1
    assert len(_deals(db_session)) == 2


def test_event_change_moves_existing_deals(db_session, event_factory):
    first = event_factory(name="Первый", cities=["Beijing"])
    second = event_factory(name="Второй", cities=["Chengdu", "Guilin"])
    lead = _lead(db_session)
    auto_convert_lead_to_event(db_session, lead.id, first.id)
    [deal] = _deals(db_session)

    assert auto_convert_lead_to_event(db_session, lead.id, second.id, previous_event_id=first.id) is True

    [moved] = _deals(db_session)
    assert moved.id == deal.id
    assert moved.event_id == second.id
    assert sorted(v.city for v in moved.visits) == ["Chengdu", "Guilin"]


def test_lead_without_tourists_uses_fallback_contact(db_session, event_factory):
    event = event_factory()
    lead = lead_repo.create_lead(
        db_session,
        {"last_name": "Смирнова", "first_name": "Анна", "notes": "VIP"},
        with_auto_tourist=False,
    )

    outcome = convert_lead(db_session, lead.id, event.id)

    [contact] = outcome.contacts
    assert contact.name == "Анна Смирнова"
    assert contact.notes == "VIP"
    assert contact.lead_tourist_id is None
    assert convert_lead(db_session, lead.id, event.id).contacts[0].id == contact.id


def test_auto_conversion_respects_flag_and_missing_rows(db_session, event_factory, monkeypatch):
    event = event_factory()
    lead = _lead(db_session)

    assert auto_convert_lead_to_event(db_session, lead.id, None) is False
    assert auto_convert_lead_to_event(db_session, uuid.uuid4(), event.id) is False

    monkeypatch.setenv("FEATURE_AUTO_CONVERSION_ENABLED", "false")
    refresh_feature_flag_cache()
    assert auto_convert_lead_to_event(db_session, lead.id, event.id) is False
    assert _deals(db_session) == []


def test_convert_lead_missing_rows_raise(db_session, event_factory):
    event = event_factory()
    lead = _lead(db_session)
    with pytest.raises(ConversionError, match="Lead not found"):
        convert_lead(db_session, uuid.uuid4(), event.id)
    with pytest.raises(ConversionError, match="Event not found"):
        convert_lead(db_session, lead.id, uuid.uuid4())


def test_convert_family_creates_group_contacts_and_deals(db_session, event_factory):
    event = event_factory()
    lead = _lead(db_session)
    request = schemas.ConvertFamilyRequest(
        event_id=event.id,
        members=[schemas.FamilyMember(name="Иван Иванов"), schemas.FamilyMember(name="Ольга Иванова")],
    )

    outcome = convert_family(db_session, lead.id, request)

    assert outcome.group.name == "Семья Иванов"
    assert outcome.message == "Successfully created family group with 2 members"
    assert [d.is_primary_in_group for d in outcome.deals] == [True, False]
    db_session.refresh(lead)
    assert lead.status == "won"


def test_convert_family_rolls_back_on_failure(db_session, event_factory):
    event = event_factory()
    lead = _lead(db_session)
    request = schemas.ConvertFamilyRequest(
        event_id=event.id,
        group_name="Ивановы",
        members=[schemas.FamilyMember(name="Иван Иванов"), schemas.FamilyMember(name="Ольга Иванова")],
    )
    real_new_deal = lead_conversion._new_deal
    calls = {"n": 0}

    def _flaky_new_deal(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("disk full")
        return real_new_deal(*args, **kwargs)

    with patch.object(lead_conversion, "_new_deal", side_effect=_flaky_new_deal):
        with pytest.raises(RuntimeError, match="disk full"):
            convert_family(db_session, lead.id, request)

    assert _deals(db_session) == []
    assert db_session.query(models.Contact).count() == 0
    assert db_session.query(models.Group).count() == 0
    db_session.refresh(lead)
    assert lead.status == "new"
