from datetime import date, timedelta

from tourcrm.db import models
from tourcrm.services.notification_service import NotificationService, _next_birthday


def _notifications(db, type_=None):
    q = db.query(models.Notification)
    if type_:
        q = q.filter(models.Notification.type == type_)
    return q.all()


def test_new_booking_message(db_session, event_factory, deal_factory, contact_factory):
    event = event_factory(name="Шелковый путь")
    deal = deal_factory(event, contact_factory("Анна Смирнова"), status="pending")

    notification = NotificationService(db_session).notify_new_booking(deal)

    assert notification.type == "new_booking"
    assert notification.message == 'New booking: Анна Смирнова for event "Шелковый путь"'
    assert notification.event_id == event.id and notification.contact_id == deal.contact_id
    assert notification.is_read is False


def test_group_filled_triggers_at_threshold_once(db_session, event_factory, deal_factory):
    event = event_factory(name="Пекин", participant_limit=10)
    service = NotificationService(db_session, threshold=0.2)
    for _ in range(7):
        deal_factory(event)
    assert service.check_group_filled(event) is None

    deal_factory(event)
    created = service.check_group_filled(event)
    assert created is not None
    assert created.message == 'Group for event "Пекин" is almost full (2 spots left)'

    deal_factory(event)
    assert service.check_group_filled(event) is None
    assert len(_notifications(db_session, "group_filled")) == 1


def test_pending_deals_do_not_count_towards_capacity(db_session, event_factory, deal_factory):
    event = event_factory(participant_limit=2)
    deal_factory(event, status="pending")
    deal_factory(event, status="pending")
    assert NotificationService(db_session, threshold=0.1).check_group_filled(event) is None


def test_threshold_from_env(monkeypatch, db_session):
    monkeypatch.setenv("GROUP_FILLED_THRESHOLD", "0.25")
    assert NotificationService(db_session).threshold == 0.25
    monkeypatch.setenv("GROUP_FILLED_THRESHOLD", "lots")
    assert NotificationService(db_session).threshold == 0.1


def test_scan_upcoming_events_and_birthdays(db_session, event_factory, deal_factory, contact_factory):
    today = date(2025, 6, 1)
    soon = event_factory(name="Скоро", start_date=today + timedelta(days=3))
    event_factory(name="Нескоро", start_date=today + timedelta(days=30))
    event_factory(name="Архив", start_date=today + timedelta(days=2), is_archived=True)
    birthday_contact = contact_factory("Ольга Ким", birth_date=date(1990, 6, 5))
    deal_factory(soon, birthday_contact)
    deal_factory(soon, contact_factory("Пётр Лев", birth_date=date(1985, 12, 1)))

    created = NotificationService(db_session).scan_upcoming(today, days=7)

    assert created == 2
    [upcoming] = _notifications(db_session, "event_upcoming")
    assert upcoming.event_id == soon.id
    assert upcoming.message == 'Event "Скоро" starts on 04.06.2025 (in 3 days)'
    [birthday] = _notifications(db_session, "birthday_upcoming")
    assert birthday.contact_id == birthday_contact.id
    assert birthday.message == "Birthday of Ольга Ким on 05.06"

    # Re-running does not duplicate unread notifications
    assert NotificationService(db_session).scan_upcoming(today, days=7) == 0


def test_next_birthday_handles_year_wrap_and_leap_day():
    assert _next_birthday(date(1990, 1, 3), date(2025, 12, 30)) == date(2026, 1, 3)
    assert _next_birthday(date(1992, 2, 29), date(2025, 2, 1)) == date(2025, 3, 1)
    assert _next_birthday(date(1990, 6, 1), date(2025, 6, 1)) == date(2025, 6, 1)
