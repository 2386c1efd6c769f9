"""
Notification service: in-app notifications for bookings, capacity and
upcoming dates. Centralizes the rules so routers, conversion and the cron
script create notifications the same way.
"""

import logging
import os
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from tourcrm.db import models
from tourcrm.db.repositories import events as event_repo
from tourcrm.db.repositories import notifications as notification_repo

logger = logging.getLogger(__name__)

# Notification type constants (single source of truth)
TYPE_NEW_BOOKING = 'new_booking'
TYPE_GROUP_FILLED = 'group_filled'
TYPE_EVENT_UPCOMING = 'event_upcoming'
TYPE_BIRTHDAY_UPCOMING = 'birthday_upcoming'

DEFAULT_GROUP_FILLED_THRESHOLD = 0.1


def _group_filled_threshold() -> float:
    raw = os.getenv("GROUP_FILLED_THRESHOLD")
    if not raw:
        return DEFAULT_GROUP_FILLED_THRESHOLD
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid GROUP_FILLED_THRESHOLD '%s'; using %s", raw, DEFAULT_GROUP_FILLED_THRESHOLD)
        return DEFAULT_GROUP_FILLED_THRESHOLD


def _next_birthday(birth_date: date, today: date) -> Optional[date]:
    for year in (today.year, today.year + 1):
        try:
            candidate = birth_date.replace(year=year)
        except ValueError:
            # 29 February outside a leap year
            candidate = date(year, 3, 1)
        if candidate >= today:
            return candidate
    return None


class NotificationService:
    """Service class for handling all notification operations."""

    def __init__(self, db: Session, threshold: Optional[float] = None):
        self.db = db
        self.threshold = _group_filled_threshold() if threshold is None else threshold

    # === Booking notifications ===

    def notify_new_booking(self, deal: models.Deal) -> Optional[models.Notification]:
        """Announce a new deal; returns None when its contact or event is gone."""
        event = deal.event
        contact = deal.contact
        if event is None or contact is None:
            return None
        return notification_repo.create_notification(
            self.db,
            type=TYPE_NEW_BOOKING,
            message=f'New booking: {contact.name} for event "{event.name}"',
            event_id=event.id,
            contact_id=contact.id,
        )

    def check_group_filled(self, event: models.Event) -> Optional[models.Notification]:
        """Create a group-filled notification once the event is nearly full.

        At most one unread group-filled notification exists per event.
        """
        booked = event_repo.count_confirmed(self.db, event.id)
        available = event.participant_limit - booked
        if available > event.participant_limit * self.threshold:
            return None
        if notification_repo.has_unread(self.db, type=TYPE_GROUP_FILLED, event_id=event.id):
            return None
        spots_left = max(0, available)
        logger.info("Event %s is almost full (%s spots left)", event.id, spots_left)
        return notification_repo.create_notification(
            self.db,
            type=TYPE_GROUP_FILLED,
            message=f'Group for event "{event.name}" is almost full ({spots_left} spots left)',
            event_id=event.id,
        )

    def notify_deal_created(self, deal: models.Deal) -> None:
        """Side effects of a new deal. Failures are logged, never raised."""
        try:
            self.notify_new_booking(deal)
            if deal.event is not None:
                self.check_group_filled(deal.event)
        except Exception:
            self.db.rollback()
            logger.exception("Failed to create notifications for deal %s", deal.id)

    # === Scheduled scans ===

    def scan_upcoming(self, today: date, days: int = 7) -> int:
        """Create upcoming-event and upcoming-birthday notifications.

        Returns the number of notifications created.
        """
        horizon = today + timedelta(days=days)
        created = 0

        events = (
            self.db.query(models.Event)
            .filter(
                models.Event.is_archived.is_(False),
                models.Event.start_date >= today,
                models.Event.start_date <= horizon,
            )
            .order_by(models.Event.start_date.asc())
            .all()
        )
        for event in events:
            if notification_repo.has_unread(self.db, type=TYPE_EVENT_UPCOMING, event_id=event.id):
                continue
            days_left = (event.start_date - today).days
            notification_repo.create_notification(
                self.db,
                type=TYPE_EVENT_UPCOMING,
                message=f'Event "{event.name}" starts on {event.start_date:%d.%m.%Y} (in {days_left} days)',
                event_id=event.id,
            )
            created += 1

        rows = (
            self.db.query(models.Contact, models.Event)
            .join(models.Deal, models.Deal.contact_id == models.Contact.id)
            .join(models.Event, models.Event.id == models.Deal.event_id)
            .filter(models.Contact.birth_date.isnot(None), models.Event.is_archived.is_(False))
            .order_by(models.Event.start_date.asc(), models.Event.id.asc())
            .all()
        )
        seen = set()
        for contact, event in rows:
            if contact.id in seen:
                continue
            seen.add(contact.id)
            birthday = _next_birthday(contact.birth_date, today)
            if birthday is None or birthday > horizon:
                continue
            if notification_repo.has_unread(
                self.db, type=TYPE_BIRTHDAY_UPCOMING, event_id=event.id, contact_id=contact.id
            ):
                continue
            notification_repo.create_notification(
                self.db,
                type=TYPE_BIRTHDAY_UPCOMING,
                message=f"Birthday of {contact.name} on {birthday:%d.%m}",
                event_id=event.id,
                contact_id=contact.id,
            )
            created += 1

        logger.info("Notification scan created %s notifications", created)
        return created
