"""
Domain-split SQLAlchemy models with an aggregator.

Exposes `Base`, `now_utc`, the allowed value tuples and all ORM classes.
"""

from .base import Base, now_utc  # re-export

# Domain models
from .users import User, AuthSession, USER_ROLES
from .events import Event, Group, TOUR_TYPES, GROUP_TYPES
from .contacts import Contact
from .deals import Deal, CityVisit, DEAL_STATUSES, TRANSPORT_TYPES, ROOM_TYPES
from .leads import Lead, LeadStatusHistory, LeadTourist, LEAD_STATUSES, LEAD_SOURCES, TOURIST_TYPES
from .forms import Form, FormField, FormSubmission, FORM_FIELD_TYPES
from .notifications import Notification, NOTIFICATION_TYPES
from .expenses import ParticipantExpense, CommonExpense, BaseExpense
from .dictionaries import SystemDictionary, DictionaryTypeConfig
from .sync import SyncLog

__all__ = [
    # base
    "Base",
    "now_utc",
    # users
    "User",
    "AuthSession",
    "USER_ROLES",
    # events
    "Event",
    "Group",
    "TOUR_TYPES",
    "GROUP_TYPES",
    # contacts/deals
    "Contact",
    "Deal",
    "CityVisit",
    "DEAL_STATUSES",
    "TRANSPORT_TYPES",
    "ROOM_TYPES",
    # leads
    "Lead",
    "LeadStatusHistory",
    "LeadTourist",
    "LEAD_STATUSES",
    "LEAD_SOURCES",
    "TOURIST_TYPES",
    # forms
    "Form",
    "FormField",
    "FormSubmission",
    "FORM_FIELD_TYPES",
    # notifications
    "Notification",
    "NOTIFICATION_TYPES",
    # expenses
    "ParticipantExpense",
    "CommonExpense",
    "BaseExpense",
    # dictionaries
    "SystemDictionary",
    "DictionaryTypeConfig",
    # integration
    "SyncLog",
]
