"""
Domain-split Pydantic schemas with an aggregator.

Routers and services import `from tourcrm.db import schemas` and use the
names re-exported here.
"""

# Import order: define base/simple types first to satisfy forward refs
from .users import UserBase, UserCreate, UserUpdate, User, LoginRequest, LoginResponse
from .events import (
    EventBase,
    EventCreate,
    EventUpdate,
    Event,
    EventWithStats,
    EventAvailability,
    GroupBase,
    GroupCreate,
    GroupUpdate,
    Group,
    GroupMemberAdd,
)
from .contacts import ContactBase, ContactCreate, ContactUpdate, Contact
from .deals import (
    CityVisitBase,
    CityVisitCreate,
    CityVisitUpdate,
    CityVisit,
    DealBase,
    DealCreate,
    DealUpdate,
    Deal,
    DealWithContact,
    DealWithDetails,
)
from .leads import (
    LeadBase,
    LeadCreate,
    LeadUpdate,
    Lead,
    LeadStatusHistory,
    LeadTouristBase,
    LeadTouristCreate,
    LeadTouristUpdate,
    LeadTourist,
    ConvertLeadRequest,
    FamilyMember,
    ConvertFamilyRequest,
    ConversionResult,
    ContactDetails,
    Participant,
)
from .forms import (
    FormBase,
    FormCreate,
    FormUpdate,
    Form,
    FormWithFields,
    FormFieldBase,
    FormFieldCreate,
    FormFieldUpdate,
    FormField,
    FormSubmission,
    PublicFormSubmit,
    PublicFormSubmitResponse,
    PublicBookingRequest,
    PublicBookingResponse,
)
from .notifications import (
    NotificationBase,
    NotificationCreate,
    Notification,
    NotificationScanRequest,
    NotificationScanResult,
)
from .expenses import (
    ParticipantExpenseUpsert,
    ParticipantExpense,
    CommonExpenseUpsert,
    CommonExpense,
    EventExpenses,
    BaseExpenseBase,
    BaseExpenseCreate,
    BaseExpenseUpdate,
    BaseExpense,
)
from .dictionaries import (
    DictionaryItemBase,
    DictionaryItemCreate,
    DictionaryItemUpdate,
    DictionaryItem,
    DictionaryTypeConfigUpsert,
    DictionaryTypeConfig,
)
from .sync import (
    SyncLog,
    Pagination,
    SyncLogPage,
    EntityTouristCreate,
    EntityTouristUpdate,
    RouteUpdate,
    RouteResponse,
    BitrixStatus,
)
from .reports import SummaryColumn, SummaryRow, EventSummary
