"""Initial tour CRM schema

Revision ID: 20250301_initial
Revises:
Create Date: 2025-03-01 10:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '20250301_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


JSON_DOCUMENT = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')
MONEY = sa.Numeric(12, 2)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    # 1) Staff accounts and sessions
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='manager'),
        *_timestamps(),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'auth_sessions',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token_id', sa.String(64), nullable=False),
        sa.Column('token_hash', sa.Text(), nullable=False),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('token_id', name='uq_auth_sessions_token_id'),
    )
    op.create_index('idx_auth_sessions_user_created', 'auth_sessions', ['user_id', 'created_at'], unique=False)

    # 2) Tours and groups
    op.create_table(
        'events',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('country', sa.String(100), nullable=False),
        sa.Column('cities', JSON_DOCUMENT, nullable=False),
        sa.Column('tour_type', sa.String(30), nullable=False, server_default='group'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('participant_limit', sa.Integer(), nullable=False),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('is_full', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('city_guides', JSON_DOCUMENT, nullable=True),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('external_id', sa.String(100), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('external_id', name='uq_events_external_id'),
    )
    op.create_index('idx_events_start_date', 'events', ['start_date'], unique=False)
    op.create_index('idx_events_is_archived', 'events', ['is_archived'], unique=False)

    op.create_table(
        'groups',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(20), nullable=False, server_default='family'),
        *_timestamps(),
    )
    op.create_index('idx_groups_event_id', 'groups', ['event_id'], unique=False)

    # 3) Forms (leads reference them)
    op.create_table(
        'forms',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'form_fields',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('form_id', sa.Uuid(), sa.ForeignKey('forms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('label', sa.String(255), nullable=False),
        sa.Column('type', sa.String(20), nullable=False, server_default='text'),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('config', JSON_DOCUMENT, nullable=True),
    )
    op.create_index('idx_form_fields_form_id_order', 'form_fields', ['form_id', 'order'], unique=False)

    # 4) Leads, their history and tourists
    op.create_table(
        'leads',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('middle_name', sa.String(100), nullable=True),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='new'),
        sa.Column('source', sa.String(20), nullable=False, server_default='manual'),
        sa.Column('form_id', sa.Uuid(), sa.ForeignKey('forms.id', ondelete='SET NULL'), nullable=True),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='SET NULL'), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('client_category', sa.String(50), nullable=True),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('family_members_count', sa.Integer(), nullable=True),
        sa.Column('tour_cost', MONEY, nullable=True),
        sa.Column('tour_cost_currency', sa.String(3), nullable=False, server_default='RUB'),
        sa.Column('advance_payment', MONEY, nullable=True),
        sa.Column('advance_payment_currency', sa.String(3), nullable=False, server_default='RUB'),
        sa.Column('remaining_payment', MONEY, nullable=True),
        sa.Column('remaining_payment_currency', sa.String(3), nullable=False, server_default='RUB'),
        sa.Column('postponed_until', sa.Date(), nullable=True),
        sa.Column('assigned_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_leads_status', 'leads', ['status'], unique=False)
    op.create_index('idx_leads_assigned_user_id', 'leads', ['assigned_user_id'], unique=False)
    op.create_index('idx_leads_event_id', 'leads', ['event_id'], unique=False)

    op.create_table(
        'lead_status_history',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('lead_id', sa.Uuid(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False),
        sa.Column('old_status', sa.String(20), nullable=True),
        sa.Column('new_status', sa.String(20), nullable=False),
        sa.Column('changed_by_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_lead_status_history_lead_id', 'lead_status_history', ['lead_id', 'changed_at'], unique=False)

    op.create_table(
        'lead_tourists',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('lead_id', sa.Uuid(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('middle_name', sa.String(100), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('passport_series', sa.String(50), nullable=True),
        sa.Column('passport_issued_by', sa.Text(), nullable=True),
        sa.Column('registration_address', sa.Text(), nullable=True),
        sa.Column('foreign_passport_name', sa.String(200), nullable=True),
        sa.Column('foreign_passport_number', sa.String(50), nullable=True),
        sa.Column('foreign_passport_valid_until', sa.Date(), nullable=True),
        sa.Column('tourist_type', sa.String(10), nullable=False, server_default='adult'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('guide_comment', sa.Text(), nullable=True),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_auto_created', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('bitrix_contact_id', sa.String(50), nullable=True),
        sa.Column('entity_id', sa.String(50), nullable=True),
        sa.Column('entity_type_id', sa.String(50), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_lead_tourists_lead_id', 'lead_tourists', ['lead_id'], unique=False)
    op.create_index('idx_lead_tourists_entity', 'lead_tourists', ['entity_type_id', 'entity_id'], unique=False)

    op.create_table(
        'form_submissions',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('form_id', sa.Uuid(), sa.ForeignKey('forms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lead_id', sa.Uuid(), sa.ForeignKey('leads.id', ondelete='SET NULL'), nullable=True),
        sa.Column('data', JSON_DOCUMENT, nullable=False),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_form_submissions_form_id', 'form_submissions', ['form_id', 'submitted_at'], unique=False)

    # 5) Contacts, deals and itineraries
    op.create_table(
        'contacts',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('passport', sa.String(100), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('lead_id', sa.Uuid(), sa.ForeignKey('leads.id', ondelete='SET NULL'), nullable=True),
        sa.Column('lead_tourist_id', sa.Uuid(), sa.ForeignKey('lead_tourists.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_contacts_lead_id', 'contacts', ['lead_id'], unique=False)
    op.create_index('idx_contacts_lead_tourist_id', 'contacts', ['lead_tourist_id'], unique=False)

    op.create_table(
        'deals',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('contact_id', sa.Uuid(), sa.ForeignKey('contacts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('amount', MONEY, nullable=True),
        sa.Column('surcharge', MONEY, nullable=True),
        sa.Column('nights', sa.Integer(), nullable=True),
        sa.Column('group_id', sa.Uuid(), sa.ForeignKey('groups.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_primary_in_group', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('bitrix_deal_id', sa.String(50), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_deals_event_id_status', 'deals', ['event_id', 'status'], unique=False)
    op.create_index('idx_deals_contact_id', 'deals', ['contact_id'], unique=False)
    op.create_index('idx_deals_group_id', 'deals', ['group_id'], unique=False)

    op.create_table(
        'city_visits',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('deal_id', sa.Uuid(), sa.ForeignKey('deals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('arrival_date', sa.Date(), nullable=False),
        sa.Column('arrival_time', sa.String(5), nullable=True),
        sa.Column('transport_type', sa.String(10), nullable=False, server_default='plane'),
        sa.Column('flight_number', sa.String(50), nullable=True),
        sa.Column('airport', sa.String(100), nullable=True),
        sa.Column('transfer', sa.String(255), nullable=True),
        sa.Column('departure_date', sa.Date(), nullable=True),
        sa.Column('departure_time', sa.String(5), nullable=True),
        sa.Column('departure_transport_type', sa.String(10), nullable=True),
        sa.Column('departure_flight_number', sa.String(50), nullable=True),
        sa.Column('departure_airport', sa.String(100), nullable=True),
        sa.Column('departure_transfer', sa.String(255), nullable=True),
        sa.Column('hotel_name', sa.String(255), nullable=False),
        sa.Column('room_type', sa.String(10), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_city_visits_deal_id', 'city_visits', ['deal_id'], unique=False)

    # 6) Notifications
    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=True),
        sa.Column('contact_id', sa.Uuid(), sa.ForeignKey('contacts.id', ondelete='CASCADE'), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_notifications_created_at', 'notifications', ['created_at'], unique=False)
    op.create_index('idx_notifications_is_read', 'notifications', ['is_read'], unique=False)
    op.create_index('idx_notifications_type_event', 'notifications', ['type', 'event_id'], unique=False)

    # 7) Expenses
    op.create_table(
        'event_participant_expenses',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('deal_id', sa.Uuid(), sa.ForeignKey('deals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('expense_type', sa.String(100), nullable=False),
        sa.Column('amount', MONEY, nullable=True),
        sa.Column('currency', sa.String(3), nullable=False, server_default='RUB'),
        sa.Column('comment', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('event_id', 'deal_id', 'city', 'expense_type', name='uq_participant_expense'),
    )

    op.create_table(
        'event_common_expenses',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('expense_type', sa.String(100), nullable=False),
        sa.Column('amount', MONEY, nullable=True),
        sa.Column('currency', sa.String(3), nullable=False, server_default='RUB'),
        sa.Column('comment', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('event_id', 'city', 'expense_type', name='uq_common_expense'),
    )

    op.create_table(
        'base_expenses',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='CNY'),
        sa.Column('category', sa.String(100), nullable=True),
        *_timestamps(),
    )

    # 8) Dictionaries
    op.create_table(
        'system_dictionaries',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('value', sa.String(100), nullable=False),
        sa.Column('label', sa.String(255), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('parent_type', sa.String(50), nullable=True),
        sa.Column('parent_value', sa.String(100), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('type', 'value', name='uq_system_dictionaries_type_value'),
    )
    op.create_index('idx_system_dictionaries_type_sort', 'system_dictionaries', ['type', 'sort_order'], unique=False)

    op.create_table(
        'dictionary_type_configs',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('is_multiple', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('type', name='uq_dictionary_type_configs_type'),
    )

    # 9) Bitrix24 sync audit trail
    op.create_table(
        'sync_logs',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('operation', sa.String(30), nullable=False),
        sa.Column('entity_type', sa.String(30), nullable=False),
        sa.Column('entity_id', sa.String(100), nullable=True),
        sa.Column('external_id', sa.String(100), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('details', JSON_DOCUMENT, nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_sync_logs_created_at', 'sync_logs', ['created_at'], unique=False)
    op.create_index('idx_sync_logs_status', 'sync_logs', ['status'], unique=False)


def downgrade() -> None:
    # Reverse dependency order
    for table in (
        'sync_logs',
        'dictionary_type_configs',
        'system_dictionaries',
        'base_expenses',
        'event_common_expenses',
        'event_participant_expenses',
        'notifications',
        'city_visits',
        'deals',
        'contacts',
        'form_submissions',
        'lead_tourists',
        'lead_status_history',
        'leads',
        'form_fields',
        'forms',
        'groups',
        'events',
        'auth_sessions',
        'users',
    ):
        op.drop_table(table)
