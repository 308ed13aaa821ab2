"""Initial back office schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19

Organizations, properties and their rooms/photos/resources, calendars,
contacts, legal documents, equipment requests, pricing, activity providers
and the audit trail.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True)


def _fk(name, target, ondelete='CASCADE', nullable=False, index=True):
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
        index=index,
    )


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS pg_trgm')

    # === USERS ===
    op.create_table(
        'users',
        _id(),
        sa.Column('firebase_uid', sa.String(128), unique=True, nullable=False, index=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    # === ORGANIZATIONS ===
    op.create_table(
        'organizations',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), unique=True, nullable=False, index=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('timezone', sa.String(50), default='Europe/Paris'),
        *_timestamps(),
    )

    op.create_table(
        'org_memberships',
        _id(),
        _fk('org_id', 'organizations.id'),
        _fk('user_id', 'users.id'),
        sa.Column('role', sa.Enum('ADMIN', 'MANAGER', 'STAFF', 'VIEWER', name='userrole'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', name='uq_org_membership_user'),
    )

    # === DESTINATIONS ===
    op.create_table(
        'destinations',
        _id(),
        _fk('org_id', 'organizations.id'),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('country', sa.String(100), nullable=False),
        sa.Column('region', sa.String(100), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('image_alt_text', sa.String(255), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('org_id', 'name', name='uq_destination_org_name'),
    )

    # === PROPERTIES ===
    op.create_table(
        'properties',
        _id(),
        _fk('org_id', 'organizations.id'),
        _fk('destination_id', 'destinations.id', ondelete='SET NULL', nullable=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('original_name', sa.String(255), nullable=True),
        sa.Column('status', sa.Enum('PUBLISHED', 'HIDDEN', 'ONBOARDING', 'OFFBOARDED', name='propertystatus'), nullable=False, index=True),
        sa.Column('number_of_rooms', sa.Integer(), nullable=True),
        sa.Column('number_of_bathrooms', sa.Integer(), nullable=True),
        sa.Column('max_guests', sa.Integer(), nullable=True),
        sa.Column('adult_capacity', sa.Integer(), nullable=True),
        sa.Column('property_size', sa.Float(), nullable=True),
        sa.Column('plot_size', sa.Float(), nullable=True),
        sa.Column('furnished_floors', sa.Integer(), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('postcode', sa.String(20), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('additional_details', sa.Text(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('license_type', sa.Enum('NOT_APPLICABLE', 'TYPE_1', 'TYPE_2', name='licensetype'), nullable=True),
        sa.Column('license_number', sa.String(100), nullable=True),
        sa.Column('concierge_service', sa.Boolean(), default=False),
        sa.Column('concierge_service_offer', sa.Enum('ESSENTIAL', 'PREMIUM', 'LUXURY', name='conciergeserviceoffer'), nullable=True),
        sa.Column('operated_by_agency', sa.String(255), nullable=True),
        sa.Column('categories', postgresql.JSONB(), nullable=True),
        sa.Column('house_type', sa.String(100), nullable=True),
        sa.Column('architectural_type', sa.String(100), nullable=True),
        sa.Column('adjoining_house', sa.Boolean(), default=False),
        sa.Column('exclusivity', sa.Boolean(), default=False),
        sa.Column('position', sa.String(100), nullable=True),
        sa.Column('segment', sa.String(100), nullable=True),
        sa.Column('iconic_collection', sa.Boolean(), default=False),
        sa.Column('online_reservation', sa.Boolean(), default=False),
        sa.Column('flexible_cancellation', sa.Boolean(), default=False),
        sa.Column('onboarding_fees', sa.Boolean(), default=False),
        sa.Column('elevator', sa.Boolean(), default=False),
        sa.Column('prm_suitability', sa.Boolean(), default=False),
        sa.Column('accessibility_notes', sa.Text(), nullable=True),
        sa.Column('children_policy', sa.Text(), nullable=True),
        sa.Column('children_accessories', sa.Text(), nullable=True),
        sa.Column('animals_policy', sa.Text(), nullable=True),
        sa.Column('live_in_staff', sa.Boolean(), default=False),
        sa.Column('heating_system', sa.String(255), nullable=True),
        sa.Column('heating_comments', sa.Text(), nullable=True),
        sa.Column('ac_system', sa.String(255), nullable=True),
        sa.Column('ac_comments', sa.Text(), nullable=True),
        sa.Column('suitable_for_events', sa.Boolean(), default=False),
        sa.Column('event_types', postgresql.JSONB(), nullable=True),
        sa.Column('event_notes', sa.Text(), nullable=True),
        sa.Column('event_rules', sa.Text(), nullable=True),
        sa.Column('event_layout_link', sa.Text(), nullable=True),
        sa.Column('event_tariffs', sa.Text(), nullable=True),
        sa.Column('event_deposit', sa.Float(), nullable=True),
        sa.Column('event_drive_link', sa.Text(), nullable=True),
        sa.Column('transport_services', sa.Text(), nullable=True),
        sa.Column('staff_services', sa.Text(), nullable=True),
        sa.Column('meal_services', sa.Text(), nullable=True),
        sa.Column('check_in_time', sa.String(10), nullable=True),
        sa.Column('check_out_time', sa.String(10), nullable=True),
        sa.Column('wifi_name', sa.String(100), nullable=True),
        sa.Column('wifi_password', sa.String(100), nullable=True),
        sa.Column('good_to_know', sa.Text(), nullable=True),
        sa.Column('listing_url', sa.Text(), nullable=True),
        sa.Column('marketing_notes', sa.Text(), nullable=True),
        sa.Column('reviews', sa.Text(), nullable=True),
        sa.Column('internal_comment', sa.Text(), nullable=True),
        sa.Column('warning', sa.Text(), nullable=True),
        *_timestamps(),
    )
    # Fuzzy search on name and city
    op.execute('CREATE INDEX ix_properties_name_trgm ON properties USING gin (name gin_trgm_ops)')
    op.execute('CREATE INDEX ix_properties_city_trgm ON properties USING gin (city gin_trgm_ops)')

    op.create_table(
        'rooms',
        _id(),
        _fk('property_id', 'properties.id'),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.Enum(
            'BEDROOM', 'BATHROOM', 'KITCHEN', 'LIVING_ROOM', 'DINING_ROOM',
            'OFFICE', 'OUTDOOR', 'WELLNESS', 'OTHER', name='roomtype',
        ), nullable=False),
        sa.Column('group_name', sa.String(100), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('general_info', postgresql.JSONB(), nullable=True),
        sa.Column('view', sa.String(255), nullable=True),
        sa.Column('equipment', postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'photos',
        _id(),
        _fk('property_id', 'properties.id'),
        _fk('room_id', 'rooms.id', ondelete='SET NULL', nullable=True),
        sa.Column('url', sa.String(1024), nullable=False),
        sa.Column('caption', sa.String(500), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_main', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'resources',
        _id(),
        _fk('property_id', 'properties.id'),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('url', sa.String(1024), nullable=False),
        sa.Column('is_stored', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('uploaded_by', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    # === CALENDAR ===
    op.create_table(
        'bookings',
        _id(),
        _fk('property_id', 'properties.id'),
        sa.Column('type', sa.Enum(
            'CONFIRMED', 'TENTATIVE', 'CONTRACT', 'MAINTENANCE', 'BLOCKED', 'OWNER', 'OWNER_STAY',
            name='bookingtype',
        ), nullable=False),
        sa.Column('status', sa.Enum('CONFIRMED', 'PENDING', 'CANCELLED', name='bookingstatus'), nullable=False),
        sa.Column('source', sa.Enum('MANUAL', 'IMPORT', 'API', name='bookingsource'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False, index=True),
        sa.Column('end_date', sa.Date(), nullable=False, index=True),
        sa.Column('guest_name', sa.String(255), nullable=True),
        sa.Column('guest_email', sa.String(255), nullable=True),
        sa.Column('guest_phone', sa.String(50), nullable=True),
        sa.Column('number_of_guests', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('external_id', sa.String(255), nullable=True),
        sa.Column('total_amount', sa.Float(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_by', sa.String(128), nullable=True),
        sa.Column('updated_by', sa.String(128), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'availability_requests',
        _id(),
        _fk('property_id', 'properties.id'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('guest_name', sa.String(255), nullable=False),
        sa.Column('guest_email', sa.String(255), nullable=False),
        sa.Column('guest_phone', sa.String(50), nullable=True),
        sa.Column('number_of_guests', sa.Integer(), nullable=False),
        sa.Column('urgency', sa.Enum('LOW', 'NORMAL', 'HIGH', 'URGENT', name='requesturgency'), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum(
            'PENDING', 'CONFIRMED', 'REJECTED', 'CANCELLED', name='availabilityrequeststatus',
        ), nullable=False),
        sa.Column('requested_by', sa.String(128), nullable=True),
        *_timestamps(),
    )

    # === CONTACTS ===
    op.create_table(
        'contacts',
        _id(),
        _fk('org_id', 'organizations.id'),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True, index=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('language', sa.String(50), nullable=False, server_default='English'),
        sa.Column('category', sa.Enum(
            'CLIENT', 'OWNER', 'PROVIDER', 'ORGANIZATION', 'OTHER', name='contactcategory',
        ), nullable=False),
        sa.Column('comments', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'contact_properties',
        _id(),
        _fk('contact_id', 'contacts.id'),
        _fk('property_id', 'properties.id'),
        sa.Column('relationship_type', sa.Enum(
            'OWNER', 'RENTER', 'MANAGER', 'STAFF', 'EMERGENCY', 'MAINTENANCE', 'AGENCY', 'OTHER',
            name='contactpropertyrelationship',
        ), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('contact_id', 'property_id', name='uq_contact_property'),
    )

    # === LEGAL DOCUMENTS ===
    op.create_table(
        'legal_documents',
        _id(),
        _fk('org_id', 'organizations.id'),
        _fk('property_id', 'properties.id', ondelete='SET NULL', nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.Enum(
            'PROPERTY_DEED', 'LEASE_AGREEMENT', 'VENDOR_CONTRACT', 'INSURANCE_POLICY',
            'PERMIT_LICENSE', 'TAX_DOCUMENT', 'COMPLIANCE_CERTIFICATE', 'OTHER',
            name='legaldocumentcategory',
        ), nullable=False),
        sa.Column('subcategory', sa.String(100), nullable=True),
        sa.Column('status', sa.Enum(
            'ACTIVE', 'EXPIRED', 'PENDING_RENEWAL', 'ARCHIVED', name='legaldocumentstatus',
        ), nullable=False),
        sa.Column('expiry_date', sa.DateTime(), nullable=True),
        sa.Column('reminder_days', sa.Integer(), nullable=True),
        sa.Column('url', sa.String(1024), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('uploaded_by', sa.String(128), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(), nullable=False),
        sa.Column('last_accessed_at', sa.DateTime(), nullable=True),
        sa.Column('tags', postgresql.JSONB(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'legal_document_versions',
        _id(),
        _fk('document_id', 'legal_documents.id'),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('url', sa.String(1024), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('uploaded_by', sa.String(128), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(), nullable=False),
        sa.Column('comment', sa.String(500), nullable=True),
        sa.UniqueConstraint('document_id', 'version_number', name='uq_legal_document_version'),
    )

    # === EQUIPMENT REQUESTS ===
    op.create_table(
        'equipment_requests',
        _id(),
        _fk('property_id', 'properties.id'),
        _fk('room_id', 'rooms.id', ondelete='SET NULL', nullable=True, index=False),
        sa.Column('requested_by', sa.String(128), nullable=False),
        sa.Column('requested_by_email', sa.String(255), nullable=True),
        sa.Column('status', sa.Enum(
            'PENDING', 'APPROVED', 'REJECTED', 'ORDERED', 'DELIVERED', 'CANCELLED',
            name='equipmentrequeststatus',
        ), nullable=False, index=True),
        sa.Column('priority', sa.Enum('LOW', 'MEDIUM', 'HIGH', 'URGENT', name='equipmentrequestpriority'), nullable=False),
        sa.Column('items', postgresql.JSONB(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        sa.Column('approved_by', sa.String(128), nullable=True),
        sa.Column('approved_by_email', sa.String(255), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('rejected_reason', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    # === PRICING ===
    op.create_table(
        'property_pricing',
        _id(),
        sa.Column('property_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('currency', sa.String(3), nullable=False, server_default='EUR'),
        sa.Column('display_on_website', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('retro_commission', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_pricing_update', sa.DateTime(), nullable=True),
        sa.Column('security_deposit', sa.Float(), nullable=True),
        sa.Column('payment_schedule', sa.String(50), nullable=True),
        sa.Column('min_owner_accepted_price', sa.Float(), nullable=True),
        sa.Column('min_lc_accepted_price', sa.Float(), nullable=True),
        sa.Column('public_minimum_price', sa.Float(), nullable=True),
        sa.Column('net_owner_commission', sa.Float(), nullable=False, server_default='25'),
        sa.Column('public_price_commission', sa.Float(), nullable=False, server_default='20'),
        sa.Column('b2b2c_partner_commission', sa.Float(), nullable=False, server_default='10'),
        sa.Column('public_taxes', sa.Float(), nullable=False, server_default='0'),
        sa.Column('client_fees', sa.Float(), nullable=False, server_default='2'),
        *_timestamps(),
    )

    op.create_table(
        'price_ranges',
        _id(),
        _fk('property_id', 'properties.id'),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('nightly_rate', sa.Float(), nullable=True),
        sa.Column('weekly_rate', sa.Float(), nullable=True),
        sa.Column('monthly_rate', sa.Float(), nullable=True),
        sa.Column('owner_nightly_rate', sa.Float(), nullable=True),
        sa.Column('owner_weekly_rate', sa.Float(), nullable=True),
        sa.Column('commission_rate', sa.Float(), nullable=False, server_default='25'),
        sa.Column('public_nightly_rate', sa.Float(), nullable=True),
        sa.Column('public_weekly_rate', sa.Float(), nullable=True),
        sa.Column('is_validated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('minimum_stay', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('end_date > start_date', name='ck_price_range_dates'),
    )

    op.create_table(
        'minimum_stay_rules',
        _id(),
        _fk('property_id', 'properties.id'),
        sa.Column('booking_condition', sa.Enum(
            'PER_NIGHT', 'WEEKLY_SATURDAY_TO_SATURDAY', 'WEEKLY_SUNDAY_TO_SUNDAY', 'WEEKLY_MONDAY_TO_MONDAY',
            name='bookingcondition',
        ), nullable=False),
        sa.Column('minimum_nights', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'operational_costs',
        _id(),
        _fk('property_id', 'properties.id'),
        sa.Column('cost_type', sa.Enum(
            'HOUSEKEEPING', 'HOUSEKEEPING_AT_CHECKOUT', 'LINEN_CHANGE', 'OPERATIONAL_PACKAGE',
            name='operationalcosttype',
        ), nullable=False),
        sa.Column('price_type', sa.Enum('PER_STAY', 'PER_WEEK', 'PER_DAY', 'FIXED', name='pricetype'), nullable=False),
        sa.Column('estimated_price', sa.Float(), nullable=True),
        sa.Column('public_price', sa.Float(), nullable=True),
        sa.Column('paid_by', sa.String(100), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        *_timestamps(),
    )

    # === ACTIVITY PROVIDERS ===
    op.create_table(
        'activity_providers',
        _id(),
        _fk('org_id', 'organizations.id'),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('type', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('address', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('postal_code', sa.String(20), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('website', sa.String(500), nullable=True),
        sa.Column('opening_hours', sa.String(500), nullable=True),
        sa.Column('price_range', sa.String(50), nullable=True),
        sa.Column('amenities', postgresql.JSONB(), nullable=True),
        sa.Column('tags', postgresql.JSONB(), nullable=True),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('image_urls', postgresql.JSONB(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'property_activity_providers',
        _id(),
        _fk('provider_id', 'activity_providers.id'),
        _fk('property_id', 'properties.id'),
        sa.Column('notes', sa.String(500), nullable=True),
        sa.Column('distance', sa.Float(), nullable=True),
        sa.Column('walking_time', sa.Integer(), nullable=True),
        sa.Column('driving_time', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('provider_id', 'property_id', name='uq_property_activity_provider'),
    )

    # === AUDIT (append-only) ===
    op.create_table(
        'audit_logs',
        _id(),
        _fk('org_id', 'organizations.id', ondelete='SET NULL', nullable=True),
        _fk('user_id', 'users.id', ondelete='SET NULL', nullable=True),
        sa.Column('action', sa.String(100), nullable=False, index=True),
        sa.Column('entity_type', sa.String(50), nullable=False, index=True),
        sa.Column('entity_id', sa.String(100), nullable=False, index=True),
        sa.Column('changes', postgresql.JSONB(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )

    op.create_table(
        'sensitive_data_access',
        _id(),
        _fk('org_id', 'organizations.id', ondelete='SET NULL', nullable=True),
        _fk('user_id', 'users.id', ondelete='SET NULL', nullable=True, index=False),
        sa.Column('user_role', sa.String(20), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('data_type', sa.String(50), nullable=False),
        _fk('property_id', 'properties.id', ondelete='SET NULL', nullable=True),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )


TABLES = [
    'sensitive_data_access',
    'audit_logs',
    'property_activity_providers',
    'activity_providers',
    'operational_costs',
    'minimum_stay_rules',
    'price_ranges',
    'property_pricing',
    'equipment_requests',
    'legal_document_versions',
    'legal_documents',
    'contact_properties',
    'contacts',
    'availability_requests',
    'bookings',
    'resources',
    'photos',
    'rooms',
    'properties',
    'destinations',
    'org_memberships',
    'organizations',
    'users',
]

ENUMS = [
    'userrole', 'propertystatus', 'licensetype', 'conciergeserviceoffer', 'roomtype',
    'bookingtype', 'bookingstatus', 'bookingsource', 'requesturgency', 'availabilityrequeststatus',
    'contactcategory', 'contactpropertyrelationship', 'legaldocumentcategory', 'legaldocumentstatus',
    'equipmentrequeststatus', 'equipmentrequestpriority', 'bookingcondition', 'operationalcosttype',
    'pricetype',
]


def downgrade() -> None:
    for table in TABLES:
        op.drop_table(table)
    for enum_name in ENUMS:
        op.execute(f'DROP TYPE IF EXISTS {enum_name}')
