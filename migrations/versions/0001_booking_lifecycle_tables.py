"""Create booking lifecycle tables

Revision ID: 0001a2b3c4d5
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001a2b3c4d5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Enum columns store member names
user_role = sa.Enum('ADMIN', 'CLIENT', 'CONCIERGE', name='userrole')
property_status = sa.Enum('PENDING', 'ENABLED', 'DISABLED', name='propertystatus')
reservation_status = sa.Enum('DRAFT', 'SENT', 'SIGNED', 'CONFIRMED', 'CANCELLED', name='reservationstatus')
contract_status = sa.Enum('DRAFT', 'SENT', 'SIGNED', 'REJECTED', 'COMPLETED', name='contractstatus')
sex = sa.Enum('MALE', 'FEMALE', name='sex')
document_type = sa.Enum(
    'PASSPORT', 'CIN', 'DRIVING_LICENSE', 'MOROCCAN_RESIDENCE', 'FOREIGNER_RESIDENCE',
    name='documenttype',
)
assignment_status = sa.Enum('ACTIVE', 'INACTIVE', name='assignmentstatus')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users (provisioned by the identity provider)
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('firstname', sa.String(50), nullable=False),
        sa.Column('lastname', sa.String(50), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    # Properties
    op.create_table(
        'properties',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('client_id', sa.Uuid(), nullable=False),
        sa.Column('hash_id', sa.String(64), nullable=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(50), nullable=True),
        sa.Column('place_name', sa.String(255), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('check_in_time', sa.Time(), nullable=True),
        sa.Column('check_out_time', sa.Time(), nullable=True),
        sa.Column('ical_links', sa.JSON(), nullable=True),
        sa.Column('status', property_status, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('hash_id'),
        sa.ForeignKeyConstraint(['client_id'], ['users.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_properties_client_id', 'properties', ['client_id'])

    # Reservations
    op.create_table(
        'reservations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('created_by_user_id', sa.Uuid(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_price', sa.Float(), nullable=False),
        sa.Column('booking_source', sa.String(50), nullable=True),
        sa.Column('status', reservation_status, nullable=False),
        sa.Column('hash_id', sa.String(64), nullable=False),
        sa.Column('electronic_lock_code', sa.String(10), nullable=True),
        sa.Column('electronic_lock_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('calendar_event_uid', sa.String(190), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('hash_id'),
        sa.UniqueConstraint('calendar_event_uid'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id']),
    )
    op.create_index('ix_reservations_property_id', 'reservations', ['property_id'])
    op.create_index('ix_reservations_created_by_user_id', 'reservations', ['created_by_user_id'])
    op.create_index('ix_reservations_status', 'reservations', ['status'])
    op.create_index('idx_reservations_property_dates', 'reservations', ['property_id', 'start_date', 'end_date'])

    # Reservation contracts (1:1 with reservations)
    op.create_table(
        'reservation_contracts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('reservation_id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('firstname', sa.String(50), nullable=True),
        sa.Column('lastname', sa.String(50), nullable=True),
        sa.Column('middlename', sa.String(50), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('sex', sex, nullable=True),
        sa.Column('nationality', sa.String(50), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('residence_country', sa.String(50), nullable=True),
        sa.Column('residence_city', sa.String(50), nullable=True),
        sa.Column('residence_address', sa.String(200), nullable=True),
        sa.Column('residence_postal_code', sa.String(20), nullable=True),
        sa.Column('document_type', document_type, nullable=True),
        sa.Column('document_number', sa.String(50), nullable=True),
        sa.Column('document_issue_date', sa.Date(), nullable=True),
        sa.Column('check_in_date', sa.Date(), nullable=True),
        sa.Column('check_out_date', sa.Date(), nullable=True),
        sa.Column('status', contract_status, nullable=False),
        sa.Column('hash_id', sa.String(64), nullable=False),
        sa.Column('signature_image_url', sa.String(500), nullable=True),
        sa.Column('signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('signing_ip_address', sa.String(45), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reservation_id'),
        sa.UniqueConstraint('hash_id'),
        sa.ForeignKeyConstraint(['reservation_id'], ['reservations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_reservation_contracts_property_id', 'reservation_contracts', ['property_id'])
    op.create_index('ix_reservation_contracts_status', 'reservation_contracts', ['status'])

    # Property revenue ledger
    op.create_table(
        'property_revenues',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('reservation_id', sa.Uuid(), nullable=True),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.String(500), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reservation_id'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reservation_id'], ['reservations.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_property_revenues_property_id', 'property_revenues', ['property_id'])
    op.create_index(
        'idx_property_revenues_property_dates', 'property_revenues', ['property_id', 'start_date', 'end_date']
    )

    # Concierge assignments
    op.create_table(
        'user_properties',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('client_id', sa.Uuid(), nullable=False),
        sa.Column('concierge_id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('status', assignment_status, nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['client_id'], ['users.id']),
        sa.ForeignKeyConstraint(['concierge_id'], ['users.id']),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_user_properties_client_id', 'user_properties', ['client_id'])
    op.create_index('ix_user_properties_concierge_id', 'user_properties', ['concierge_id'])
    op.create_index('ix_user_properties_property_id', 'user_properties', ['property_id'])
    # One active concierge per property
    op.create_index(
        'ux_user_properties_active_property',
        'user_properties',
        ['property_id'],
        unique=True,
        sqlite_where=sa.text("status = 'ACTIVE'"),
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )


def downgrade() -> None:
    op.drop_index('ux_user_properties_active_property', table_name='user_properties')
    op.drop_table('user_properties')
    op.drop_table('property_revenues')
    op.drop_table('reservation_contracts')
    op.drop_table('reservations')
    op.drop_table('properties')
    op.drop_table('users')

    bind = op.get_bind()
    for enum in (
        assignment_status, document_type, sex, contract_status,
        reservation_status, property_status, user_role,
    ):
        enum.drop(bind, checkfirst=True)
