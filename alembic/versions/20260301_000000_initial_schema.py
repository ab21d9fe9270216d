"""initial schema: catalog, settings, members, appointments, slot loads

Revision ID: 20260301_000000
Revises:
Create Date: 2026-03-01 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260301_000000'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BigIntId = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'grooming_services',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('base_price', sa.Float(), nullable=False),
        sa.Column('duration_hours', sa.Integer(), nullable=False),
        sa.Column('member_discount_percent', sa.Float(), nullable=False, server_default='0'),
        sa.Column('capacity_limit', sa.Integer(), nullable=True),
        sa.Column('recommended', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.CheckConstraint('duration_hours > 0', name='ck_grooming_services_duration_positive'),
        sa.CheckConstraint(
            'member_discount_percent >= 0 AND member_discount_percent <= 100',
            name='ck_grooming_services_discount_range',
        ),
    )

    op.create_table(
        'day_care_options',
        sa.Column('type', sa.String(16), primary_key=True),
        sa.Column('price_per_day', sa.Float(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
    )

    op.create_table(
        'appointment_settings',
        sa.Column('setting_name', sa.String(32), primary_key=True),
        sa.Column('max_bookings_per_time_slot', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('updated_by', sa.String(64), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'members',
        sa.Column('id', BigIntId, primary_key=True, autoincrement=True),
        sa.Column('full_name', sa.String(120), nullable=False),
        sa.Column('email', sa.String(254), nullable=False, unique=True),
        sa.Column('phone', sa.String(20), nullable=False),
        sa.Column('role', sa.String(16), nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'appointments',
        sa.Column('id', BigIntId, primary_key=True, autoincrement=True),
        sa.Column('user_id', BigIntId, sa.ForeignKey('members.id', ondelete='SET NULL'), nullable=True),
        sa.Column('pet_name', sa.String(80), nullable=False),
        sa.Column('pet_type', sa.String(8), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time', sa.String(5), nullable=False),
        sa.Column('service_id', sa.String(32), sa.ForeignKey('grooming_services.id'), nullable=False),
        sa.Column('duration_hours', sa.Integer(), nullable=False),
        sa.Column('day_care_type', sa.String(16), nullable=True),
        sa.Column('day_care_days', sa.Integer(), nullable=True),
        sa.Column('base_price', sa.Float(), nullable=False),
        sa.Column('discount_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('day_care_price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_price', sa.Float(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='Booked'),
        sa.Column('owner_name', sa.String(120), nullable=False),
        sa.Column('owner_phone', sa.String(20), nullable=False),
        sa.Column('owner_email', sa.String(254), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("pet_type IN ('dog', 'cat')", name='ck_appointments_pet_type'),
        sa.CheckConstraint("status IN ('Booked', 'Completed', 'Cancelled')", name='ck_appointments_status'),
        sa.CheckConstraint('duration_hours > 0', name='ck_appointments_duration_positive'),
    )
    op.create_index('ix_appointments_date_status', 'appointments', ['date', 'status'])
    op.create_index('ix_appointments_owner_email', 'appointments', ['owner_email'])
    op.create_index('ix_appointments_user_id', 'appointments', ['user_id'])
    op.create_index('ix_appointments_service_id', 'appointments', ['service_id'])

    op.create_table(
        'slot_loads',
        sa.Column('date', sa.Date(), primary_key=True),
        sa.Column('hour', sa.Integer(), primary_key=True),
        sa.Column('booked', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint('booked >= 0', name='ck_slot_loads_booked_non_negative'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('slot_loads')
    op.drop_index('ix_appointments_service_id', table_name='appointments')
    op.drop_index('ix_appointments_user_id', table_name='appointments')
    op.drop_index('ix_appointments_owner_email', table_name='appointments')
    op.drop_index('ix_appointments_date_status', table_name='appointments')
    op.drop_table('appointments')
    op.drop_table('members')
    op.drop_table('appointment_settings')
    op.drop_table('day_care_options')
    op.drop_table('grooming_services')
