"""create scheduling tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

booking_status = postgresql.ENUM('pending', 'confirmed', 'cancelled', 'no_show', 'completed', name='booking_status', create_type=False)
payment_method = postgresql.ENUM('card', 'wallet', 'eft', 'pay_on_arrival', name='payment_method', create_type=False)
booking_actor = postgresql.ENUM('customer', 'provider', name='booking_actor', create_type=False)


def upgrade() -> None:
    booking_status.create(op.get_bind(), checkfirst=True)
    payment_method.create(op.get_bind(), checkfirst=True)
    booking_actor.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'providers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('timezone', sa.String(), nullable=False, server_default='Africa/Johannesburg'),
        sa.Column('commission_rate', sa.Numeric(5, 4), nullable=False, server_default='0.15'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'operating_hours',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('providers.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('weekday', sa.Integer(), nullable=False),
        sa.Column('is_open', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('open_minute', sa.Integer(), nullable=True),
        sa.Column('close_minute', sa.Integer(), nullable=True),
        sa.UniqueConstraint('provider_id', 'weekday', name='uq_operating_hours_provider_weekday'),
    )

    op.create_table(
        'services',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('providers.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'customer_profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('no_show_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cancellation_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'blocked_ranges',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('providers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('blocked_date', sa.Date(), nullable=False),
        sa.Column('start_minute', sa.Integer(), nullable=False),
        sa.Column('end_minute', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_blocked_ranges_provider_date', 'blocked_ranges', ['provider_id', 'blocked_date'])

    op.create_table(
        'bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('reference_number', sa.String(), nullable=False, unique=True),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('providers.id'), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('customer_profiles.id'), nullable=False, index=True),
        sa.Column('booking_date', sa.Date(), nullable=False),
        sa.Column('start_minute', sa.Integer(), nullable=False),
        sa.Column('end_minute', sa.Integer(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('status', booking_status, nullable=False, server_default='pending'),
        sa.Column('cost', sa.Numeric(10, 2), nullable=False),
        sa.Column('commission', sa.Numeric(10, 2), nullable=True),
        sa.Column('cancellation_fee', sa.Numeric(10, 2), nullable=True),
        sa.Column('processing_fee', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('payment_method', payment_method, nullable=False, server_default='pay_on_arrival'),
        sa.Column('cancelled_by', booking_actor, nullable=True),
        sa.Column('cancellation_reason', sa.String(500), nullable=True),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_bookings_provider_date_status', 'bookings', ['provider_id', 'booking_date', 'status'])

    op.create_table(
        'reviews',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('booking_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
    )


def downgrade() -> None:
    op.drop_table('reviews')
    op.drop_index('ix_bookings_provider_date_status', table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('ix_blocked_ranges_provider_date', table_name='blocked_ranges')
    op.drop_table('blocked_ranges')
    op.drop_table('customer_profiles')
    op.drop_table('services')
    op.drop_table('operating_hours')
    op.drop_table('providers')
    booking_actor.drop(op.get_bind(), checkfirst=True)
    payment_method.drop(op.get_bind(), checkfirst=True)
    booking_status.drop(op.get_bind(), checkfirst=True)
