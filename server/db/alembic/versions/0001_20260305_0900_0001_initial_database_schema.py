"""Initial database schema

Revision ID: 0001
Revises:
Create Date: 2026-03-05 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create users table
    op.create_table('users',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint("role IN ('customer', 'guide', 'partner', 'admin')", name='ck_user_role_valid'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)
    op.create_index(op.f('ix_users_role'), 'users', ['role'], unique=False)

    # Create tours table
    op.create_table('tours',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('operator_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('tagline', sa.String(length=500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=True),
        sa.Column('difficulty', sa.String(length=20), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('min_participants', sa.Integer(), nullable=False),
        sa.Column('max_participants', sa.Integer(), nullable=False),
        sa.Column('base_price_amount', sa.Integer(), nullable=False),
        sa.Column('price_currency', sa.String(length=3), nullable=False),
        sa.Column('highlights', postgresql.JSONB(), nullable=False),
        sa.Column('whats_included', postgresql.JSONB(), nullable=False),
        sa.Column('what_to_bring', postgresql.JSONB(), nullable=False),
        sa.Column('meeting_point', sa.String(length=500), nullable=True),
        sa.Column('meeting_point_lat', sa.Float(), nullable=True),
        sa.Column('meeting_point_lng', sa.Float(), nullable=True),
        sa.Column('location_area', sa.String(length=255), nullable=True),
        sa.Column('cover_image', sa.String(length=1000), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_featured', sa.Boolean(), nullable=False),
        sa.Column('route_data', postgresql.JSONB(), nullable=True),
        sa.Column('distance_km', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('base_price_amount >= 0', name='ck_tour_base_price_non_negative'),
        sa.CheckConstraint('length(price_currency) = 3', name='ck_tour_price_currency_length'),
        sa.CheckConstraint('min_participants >= 1', name='ck_tour_min_participants_positive'),
        sa.CheckConstraint('max_participants >= min_participants', name='ck_tour_participants_range'),
        sa.CheckConstraint('distance_km >= 0', name='ck_tour_distance_non_negative'),
        sa.ForeignKeyConstraint(['operator_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug')
    )
    op.create_index(op.f('ix_tours_name'), 'tours', ['name'], unique=False)
    op.create_index(op.f('ix_tours_slug'), 'tours', ['slug'], unique=False)
    op.create_index(op.f('ix_tours_type'), 'tours', ['type'], unique=False)
    op.create_index(op.f('ix_tours_status'), 'tours', ['status'], unique=False)
    op.create_index(op.f('ix_tours_operator_id'), 'tours', ['operator_id'], unique=False)

    # Create tour_waypoints table
    op.create_table('tour_waypoints',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('tour_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.Column('elevation', sa.Float(), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('images', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('lat >= -90 AND lat <= 90', name='ck_waypoint_lat_range'),
        sa.CheckConstraint('lng >= -180 AND lng <= 180', name='ck_waypoint_lng_range'),
        sa.CheckConstraint('order_index >= 0', name='ck_waypoint_order_non_negative'),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tour_waypoints_tour_id'), 'tour_waypoints', ['tour_id'], unique=False)

    # Create tour_instances table
    op.create_table('tour_instances',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('tour_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('guide_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('start_datetime', sa.DateTime(), nullable=False),
        sa.Column('end_datetime', sa.DateTime(), nullable=True),
        sa.Column('capacity_max', sa.Integer(), nullable=False),
        sa.Column('capacity_booked', sa.Integer(), nullable=False),
        sa.Column('price_override_amount', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('capacity_max > 0', name='ck_instance_capacity_max_positive'),
        sa.CheckConstraint('capacity_booked >= 0', name='ck_instance_capacity_booked_non_negative'),
        sa.CheckConstraint('capacity_booked <= capacity_max', name='ck_instance_capacity_booked_lte_max'),
        sa.CheckConstraint('price_override_amount IS NULL OR price_override_amount >= 0', name='ck_instance_price_override_non_negative'),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['guide_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tour_instances_tour_id'), 'tour_instances', ['tour_id'], unique=False)
    op.create_index(op.f('ix_tour_instances_start_datetime'), 'tour_instances', ['start_datetime'], unique=False)
    op.create_index(op.f('ix_tour_instances_status'), 'tour_instances', ['status'], unique=False)

    # Create bookings table
    op.create_table('bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('booking_reference', sa.String(length=16), nullable=False),
        sa.Column('tour_instance_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('lead_participant_name', sa.String(length=200), nullable=False),
        sa.Column('lead_participant_email', sa.String(length=320), nullable=False),
        sa.Column('lead_participant_phone', sa.String(length=50), nullable=True),
        sa.Column('participant_count', sa.Integer(), nullable=False),
        sa.Column('base_price_amount', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('price_currency', sa.String(length=3), nullable=False),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('dietary_restrictions', sa.Text(), nullable=True),
        sa.Column('booking_status', sa.String(length=20), nullable=False),
        sa.Column('payment_status', sa.String(length=20), nullable=False),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_by', sa.String(length=50), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('refund_amount', sa.Integer(), nullable=True),
        sa.Column('refunded_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('participant_count > 0', name='ck_booking_participants_positive'),
        sa.CheckConstraint('total_amount >= 0', name='ck_booking_total_non_negative'),
        sa.CheckConstraint('length(booking_reference) > 0', name='ck_booking_reference_not_empty'),
        sa.CheckConstraint('refund_amount IS NULL OR refund_amount >= 0', name='ck_booking_refund_non_negative'),
        sa.ForeignKeyConstraint(['tour_instance_id'], ['tour_instances.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['customer_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_reference')
    )
    op.create_index(op.f('ix_bookings_booking_reference'), 'bookings', ['booking_reference'], unique=False)
    op.create_index(op.f('ix_bookings_tour_instance_id'), 'bookings', ['tour_instance_id'], unique=False)
    op.create_index(op.f('ix_bookings_customer_id'), 'bookings', ['customer_id'], unique=False)
    op.create_index(op.f('ix_bookings_lead_participant_email'), 'bookings', ['lead_participant_email'], unique=False)
    op.create_index(op.f('ix_bookings_booking_status'), 'bookings', ['booking_status'], unique=False)
    op.create_index(op.f('ix_bookings_payment_status'), 'bookings', ['payment_status'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('bookings')
    op.drop_table('tour_instances')
    op.drop_table('tour_waypoints')
    op.drop_table('tours')
    op.drop_table('users')
