"""init_booking_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Schema:
- experiences / availability_slots: catalogue rows the engine reads (capacity, prices)
- inventory_locks: seat holds per slot, one per booking
- bookings: lifecycle + money split (total = commission + resort_net)
- referral_codes / referral_code_restrictions / user_coupons / vip_subscriptions
- booking_coupons / booking_referral_codes: which discount was applied, and how much
- payments: maintained by the payments collaborator, read for cancellations
- v_slot_remaining_capacity: derived remaining capacity per slot (PostgreSQL only)
"""

from pathlib import Path
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        'created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
    )


def upgrade() -> None:
    """Create all tables, constraints and the capacity view."""

    # ========== STEP 1: Catalogue ==========

    op.create_table(
        'experiences',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('resort_id', sa.Uuid(), nullable=False),
        sa.Column('category_slug', sa.String(length=100), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_experiences_resort_id', 'experiences', ['resort_id'])

    op.create_table(
        'availability_slots',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('experience_id', sa.Uuid(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('price_per_adult_cents', sa.BigInteger(), nullable=False),
        sa.Column('price_per_child_cents', sa.BigInteger(), nullable=False),
        sa.Column('commission_per_adult_cents', sa.BigInteger(), nullable=False),
        sa.Column('commission_per_child_cents', sa.BigInteger(), nullable=False),
        _created_at(),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(['experience_id'], ['experiences.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('capacity >= 0', name='ck_availability_slots_capacity'),
        sa.CheckConstraint('end_time > start_time', name='ck_availability_slots_window'),
    )
    op.create_index(
        'ix_availability_slots_experience_id', 'availability_slots', ['experience_id']
    )

    # ========== STEP 2: Discounts ==========

    op.create_table(
        'referral_codes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('referral_type', sa.String(length=20), nullable=False),
        sa.Column('discount_type', sa.String(length=20), nullable=False),
        sa.Column('discount_value', sa.BigInteger(), nullable=False),
        sa.Column('max_discount_cents', sa.BigInteger(), nullable=True),
        sa.Column('min_purchase_cents', sa.BigInteger(), nullable=False),
        sa.Column('allow_stacking', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('usage_limit', sa.Integer(), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('owner_agent_id', sa.Uuid(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )

    op.create_table(
        'referral_code_restrictions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('referral_code_id', sa.Uuid(), nullable=False),
        sa.Column('restriction_type', sa.String(length=20), nullable=False),
        sa.Column('experience_id', sa.Uuid(), nullable=True),
        sa.Column('category_slug', sa.String(length=100), nullable=True),
        sa.Column('resort_id', sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(['referral_code_id'], ['referral_codes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_referral_code_restrictions_referral_code_id',
        'referral_code_restrictions',
        ['referral_code_id'],
    )

    op.create_table(
        'user_coupons',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('coupon_type', sa.String(length=30), nullable=False),
        sa.Column('discount_type', sa.String(length=20), nullable=False),
        sa.Column('discount_value', sa.BigInteger(), nullable=False),
        sa.Column('max_discount_cents', sa.BigInteger(), nullable=True),
        sa.Column('min_purchase_cents', sa.BigInteger(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('is_used', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('vip_duration_days', sa.Integer(), nullable=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_booking_id', sa.Uuid(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'code', name='uq_user_coupons_user_code'),
    )
    op.create_index('ix_user_coupons_user_id', 'user_coupons', ['user_id'])

    op.create_table(
        'vip_subscriptions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('coupon_id', sa.Uuid(), nullable=True),
        sa.Column('discount_type', sa.String(length=20), nullable=False),
        sa.Column('discount_value', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('activated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['coupon_id'], ['user_coupons.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_vip_subscriptions_user_id', 'vip_subscriptions', ['user_id'])
    op.create_index(
        'uq_vip_subscriptions_user_active',
        'vip_subscriptions',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    # ========== STEP 3: Bookings and locks ==========

    op.create_table(
        'bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('experience_id', sa.Uuid(), nullable=False),
        sa.Column('slot_id', sa.Uuid(), nullable=False),
        sa.Column('adults', sa.Integer(), nullable=False),
        sa.Column('children', sa.Integer(), nullable=False),
        sa.Column('subtotal_cents', sa.BigInteger(), nullable=False),
        sa.Column('tax_cents', sa.BigInteger(), nullable=False),
        sa.Column('commission_cents', sa.BigInteger(), nullable=False),
        sa.Column('resort_net_cents', sa.BigInteger(), nullable=False),
        sa.Column('vip_discount_cents', sa.BigInteger(), nullable=False),
        sa.Column('total_cents', sa.BigInteger(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancel_reason', sa.String(length=500), nullable=True),
        sa.Column('idempotency_key', sa.String(length=255), nullable=True),
        sa.Column('agent_id', sa.Uuid(), nullable=True),
        sa.Column('referral_code_id', sa.Uuid(), nullable=True),
        _created_at(),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(['experience_id'], ['experiences.id']),
        sa.ForeignKeyConstraint(['slot_id'], ['availability_slots.id']),
        sa.ForeignKeyConstraint(['referral_code_id'], ['referral_codes.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key'),
        sa.CheckConstraint(
            'total_cents = commission_cents + resort_net_cents', name='ck_bookings_money_split'
        ),
        sa.CheckConstraint('adults + children > 0', name='ck_bookings_party_size'),
    )
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])
    op.create_index('ix_bookings_slot_id', 'bookings', ['slot_id'])
    op.create_index('ix_bookings_status_expires_at', 'bookings', ['status', 'expires_at'])

    op.create_table(
        'inventory_locks',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('slot_id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('consumed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('released_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['slot_id'], ['availability_slots.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_inventory_locks_quantity'),
        sa.CheckConstraint(
            'consumed_at IS NULL OR released_at IS NULL',
            name='ck_inventory_locks_single_terminal_marker',
        ),
    )
    op.create_index('ix_inventory_locks_booking_id', 'inventory_locks', ['booking_id'])
    op.create_index(
        'ix_inventory_locks_slot_open', 'inventory_locks', ['slot_id', 'released_at', 'consumed_at']
    )
    op.create_index('ix_inventory_locks_expires_at', 'inventory_locks', ['expires_at'])

    # ========== STEP 4: Applied discounts and payments ==========

    op.create_table(
        'booking_coupons',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=False),
        sa.Column('user_coupon_id', sa.Uuid(), nullable=False),
        sa.Column('discount_applied_cents', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id']),
        sa.ForeignKeyConstraint(['user_coupon_id'], ['user_coupons.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_id', 'user_coupon_id', name='uq_booking_coupons_pair'),
    )

    op.create_table(
        'booking_referral_codes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=False),
        sa.Column('referral_code_id', sa.Uuid(), nullable=False),
        sa.Column('discount_applied_cents', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id']),
        sa.ForeignKeyConstraint(['referral_code_id'], ['referral_codes.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'booking_id', 'referral_code_id', name='uq_booking_referral_codes_pair'
        ),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_booking_id', 'payments', ['booking_id'])

    # ========== STEP 5: Remaining capacity view ==========
    # Maintained in src/platform/database/view/v_slot_remaining_capacity.sql
    if op.get_bind().dialect.name == 'postgresql':
        view_dir = Path(__file__).parents[2] / 'database' / 'view'
        view_sql_path = view_dir / 'v_slot_remaining_capacity.sql'
        with open(view_sql_path, encoding='utf-8') as view_file:
            op.execute(view_file.read())


def downgrade() -> None:
    """Drop the view and all tables in reverse order of creation."""
    if op.get_bind().dialect.name == 'postgresql':
        op.execute('DROP VIEW IF EXISTS v_slot_remaining_capacity;')

    op.drop_index('ix_payments_booking_id', table_name='payments')
    op.drop_table('payments')
    op.drop_table('booking_referral_codes')
    op.drop_table('booking_coupons')

    op.drop_index('ix_inventory_locks_expires_at', table_name='inventory_locks')
    op.drop_index('ix_inventory_locks_slot_open', table_name='inventory_locks')
    op.drop_index('ix_inventory_locks_booking_id', table_name='inventory_locks')
    op.drop_table('inventory_locks')

    op.drop_index('ix_bookings_status_expires_at', table_name='bookings')
    op.drop_index('ix_bookings_slot_id', table_name='bookings')
    op.drop_index('ix_bookings_user_id', table_name='bookings')
    op.drop_table('bookings')

    op.drop_index('uq_vip_subscriptions_user_active', table_name='vip_subscriptions')
    op.drop_index('ix_vip_subscriptions_user_id', table_name='vip_subscriptions')
    op.drop_table('vip_subscriptions')
    op.drop_index('ix_user_coupons_user_id', table_name='user_coupons')
    op.drop_table('user_coupons')
    op.drop_index(
        'ix_referral_code_restrictions_referral_code_id', table_name='referral_code_restrictions'
    )
    op.drop_table('referral_code_restrictions')
    op.drop_table('referral_codes')

    op.drop_index('ix_availability_slots_experience_id', table_name='availability_slots')
    op.drop_table('availability_slots')
    op.drop_index('ix_experiences_resort_id', table_name='experiences')
    op.drop_table('experiences')
