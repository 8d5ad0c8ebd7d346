"""Create booking ledger schema

Revision ID: 20260301_0001
Revises: 
Create Date: 2026-03-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '20260301_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

def _has_table(bind, name: str) -> bool:
    try:
        insp = inspect(bind)
        return insp.has_table(name)
    except Exception:
        return False

def upgrade() -> None:
    bind = op.get_bind()

    bookingstatus_enum = sa.Enum('pending', 'confirmed', 'rejected', 'cancelled', name='bookingstatus')
    bookingkind_enum = sa.Enum('guest', 'block', name='bookingkind')

    # Create resources table (villa + rooms, two levels)
    if not _has_table(bind, 'resources'):
        op.create_table('resources',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('slug', sa.String(length=100), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('nightly_rate', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('parent_id', sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(['parent_id'], ['resources.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_resources_slug'), 'resources', ['slug'], unique=True)
        op.create_index(op.f('ix_resources_parent_id'), 'resources', ['parent_id'], unique=False)

    # Create configurations + mapping table
    if not _has_table(bind, 'configurations'):
        op.create_table('configurations',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('slug', sa.String(length=100), nullable=False),
            sa.Column('label', sa.String(length=200), nullable=False),
            sa.Column('price_per_night', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('active', sa.Boolean(), server_default=sa.true(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_configurations_slug'), 'configurations', ['slug'], unique=True)

    if not _has_table(bind, 'configuration_resources'):
        op.create_table('configuration_resources',
            sa.Column('configuration_id', sa.Integer(), nullable=False),
            sa.Column('resource_id', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['configuration_id'], ['configurations.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('configuration_id', 'resource_id')
        )
        op.create_index(op.f('ix_configuration_resources_resource_id'), 'configuration_resources', ['resource_id'], unique=False)

    # Create bookings table
    if not _has_table(bind, 'bookings'):
        op.create_table('bookings',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('kind', bookingkind_enum, server_default='guest', nullable=False),
            sa.Column('guest_id', sa.String(length=100), nullable=True),
            sa.Column('guest_email', sa.String(length=255), nullable=True),
            sa.Column('guest_name', sa.String(length=200), nullable=True),
            sa.Column('created_by', sa.String(length=100), nullable=True),
            sa.Column('resource_id', sa.Integer(), nullable=True),
            sa.Column('configuration_id', sa.Integer(), nullable=True),
            sa.Column('start_date', sa.Date(), nullable=False),
            sa.Column('end_date', sa.Date(), nullable=False),
            sa.Column('status', bookingstatus_enum, server_default='pending', nullable=False),
            sa.Column('total_price', sa.Numeric(precision=10, scale=2), nullable=True),
            sa.Column('decision_note', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
            sa.Column('confirmed_at', sa.DateTime(), nullable=True),
            sa.Column('cancelled_at', sa.DateTime(), nullable=True),
            sa.CheckConstraint('start_date < end_date', name='ck_bookings_range'),
            sa.CheckConstraint('(resource_id IS NULL) <> (configuration_id IS NULL)', name='ck_bookings_single_target'),
            sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ),
            sa.ForeignKeyConstraint(['configuration_id'], ['configurations.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_bookings_id'), 'bookings', ['id'], unique=False)
        op.create_index(op.f('ix_bookings_guest_id'), 'bookings', ['guest_id'], unique=False)
        op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
        op.create_index(op.f('ix_bookings_start_date'), 'bookings', ['start_date'], unique=False)
        op.create_index(op.f('ix_bookings_end_date'), 'bookings', ['end_date'], unique=False)
        op.create_index('ix_bookings_resource_start_end', 'bookings', ['resource_id', 'start_date', 'end_date'], unique=False)
        op.create_index('ix_bookings_configuration_start_end', 'bookings', ['configuration_id', 'start_date', 'end_date'], unique=False)

    # Create booking_locks table
    if not _has_table(bind, 'booking_locks'):
        op.create_table('booking_locks',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('resource_id', sa.Integer(), nullable=False),
            sa.Column('start_date', sa.Date(), nullable=False),
            sa.Column('end_date', sa.Date(), nullable=False),
            sa.Column('booking_id', sa.Integer(), nullable=False),
            sa.CheckConstraint('start_date < end_date', name='ck_booking_locks_range'),
            sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ),
            sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_booking_locks_booking_id'), 'booking_locks', ['booking_id'], unique=False)
        op.create_index('ix_booking_locks_resource_start_end', 'booking_locks', ['resource_id', 'start_date', 'end_date'], unique=False)


def downgrade() -> None:
    bind = op.get_bind()
    dialect_name = bind.dialect.name
    op.drop_table('booking_locks')
    op.drop_table('bookings')
    op.drop_table('configuration_resources')
    op.drop_table('configurations')
    op.drop_table('resources')

    # Drop ENUM types for PostgreSQL
    if dialect_name == 'postgresql':
        sa.Enum(name='bookingstatus').drop(bind, checkfirst=True)
        sa.Enum(name='bookingkind').drop(bind, checkfirst=True)
