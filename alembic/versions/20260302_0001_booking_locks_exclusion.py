"""exclude overlapping locks per resource (PostgreSQL)

Revision ID: 20260302_0001
Revises: 20260301_0001
Create Date: 2026-03-02 00:01:00.000000

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '20260302_0001'
down_revision: Union[str, None] = '20260301_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # SQLite has no range types; there the application re-check inside the
    # write transaction is the only guard.
    if op.get_bind().dialect.name != 'postgresql':
        return
    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
    op.execute(
        "ALTER TABLE booking_locks ADD CONSTRAINT booking_locks_no_overlap "
        "EXCLUDE USING gist (resource_id WITH =, daterange(start_date, end_date, '[)') WITH &&)"
    )


def downgrade() -> None:
    if op.get_bind().dialect.name != 'postgresql':
        return
    op.execute('ALTER TABLE booking_locks DROP CONSTRAINT IF EXISTS booking_locks_no_overlap')
