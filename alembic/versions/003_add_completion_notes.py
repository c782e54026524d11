"""003: add completion_notes to bookings

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("ALTER TABLE bookings ADD COLUMN completion_notes TEXT;")
    op.execute(
        "COMMENT ON COLUMN bookings.completion_notes IS "
        "'Latest note left by the vendor or couple when confirming completion';"
    )


def downgrade() -> None:
    op.execute("ALTER TABLE bookings DROP COLUMN IF EXISTS completion_notes;")
