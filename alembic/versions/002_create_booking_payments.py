"""002: create booking_payments table

Revision ID: 002
Revises: 001
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE booking_payments (
            id                  VARCHAR(32)     PRIMARY KEY,
            booking_id          VARCHAR(32)     NOT NULL REFERENCES bookings (id),
            transaction_id      VARCHAR(128)    NOT NULL,
            payment_type        VARCHAR(20)     NOT NULL,
            payment_method      VARCHAR(32)     NOT NULL,
            amount              BIGINT          NOT NULL,
            amount_applied      BIGINT          NOT NULL,
            occurred_at         TIMESTAMPTZ     NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_booking_payments_transaction_id UNIQUE (transaction_id),
            CONSTRAINT ck_booking_payments_amount   CHECK (amount > 0),
            CONSTRAINT ck_booking_payments_applied  CHECK (amount_applied >= 0),
            CONSTRAINT ck_booking_payments_type     CHECK (
                payment_type IN ('downpayment', 'full_payment', 'remaining_balance')
            )
        );
    """)
    op.execute("CREATE INDEX idx_booking_payments_booking ON booking_payments (booking_id, id);")
    op.execute("COMMENT ON TABLE booking_payments IS 'Applied payments per booking; transaction_id is the idempotency key';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS booking_payments CASCADE;")
