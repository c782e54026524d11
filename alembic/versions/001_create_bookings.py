"""001: create bookings table

Revision ID: 001
Revises:
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE bookings (
            id                  VARCHAR(32)     PRIMARY KEY,
            couple_id           VARCHAR(64)     NOT NULL,
            vendor_id           VARCHAR(64)     NOT NULL,
            service_name        VARCHAR(200)    NOT NULL,
            event_date          DATE,
            status              VARCHAR(20)     NOT NULL DEFAULT 'request',
            total_amount        BIGINT          NOT NULL DEFAULT 0,
            total_paid          BIGINT          NOT NULL DEFAULT 0,
            last_payment_date   TIMESTAMPTZ,
            payment_method      VARCHAR(32),
            transaction_id      VARCHAR(128),
            status_reason       TEXT,
            quote_sent_at       TIMESTAMPTZ,
            vendor_completed    BOOLEAN         NOT NULL DEFAULT FALSE,
            couple_completed    BOOLEAN         NOT NULL DEFAULT FALSE,
            completed_at        TIMESTAMPTZ,
            version             BIGINT          NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bookings_total_amount_gte_0 CHECK (total_amount >= 0),
            CONSTRAINT ck_bookings_paid_range   CHECK (total_paid >= 0 AND total_paid <= total_amount),
            CONSTRAINT ck_bookings_status       CHECK (
                status IN ('request', 'quote_sent', 'quote_accepted', 'confirmed',
                           'downpayment_paid', 'paid_in_full', 'completed',
                           'quote_rejected', 'cancelled')
            )
        );
    """)
    op.execute("CREATE INDEX idx_bookings_couple ON bookings (couple_id, id DESC);")
    op.execute("CREATE INDEX idx_bookings_vendor_status ON bookings (vendor_id, status);")
    op.execute("""
        CREATE TRIGGER trg_bookings_updated_at
            BEFORE UPDATE ON bookings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE bookings IS 'Couple-vendor bookings; remaining balance and progress are derived, not stored';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bookings CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
