"""004: create payment_history table

Revision ID: 004
Revises: 003
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payment_history (
            id              BIGSERIAL       PRIMARY KEY,
            reference       VARCHAR(128)    NOT NULL,
            user_id         VARCHAR(64)     NOT NULL,
            amount          BIGINT          NOT NULL DEFAULT 0,
            currency        VARCHAR(3)      NOT NULL DEFAULT 'NGN',
            plan            VARCHAR(64)     NOT NULL,
            status          VARCHAR(10)     NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_payment_history_reference UNIQUE (reference),
            CONSTRAINT ck_payment_history_status    CHECK (status IN ('success', 'failed'))
        );
    """)
    op.execute("CREATE INDEX idx_payment_history_user ON payment_history (user_id, created_at);")
    op.execute("""
        CREATE TRIGGER trg_payment_history_updated_at
            BEFORE UPDATE ON payment_history
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE payment_history IS "
        "'Terminal payment outcomes; UNIQUE(reference) is the settlement idempotency guard';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payment_history CASCADE;")
