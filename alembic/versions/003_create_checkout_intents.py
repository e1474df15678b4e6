"""003: create checkout_intents table

Revision ID: 003
Revises: 002
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE checkout_intents (
            id              BIGSERIAL       PRIMARY KEY,
            reference       VARCHAR(128)    NOT NULL,
            user_id         VARCHAR(64)     NOT NULL,
            target          VARCHAR(16)     NOT NULL,
            group_id        VARCHAR(64),
            units           INTEGER         NOT NULL,
            expected_amount BIGINT          NOT NULL,
            package_id      VARCHAR(32),
            status          VARCHAR(20)     NOT NULL DEFAULT 'pending',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_checkout_intents_reference UNIQUE (reference),
            CONSTRAINT ck_checkout_intents_target    CHECK (target IN ('personal', 'group')),
            CONSTRAINT ck_checkout_intents_group     CHECK (target = 'personal' OR group_id IS NOT NULL),
            CONSTRAINT ck_checkout_intents_units     CHECK (units > 0),
            CONSTRAINT ck_checkout_intents_amount    CHECK (expected_amount > 0),
            CONSTRAINT ck_checkout_intents_status    CHECK (
                status IN ('pending', 'completed', 'amount_mismatch', 'expired')
            )
        );
    """)
    op.execute(
        "CREATE INDEX idx_checkout_intents_user_status "
        "ON checkout_intents (user_id, status, created_at DESC);"
    )
    op.execute(
        "CREATE INDEX idx_checkout_intents_pending_created "
        "ON checkout_intents (created_at) WHERE status = 'pending';"
    )
    op.execute("""
        CREATE TRIGGER trg_checkout_intents_updated_at
            BEFORE UPDATE ON checkout_intents
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE checkout_intents IS 'Expected purchases registered before payment';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS checkout_intents CASCADE;")
