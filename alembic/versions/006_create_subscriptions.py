"""006: create subscriptions table

Revision ID: 006
Revises: 005
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE subscriptions (
            id                      BIGSERIAL       PRIMARY KEY,
            user_id                 VARCHAR(64)     NOT NULL,
            plan                    VARCHAR(16)     NOT NULL,
            status                  VARCHAR(16)     NOT NULL DEFAULT 'active',
            current_period_start    TIMESTAMPTZ     NOT NULL,
            current_period_end      TIMESTAMPTZ     NOT NULL,
            customer_code           VARCHAR(64),
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_subscriptions_user_id UNIQUE (user_id),
            CONSTRAINT ck_subscriptions_plan    CHECK (plan IN ('basic', 'pro', 'premium')),
            CONSTRAINT ck_subscriptions_status  CHECK (status IN ('active', 'expired')),
            CONSTRAINT ck_subscriptions_period  CHECK (current_period_end > current_period_start)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_subscriptions_updated_at
            BEFORE UPDATE ON subscriptions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE subscriptions IS 'One paid plan period per user';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS subscriptions CASCADE;")
