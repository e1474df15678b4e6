"""005: create ku_transactions table

Revision ID: 005
Revises: 004
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ku_transactions (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            group_id        VARCHAR(64),
            amount          BIGINT          NOT NULL,
            kind            VARCHAR(20)     NOT NULL,
            description     VARCHAR(255)    NOT NULL DEFAULT '',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ku_transactions_kind CHECK (
                kind IN ('purchase', 'consumption', 'referral_bonus', 'refund')
            ),
            CONSTRAINT ck_ku_transactions_amount_ne_0 CHECK (amount <> 0)
        );
    """)
    op.execute(
        "CREATE INDEX idx_ku_transactions_user "
        "ON ku_transactions (user_id, created_at, id) WHERE group_id IS NULL;"
    )
    op.execute(
        "CREATE INDEX idx_ku_transactions_group "
        "ON ku_transactions (group_id, created_at, id) WHERE group_id IS NOT NULL;"
    )
    # Append-only: updates and deletes are rejected
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_ku_transactions_immutable()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'ku_transactions is append-only';
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER trg_ku_transactions_immutable
            BEFORE UPDATE OR DELETE ON ku_transactions
            FOR EACH ROW EXECUTE FUNCTION fn_ku_transactions_immutable();
    """)
    op.execute("COMMENT ON TABLE ku_transactions IS 'Append-only Knowledge Unit audit log';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ku_transactions CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_ku_transactions_immutable();")
