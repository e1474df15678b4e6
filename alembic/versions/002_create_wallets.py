"""002: create wallets table

Revision ID: 002
Revises: 001
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallets (
            id              BIGSERIAL       PRIMARY KEY,
            principal_kind  VARCHAR(8)      NOT NULL,
            principal_id    VARCHAR(64)     NOT NULL,
            balance         BIGINT          NOT NULL DEFAULT 0,
            library_slots   INTEGER         NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_wallets_principal         UNIQUE (principal_kind, principal_id),
            CONSTRAINT ck_wallets_principal_kind    CHECK (principal_kind IN ('user', 'group')),
            CONSTRAINT ck_wallets_balance_gte_0     CHECK (balance >= 0),
            CONSTRAINT ck_wallets_slots_gte_0       CHECK (library_slots >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_wallets_updated_at
            BEFORE UPDATE ON wallets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE wallets IS 'Knowledge Unit balances, one per user or group';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallets CASCADE;")
