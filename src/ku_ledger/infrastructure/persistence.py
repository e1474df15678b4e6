"""LedgerRepository: append-only writes and cursor reads over ku_transactions.

Personal history is every row a user wrote against their own wallet
(group_id IS NULL); group history is every row against the group wallet,
whoever the acting member was.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_common.enums import PrincipalKind, TransactionKind
from src.ku_common.errors import InternalError
from src.ku_ledger.domain.models import TransactionRecord
from src.ku_wallet.domain.models import Principal

_INSERT_TRANSACTION_SQL = text("""
    INSERT INTO ku_transactions (user_id, group_id, amount, kind, description)
    VALUES (:user_id, :group_id, :amount, :kind, :description)
    RETURNING id, user_id, group_id, amount, kind, description, created_at
""")

_PAGE_FILTER = """
      AND (CAST(:since AS TIMESTAMPTZ) IS NULL OR created_at >= CAST(:since AS TIMESTAMPTZ))
      AND (CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
           OR (created_at, id) > (CAST(:cursor_ts AS TIMESTAMPTZ), CAST(:cursor_id AS BIGINT)))
    ORDER BY created_at ASC, id ASC
    LIMIT :limit
"""

_LIST_USER_SQL = text("""
    SELECT id, user_id, group_id, amount, kind, description, created_at
    FROM ku_transactions
    WHERE user_id = :principal_id AND group_id IS NULL
""" + _PAGE_FILTER)

_LIST_GROUP_SQL = text("""
    SELECT id, user_id, group_id, amount, kind, description, created_at
    FROM ku_transactions
    WHERE group_id = :principal_id
""" + _PAGE_FILTER)

_SUM_USER_SQL = text("""
    SELECT COALESCE(SUM(amount), 0)
    FROM ku_transactions
    WHERE user_id = :principal_id AND group_id IS NULL
""")

_SUM_GROUP_SQL = text("""
    SELECT COALESCE(SUM(amount), 0)
    FROM ku_transactions
    WHERE group_id = :principal_id
""")


def _row_to_record(row: object) -> TransactionRecord:
    return TransactionRecord(
        id=row.id,  # type: ignore[attr-defined]
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        group_id=row.group_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        kind=TransactionKind(row.kind),  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class LedgerRepository:
    async def append(
        self,
        db: AsyncSession,
        user_id: str,
        group_id: str | None,
        amount: int,
        kind: TransactionKind,
        description: str,
    ) -> TransactionRecord:
        result = await db.execute(
            _INSERT_TRANSACTION_SQL,
            {
                "user_id": user_id,
                "group_id": group_id,
                "amount": amount,
                "kind": kind.value,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_record(row)

    async def list_for_principal(
        self,
        db: AsyncSession,
        principal: Principal,
        since: datetime | None,
        after: tuple[datetime, int] | None,
        limit: int,
    ) -> list[TransactionRecord]:
        sql = _LIST_GROUP_SQL if principal.kind == PrincipalKind.GROUP else _LIST_USER_SQL
        cursor_ts, cursor_id = after if after else (None, None)
        result = await db.execute(
            sql,
            {
                "principal_id": principal.id,
                "since": since,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_record(row) for row in result.fetchall()]

    async def sum_for_principal(self, db: AsyncSession, principal: Principal) -> int:
        sql = _SUM_GROUP_SQL if principal.kind == PrincipalKind.GROUP else _SUM_USER_SQL
        result = await db.execute(sql, {"principal_id": principal.id})
        return int(result.scalar_one())
