"""PaymentHistoryRepository: the idempotency guard.

payment_history.reference is UNIQUE. Settling a reference is a single
conditional upsert: it inserts a 'success' row, or upgrades a 'failed' row,
and returns nothing when a 'success' row is already there. A concurrent
second settler blocks on the unique index until the first commits, then
sees the success row and gets no RETURNING row back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ku_common.enums import PaymentStatus
from src.ku_settlement.domain.models import PaymentRecord

_GET_SQL = text("""
    SELECT id, reference, user_id, amount, plan, status, created_at
    FROM payment_history
    WHERE reference = :reference
""")

_RECORD_SUCCESS_SQL = text("""
    INSERT INTO payment_history (reference, user_id, amount, currency, plan, status)
    VALUES (:reference, :user_id, :amount, :currency, :plan, 'success')
    ON CONFLICT (reference) DO UPDATE
        SET status = 'success',
            amount = EXCLUDED.amount,
            updated_at = NOW()
        WHERE payment_history.status <> 'success'
    RETURNING id
""")

_RECORD_FAILURE_SQL = text("""
    INSERT INTO payment_history (reference, user_id, amount, currency, plan, status)
    VALUES (:reference, :user_id, :amount, :currency, :plan, 'failed')
    ON CONFLICT (reference) DO NOTHING
""")


def _row_to_payment(row: object) -> PaymentRecord:
    return PaymentRecord(
        id=row.id,  # type: ignore[attr-defined]
        reference=row.reference,  # type: ignore[attr-defined]
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        plan=row.plan,  # type: ignore[attr-defined]
        status=PaymentStatus(row.status),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _params(reference: str, user_id: str, amount: int, plan: str) -> dict[str, object]:
    return {
        "reference": reference,
        "user_id": user_id,
        "amount": amount,
        "currency": settings.CURRENCY,
        "plan": plan,
    }


class PaymentHistoryRepository:
    async def get_by_reference(self, db: AsyncSession, reference: str) -> PaymentRecord | None:
        result = await db.execute(_GET_SQL, {"reference": reference})
        row = result.fetchone()
        return _row_to_payment(row) if row else None

    async def record_success(
        self, db: AsyncSession, reference: str, user_id: str, amount: int, plan: str
    ) -> bool:
        result = await db.execute(_RECORD_SUCCESS_SQL, _params(reference, user_id, amount, plan))
        return result.fetchone() is not None

    async def record_failure(
        self, db: AsyncSession, reference: str, user_id: str, amount: int, plan: str
    ) -> None:
        # An existing row (success or failed) is left as it is
        await db.execute(_RECORD_FAILURE_SQL, _params(reference, user_id, amount, plan))
