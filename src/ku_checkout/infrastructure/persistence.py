"""CheckoutRepository: checkout_intents persistence.

Uniqueness and the single terminal transition are enforced in SQL:
  - INSERT ... ON CONFLICT (reference) DO NOTHING  -> no row = duplicate
  - UPDATE ... WHERE status = 'pending'           -> no row = already terminal
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_checkout.domain.models import CheckoutIntent
from src.ku_common.enums import CheckoutStatus, WalletTarget
from src.ku_common.errors import AlreadyTerminalError, CheckoutNotFoundError, DuplicateReferenceError

logger = logging.getLogger(__name__)

_INTENT_COLUMNS = (
    "reference, user_id, target, group_id, units, expected_amount, "
    "package_id, status, created_at, updated_at"
)

_CREATE_SQL = text(f"""
    INSERT INTO checkout_intents
        (reference, user_id, target, group_id, units, expected_amount, package_id, status)
    VALUES
        (:reference, :user_id, :target, :group_id, :units, :expected_amount, :package_id, 'pending')
    ON CONFLICT (reference) DO NOTHING
    RETURNING {_INTENT_COLUMNS}
""")

_GET_SQL = text(f"""
    SELECT {_INTENT_COLUMNS}
    FROM checkout_intents
    WHERE reference = :reference
""")

_LIST_PENDING_SQL = text(f"""
    SELECT {_INTENT_COLUMNS}
    FROM checkout_intents
    WHERE user_id = :user_id AND status = 'pending'
    ORDER BY created_at DESC
""")

_MARK_TERMINAL_SQL = text(f"""
    UPDATE checkout_intents
    SET status = :status,
        updated_at = NOW()
    WHERE reference = :reference AND status = 'pending'
    RETURNING {_INTENT_COLUMNS}
""")

_SWEEP_SQL = text("""
    UPDATE checkout_intents
    SET status = 'expired',
        updated_at = NOW()
    WHERE status = 'pending'
      AND created_at < NOW() - make_interval(hours => :max_age_hours)
    RETURNING reference
""")


def _row_to_intent(row: object) -> CheckoutIntent:
    return CheckoutIntent(
        reference=row.reference,  # type: ignore[attr-defined]
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        target=WalletTarget(row.target),  # type: ignore[attr-defined]
        group_id=row.group_id,  # type: ignore[attr-defined]
        units=row.units,  # type: ignore[attr-defined]
        expected_amount=row.expected_amount,  # type: ignore[attr-defined]
        package_id=row.package_id,  # type: ignore[attr-defined]
        status=CheckoutStatus(row.status),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class CheckoutRepository:
    async def create(self, db: AsyncSession, intent: CheckoutIntent) -> CheckoutIntent:
        result = await db.execute(
            _CREATE_SQL,
            {
                "reference": intent.reference,
                "user_id": intent.user_id,
                "target": intent.target.value,
                "group_id": intent.group_id,
                "units": intent.units,
                "expected_amount": intent.expected_amount,
                "package_id": intent.package_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise DuplicateReferenceError(intent.reference)
        return _row_to_intent(row)

    async def get(self, db: AsyncSession, reference: str) -> CheckoutIntent | None:
        result = await db.execute(_GET_SQL, {"reference": reference})
        row = result.fetchone()
        return _row_to_intent(row) if row else None

    async def list_pending(self, db: AsyncSession, user_id: str) -> list[CheckoutIntent]:
        result = await db.execute(_LIST_PENDING_SQL, {"user_id": user_id})
        return [_row_to_intent(row) for row in result.fetchall()]

    async def mark_terminal(
        self, db: AsyncSession, reference: str, status: CheckoutStatus
    ) -> CheckoutIntent:
        if status == CheckoutStatus.PENDING:
            raise ValueError("pending is not a terminal checkout status")
        result = await db.execute(
            _MARK_TERMINAL_SQL, {"reference": reference, "status": status.value}
        )
        row = result.fetchone()
        if row is None:
            current = await self.get(db, reference)
            if current is None:
                raise CheckoutNotFoundError(reference)
            raise AlreadyTerminalError(reference, current.status.value)
        return _row_to_intent(row)

    async def sweep_expired(self, db: AsyncSession, max_age_hours: int) -> int:
        result = await db.execute(_SWEEP_SQL, {"max_age_hours": max_age_hours})
        expired = len(result.fetchall())
        if expired:
            logger.info("Expired %d stale checkouts older than %dh", expired, max_age_hours)
        return expired
