"""SubscriptionRepository: one row per user, replaced on every paid period."""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_common.enums import SubscriptionPlan, SubscriptionStatus
from src.ku_common.errors import InternalError
from src.ku_subscription.domain.models import Subscription

_COLUMNS = "user_id, plan, status, current_period_start, current_period_end, customer_code"

_GET_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM subscriptions
    WHERE user_id = :user_id
""")

_UPSERT_SQL = text(f"""
    INSERT INTO subscriptions
        (user_id, plan, status, current_period_start, current_period_end, customer_code)
    VALUES
        (:user_id, :plan, 'active', :period_start, :period_end, :customer_code)
    ON CONFLICT (user_id) DO UPDATE
        SET plan = EXCLUDED.plan,
            status = 'active',
            current_period_start = EXCLUDED.current_period_start,
            current_period_end = EXCLUDED.current_period_end,
            customer_code = COALESCE(EXCLUDED.customer_code, subscriptions.customer_code),
            updated_at = NOW()
    RETURNING {_COLUMNS}
""")


def _row_to_subscription(row: object) -> Subscription:
    return Subscription(
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        plan=SubscriptionPlan(row.plan),  # type: ignore[attr-defined]
        status=SubscriptionStatus(row.status),  # type: ignore[attr-defined]
        current_period_start=row.current_period_start,  # type: ignore[attr-defined]
        current_period_end=row.current_period_end,  # type: ignore[attr-defined]
        customer_code=row.customer_code,  # type: ignore[attr-defined]
    )


class SubscriptionRepository:
    async def get(self, db: AsyncSession, user_id: str) -> Subscription | None:
        result = await db.execute(_GET_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_subscription(row) if row else None

    async def upsert_active(
        self,
        db: AsyncSession,
        user_id: str,
        plan: SubscriptionPlan,
        period_start: datetime,
        period_end: datetime,
        customer_code: str | None,
    ) -> Subscription:
        result = await db.execute(
            _UPSERT_SQL,
            {
                "user_id": user_id,
                "plan": plan.value,
                "period_start": period_start,
                "period_end": period_end,
                "customer_code": customer_code,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Subscription upsert returned no rows")
        return _row_to_subscription(row)
