"""Repository Protocol for subscriptions."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_common.enums import SubscriptionPlan
from src.ku_subscription.domain.models import Subscription


class SubscriptionRepositoryProtocol(Protocol):
    async def get(self, db: AsyncSession, user_id: str) -> Subscription | None: ...

    async def upsert_active(
        self,
        db: AsyncSession,
        user_id: str,
        plan: SubscriptionPlan,
        period_start: datetime,
        period_end: datetime,
        customer_code: str | None,
    ) -> Subscription: ...
