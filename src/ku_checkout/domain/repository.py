"""Repository Protocol for checkout intents."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_checkout.domain.models import CheckoutIntent
from src.ku_common.enums import CheckoutStatus


class CheckoutRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, intent: CheckoutIntent) -> CheckoutIntent: ...

    async def get(self, db: AsyncSession, reference: str) -> CheckoutIntent | None: ...

    async def list_pending(self, db: AsyncSession, user_id: str) -> list[CheckoutIntent]: ...

    async def mark_terminal(
        self, db: AsyncSession, reference: str, status: CheckoutStatus
    ) -> CheckoutIntent: ...

    async def sweep_expired(self, db: AsyncSession, max_age_hours: int) -> int: ...
