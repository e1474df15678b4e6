"""Repository Protocol for payment history."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_settlement.domain.models import PaymentRecord


class PaymentHistoryRepositoryProtocol(Protocol):
    async def get_by_reference(self, db: AsyncSession, reference: str) -> PaymentRecord | None: ...

    async def record_success(
        self, db: AsyncSession, reference: str, user_id: str, amount: int, plan: str
    ) -> bool:
        """True if this call settled the reference, False if it was already settled."""
        ...

    async def record_failure(
        self, db: AsyncSession, reference: str, user_id: str, amount: int, plan: str
    ) -> None: ...
