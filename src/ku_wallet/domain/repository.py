"""Repository Protocol: dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_wallet.domain.models import Principal, Wallet


class WalletRepositoryProtocol(Protocol):
    async def get_wallet(self, db: AsyncSession, principal: Principal) -> Wallet | None: ...

    async def credit(
        self, db: AsyncSession, principal: Principal, amount: int, welcome_bonus: int
    ) -> Wallet: ...

    async def debit(
        self, db: AsyncSession, principal: Principal, amount: int, min_balance: int = 0
    ) -> Wallet: ...

    async def add_library_slot(
        self, db: AsyncSession, principal: Principal, cost: int
    ) -> Wallet: ...
