"""Repository Protocol for the transaction ledger."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_common.enums import TransactionKind
from src.ku_ledger.domain.models import TransactionRecord
from src.ku_wallet.domain.models import Principal


class LedgerRepositoryProtocol(Protocol):
    async def append(
        self,
        db: AsyncSession,
        user_id: str,
        group_id: str | None,
        amount: int,
        kind: TransactionKind,
        description: str,
    ) -> TransactionRecord: ...

    async def list_for_principal(
        self,
        db: AsyncSession,
        principal: Principal,
        since: datetime | None,
        after: tuple[datetime, int] | None,
        limit: int,
    ) -> list[TransactionRecord]: ...

    async def sum_for_principal(self, db: AsyncSession, principal: Principal) -> int: ...
