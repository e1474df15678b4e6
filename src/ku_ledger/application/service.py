"""LedgerApplicationService: read side of the transaction ledger.

Writes happen at the call site of every wallet mutation (settlement,
consumption, grants) through LedgerRepository.append, inside the same
transaction as the balance change.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_ledger.application.schemas import (
    TransactionItem,
    TransactionPage,
    cursor_decode,
    cursor_encode,
)
from src.ku_ledger.domain.repository import LedgerRepositoryProtocol
from src.ku_ledger.infrastructure.persistence import LedgerRepository
from src.ku_wallet.domain.models import Principal


class LedgerApplicationService:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()

    async def list_transactions(
        self,
        db: AsyncSession,
        principal: Principal,
        since: datetime | None,
        cursor: str | None,
        limit: int,
    ) -> TransactionPage:
        after = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        records = await self._repo.list_for_principal(db, principal, since, after, limit + 1)
        has_more = len(records) > limit
        page = records[:limit]

        next_cursor = (
            cursor_encode(page[-1].created_at, page[-1].id) if has_more and page else None
        )
        return TransactionPage(
            items=[TransactionItem.from_record(r) for r in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
