"""WalletApplicationService: balance reads, consumption and admin grants.

Every mutation pairs the wallet statement with its ledger append in one
transaction: commit on success, roll back and re-raise on any error.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_common.enums import ConsumptionReason, PrincipalKind, TransactionKind
from src.ku_ledger.domain.repository import LedgerRepositoryProtocol
from src.ku_ledger.infrastructure.persistence import LedgerRepository
from src.ku_wallet.application.schemas import DebitResponse, WalletResponse
from src.ku_wallet.domain.constants import (
    CONSUMPTION_DESCRIPTIONS,
    CONSUMPTION_PRICES,
    welcome_bonus,
)
from src.ku_wallet.domain.models import Principal, Wallet
from src.ku_wallet.domain.repository import WalletRepositoryProtocol
from src.ku_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)


class WalletApplicationService:
    def __init__(
        self,
        repo: WalletRepositoryProtocol | None = None,
        ledger: LedgerRepositoryProtocol | None = None,
    ) -> None:
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()
        self._ledger: LedgerRepositoryProtocol = ledger or LedgerRepository()

    async def get_wallet(self, db: AsyncSession, principal: Principal) -> WalletResponse:
        wallet = await self._repo.get_wallet(db, principal)
        return WalletResponse.from_wallet(wallet or Wallet.empty(principal))

    async def consume(
        self,
        db: AsyncSession,
        user_id: str,
        reason: ConsumptionReason,
        group_id: str | None = None,
    ) -> DebitResponse:
        """Debit the price of `reason` from the user's (or group's) wallet."""
        cost, min_balance = CONSUMPTION_PRICES[reason]
        principal = Principal.group(group_id) if group_id else Principal.user(user_id)
        try:
            if reason == ConsumptionReason.LIBRARY_SLOT:
                wallet = await self._repo.add_library_slot(db, principal, cost)
            else:
                wallet = await self._repo.debit(db, principal, cost, min_balance)
            record = await self._ledger.append(
                db,
                user_id=user_id,
                group_id=group_id,
                amount=-cost,
                kind=TransactionKind.CONSUMPTION,
                description=CONSUMPTION_DESCRIPTIONS[reason],
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Consumed %d KU (%s) from %s %s, balance=%d",
            cost, reason.value, principal.kind.value, principal.id, wallet.balance,
        )
        return DebitResponse(
            reason=reason.value,
            units_debited=cost,
            new_balance=wallet.balance,
            library_slots=wallet.library_slots,
            transaction_id=record.id,
        )

    async def grant(
        self,
        db: AsyncSession,
        principal: Principal,
        units: int,
        kind: TransactionKind,
        description: str,
        acting_user_id: str,
    ) -> Wallet:
        """Credit units outside a payment (referral bonus, support refund)."""
        is_group = principal.kind == PrincipalKind.GROUP
        try:
            wallet = await self._repo.credit(db, principal, units, welcome_bonus(principal.kind))
            await self._ledger.append(
                db,
                user_id=acting_user_id if is_group else principal.id,
                group_id=principal.id if is_group else None,
                amount=units,
                kind=kind,
                description=description,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Granted %d KU (%s) to %s %s by %s",
            units, kind.value, principal.kind.value, principal.id, acting_user_id,
        )
        return wallet
