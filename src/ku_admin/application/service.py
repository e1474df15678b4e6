"""Admin application service: credit grants, checkout expiry, reconciliation."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_checkout.application.service import CheckoutApplicationService
from src.ku_common.enums import TransactionKind
from src.ku_ledger.domain.repository import LedgerRepositoryProtocol
from src.ku_ledger.infrastructure.persistence import LedgerRepository
from src.ku_wallet.application.service import WalletApplicationService
from src.ku_wallet.domain.constants import welcome_bonus
from src.ku_wallet.domain.models import Principal
from src.ku_wallet.domain.repository import WalletRepositoryProtocol
from src.ku_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(
        self,
        wallet_service: WalletApplicationService | None = None,
        checkout_service: CheckoutApplicationService | None = None,
        wallets: WalletRepositoryProtocol | None = None,
        ledger: LedgerRepositoryProtocol | None = None,
    ) -> None:
        self._wallet_service = wallet_service or WalletApplicationService()
        self._checkout_service = checkout_service or CheckoutApplicationService()
        self._wallets: WalletRepositoryProtocol = wallets or WalletRepository()
        self._ledger: LedgerRepositoryProtocol = ledger or LedgerRepository()

    async def grant(
        self,
        db: AsyncSession,
        principal: Principal,
        units: int,
        kind: TransactionKind,
        description: str | None,
        acting_user_id: str,
    ) -> dict[str, Any]:
        wallet = await self._wallet_service.grant(
            db,
            principal,
            units,
            kind,
            description or kind.value.replace("_", " ").capitalize(),
            acting_user_id,
        )
        return {
            "principal_kind": principal.kind.value,
            "principal_id": principal.id,
            "units_credited": units,
            "new_balance": wallet.balance,
        }

    async def sweep_checkouts(
        self, db: AsyncSession, max_age_hours: int | None = None
    ) -> dict[str, Any]:
        expired = await self._checkout_service.sweep(db, max_age_hours)
        return {"expired": expired}

    async def reconcile(self, db: AsyncSession, principal: Principal) -> dict[str, Any]:
        """Compare the wallet balance with its ledger. Diagnostic only.

        The welcome bonus is part of the first credit but has no ledger row,
        so a wallet that exists is expected at ledger_sum + welcome_bonus.
        """
        wallet = await self._wallets.get_wallet(db, principal)
        ledger_sum = await self._ledger.sum_for_principal(db, principal)
        balance = wallet.balance if wallet else 0
        bonus = welcome_bonus(principal.kind) if wallet else 0
        drift = balance - (ledger_sum + bonus)
        if drift:
            logger.warning(
                "Ledger drift for %s %s: balance=%d ledger=%d bonus=%d",
                principal.kind.value, principal.id, balance, ledger_sum, bonus,
            )
        return {
            "principal_kind": principal.kind.value,
            "principal_id": principal.id,
            "wallet_exists": wallet is not None,
            "balance": balance,
            "ledger_sum": ledger_sum,
            "welcome_bonus": bonus,
            "drift": drift,
            "ok": drift == 0,
        }
