"""SettlementEngine: turns a confirmed payment into exactly one wallet credit.

Two entry points converge on `_settle`:

  settle_client   caller is authenticated by bearer token; the payment is
                  authenticated by asking Paystack to verify the reference.
  settle_webhook  the payment is authenticated by the HMAC signature the
                  router already checked; Paystack pushed the confirmation.

Per reference:
  1. payment_history has a success row   -> AlreadySettled, no credit
  2. resolve terms (intent or price table), never from the request amount
  3. confirmation is for this reference and its status is success
  4. confirmed amount == expected amount  (else fail, intent amount_mismatch)
  5. payer in metadata == principal       (else fail, intent stays pending)
  6. record success + credit + ledger + intent completed, one transaction

The success row written in step 6 is conditional on no success row existing
yet, so two settlers racing past step 1 still credit only once.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ku_checkout.domain.models import CheckoutIntent
from src.ku_checkout.domain.pricing import KU_PACKAGES
from src.ku_checkout.domain.repository import CheckoutRepositoryProtocol
from src.ku_checkout.infrastructure.persistence import CheckoutRepository
from src.ku_common.enums import (
    CheckoutStatus,
    PaymentStatus,
    ProviderStatus,
    TransactionKind,
    WalletTarget,
)
from src.ku_common.errors import (
    AlreadyTerminalError,
    AmountMismatchError,
    AppError,
    CheckoutMismatchError,
    CheckoutNotFoundError,
    CheckoutNotPendingError,
    CheckoutRequiredError,
    GroupIdRequiredError,
    IdentityMismatchError,
    InvalidPackageError,
    PaymentAlreadyProcessedError,
    VerificationFailedError,
)
from src.ku_ledger.domain.repository import LedgerRepositoryProtocol
from src.ku_ledger.infrastructure.persistence import LedgerRepository
from src.ku_settlement.domain.models import (
    AuthMethod,
    PaymentConfirmation,
    PurchaseClaim,
    PurchaseTerms,
    SettlementContext,
    SettlementOutcome,
    SettlementResult,
)
from src.ku_settlement.domain.repository import PaymentHistoryRepositoryProtocol
from src.ku_settlement.domain.verification import (
    TransactionVerifier,
    check_identity,
    check_reference,
    confirm_with_provider,
)
from src.ku_settlement.infrastructure.notifier import SlackNotifier
from src.ku_settlement.infrastructure.payment_history import PaymentHistoryRepository
from src.ku_settlement.infrastructure.paystack_client import PaystackClient
from src.ku_wallet.domain.constants import welcome_bonus
from src.ku_wallet.domain.models import Principal
from src.ku_wallet.domain.repository import WalletRepositoryProtocol
from src.ku_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)

CHARGE_SUCCESS_EVENT = "charge.success"


def _terms_from_intent(intent: CheckoutIntent) -> PurchaseTerms:
    return PurchaseTerms(
        user_id=intent.user_id,
        target=intent.target,
        group_id=intent.group_id,
        units=intent.units,
        expected_amount=intent.expected_amount,
        package_id=intent.package_id,
        from_intent=True,
    )


def _check_claim_against_intent(claim: PurchaseClaim, intent: CheckoutIntent) -> None:
    if claim.target != intent.target:
        raise CheckoutMismatchError(f"target {claim.target.value} != {intent.target.value}")
    if intent.target == WalletTarget.GROUP and claim.group_id and claim.group_id != intent.group_id:
        raise CheckoutMismatchError("group")
    if claim.package_id is not None and claim.package_id != intent.package_id:
        raise CheckoutMismatchError(f"package {claim.package_id}")
    if claim.custom_units is not None and claim.custom_units != intent.units:
        raise CheckoutMismatchError(f"units {claim.custom_units}")


class SettlementEngine:
    def __init__(
        self,
        wallets: WalletRepositoryProtocol | None = None,
        checkouts: CheckoutRepositoryProtocol | None = None,
        ledger: LedgerRepositoryProtocol | None = None,
        payments: PaymentHistoryRepositoryProtocol | None = None,
        verifier: TransactionVerifier | None = None,
        notifier: SlackNotifier | None = None,
        verify_attempts: int | None = None,
        backoff_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._wallets: WalletRepositoryProtocol = wallets or WalletRepository()
        self._checkouts: CheckoutRepositoryProtocol = checkouts or CheckoutRepository()
        self._ledger: LedgerRepositoryProtocol = ledger or LedgerRepository()
        self._payments: PaymentHistoryRepositoryProtocol = payments or PaymentHistoryRepository()
        self._verifier: TransactionVerifier = verifier or PaystackClient()
        self._notifier = notifier or SlackNotifier()
        self._verify_attempts = (
            verify_attempts if verify_attempts is not None else settings.PAYSTACK_VERIFY_ATTEMPTS
        )
        self._backoff_seconds = (
            backoff_seconds
            if backoff_seconds is not None
            else settings.PAYSTACK_VERIFY_BACKOFF_SECONDS
        )
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Client-driven path
    # ------------------------------------------------------------------

    async def settle_client(
        self, db: AsyncSession, user_id: str, email: str | None, claim: PurchaseClaim
    ) -> SettlementResult:
        ctx = SettlementContext(
            reference=claim.reference, auth=AuthMethod.PROVIDER_VERIFY, user_id=user_id, email=email
        )
        intent = await self._checkouts.get(db, claim.reference)
        if intent is not None and intent.user_id != user_id:
            logger.warning(
                "User %s tried to settle checkout %s owned by %s",
                user_id, claim.reference, intent.user_id,
            )
            raise CheckoutNotFoundError(claim.reference)

        existing = await self._payments.get_by_reference(db, claim.reference)
        if existing is not None:
            if existing.status == PaymentStatus.SUCCESS and existing.user_id == user_id:
                principal = (
                    intent.wallet_principal if intent else self._claimed_principal(claim, user_id)
                )
                logger.info("Reference %s already settled, returning current balance", claim.reference)
                return await self._already_settled(db, claim.reference, principal)
            raise PaymentAlreadyProcessedError(claim.reference)

        terms = self._resolve_client_terms(claim, user_id, intent)
        if intent is not None and not intent.is_pending:
            raise CheckoutNotPendingError(claim.reference, intent.status.value)

        # No transaction stays open while the provider is polled
        await db.rollback()
        confirmation = await confirm_with_provider(
            self._verifier,
            claim.reference,
            self._verify_attempts,
            self._backoff_seconds,
            self._sleep,
        )
        return await self._settle(db, ctx, terms, confirmation)

    @staticmethod
    def _claimed_principal(claim: PurchaseClaim, user_id: str) -> Principal:
        if claim.target == WalletTarget.GROUP and claim.group_id:
            return Principal.group(claim.group_id)
        return Principal.user(user_id)

    @staticmethod
    def _resolve_client_terms(
        claim: PurchaseClaim, user_id: str, intent: CheckoutIntent | None
    ) -> PurchaseTerms:
        """Registered intent first, then the price table. Never the request body."""
        if intent is not None:
            _check_claim_against_intent(claim, intent)
            return _terms_from_intent(intent)

        if claim.from_pending:
            raise CheckoutNotFoundError(claim.reference)
        if claim.custom_units is not None:
            raise CheckoutRequiredError()
        if claim.target == WalletTarget.GROUP and not claim.group_id:
            raise GroupIdRequiredError()
        package = KU_PACKAGES.get(claim.package_id or "")
        if package is None:
            raise InvalidPackageError()
        return PurchaseTerms(
            user_id=user_id,
            target=claim.target,
            group_id=claim.group_id if claim.target == WalletTarget.GROUP else None,
            units=package.units,
            expected_amount=package.amount,
            package_id=package.id,
            from_intent=False,
        )

    # ------------------------------------------------------------------
    # Webhook-driven path
    # ------------------------------------------------------------------

    async def settle_webhook(self, db: AsyncSession, payload: dict[str, Any]) -> SettlementResult:
        """Settle a signature-verified webhook event.

        Every semantically handled case returns a result so the router can
        answer 200; only unexpected errors propagate.
        """
        event = payload.get("event")
        data = payload.get("data")
        if event != CHARGE_SUCCESS_EVENT or not isinstance(data, dict):
            logger.info("Ignoring Paystack event %s", event)
            return SettlementResult(reference="", outcome=SettlementOutcome.IGNORED)

        confirmation = PaymentConfirmation.from_provider_data(data)
        reference = confirmation.reference
        if not reference:
            logger.error("charge.success webhook without a reference")
            return SettlementResult(reference="", outcome=SettlementOutcome.IGNORED)

        intent = await self._checkouts.get(db, reference)
        existing = await self._payments.get_by_reference(db, reference)
        if existing is not None and existing.status == PaymentStatus.SUCCESS:
            logger.info("Webhook for %s: already settled", reference)
            principal = intent.wallet_principal if intent else Principal.user(existing.user_id)
            return await self._already_settled(db, reference, principal)

        if intent is None:
            logger.warning("Webhook for %s: no checkout registered", reference)
            return SettlementResult(reference=reference, outcome=SettlementOutcome.NO_CHECKOUT)
        if not intent.is_pending:
            logger.warning("Webhook for %s: checkout is %s", reference, intent.status.value)
            return SettlementResult(
                reference=reference, outcome=SettlementOutcome.CHECKOUT_NOT_PENDING
            )

        ctx = SettlementContext(reference=reference, auth=AuthMethod.SIGNATURE)
        return await self._settle(db, ctx, _terms_from_intent(intent), confirmation)

    # ------------------------------------------------------------------
    # Shared settlement
    # ------------------------------------------------------------------

    async def _settle(
        self,
        db: AsyncSession,
        ctx: SettlementContext,
        terms: PurchaseTerms,
        confirmation: PaymentConfirmation,
    ) -> SettlementResult:
        try:
            check_reference(confirmation, ctx.reference)
            if confirmation.status != ProviderStatus.SUCCESS:
                raise VerificationFailedError(confirmation.status.value)
            if confirmation.amount != terms.expected_amount:
                raise AmountMismatchError(terms.expected_amount, confirmation.amount)
            check_identity(confirmation, terms.user_id, ctx.email)
        except (VerificationFailedError, AmountMismatchError, IdentityMismatchError) as exc:
            return await self._fail(db, ctx, terms, confirmation, exc)

        return await self._credit(db, ctx, terms, confirmation)

    async def _fail(
        self,
        db: AsyncSession,
        ctx: SettlementContext,
        terms: PurchaseTerms,
        confirmation: PaymentConfirmation,
        exc: AppError,
    ) -> SettlementResult:
        """Write the terminal failed row, then raise (client) or report (webhook)."""
        reference = ctx.reference
        if isinstance(exc, AmountMismatchError):
            logger.error(
                "Amount mismatch for %s: expected=%d confirmed=%d",
                reference, exc.expected, exc.confirmed,
            )
            outcome = SettlementOutcome.AMOUNT_MISMATCH
        elif isinstance(exc, IdentityMismatchError):
            logger.error("Identity mismatch for %s: %s", reference, exc.detail)
            outcome = SettlementOutcome.IDENTITY_MISMATCH
        else:
            reason = getattr(exc, "provider_status", confirmation.status.value)
            logger.warning("Verification failed for %s: %s", reference, reason)
            outcome = SettlementOutcome.NOT_SUCCESSFUL

        try:
            await self._payments.record_failure(
                db, reference, terms.user_id, confirmation.amount, terms.plan_label
            )
            if outcome == SettlementOutcome.AMOUNT_MISMATCH and terms.from_intent:
                try:
                    await self._checkouts.mark_terminal(
                        db, reference, CheckoutStatus.AMOUNT_MISMATCH
                    )
                except AlreadyTerminalError as terminal:
                    logger.info("Checkout %s already %s", reference, terminal.status)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if ctx.auth == AuthMethod.PROVIDER_VERIFY:
            raise exc
        return SettlementResult(reference=reference, outcome=outcome)

    async def _credit(
        self,
        db: AsyncSession,
        ctx: SettlementContext,
        terms: PurchaseTerms,
        confirmation: PaymentConfirmation,
    ) -> SettlementResult:
        reference = ctx.reference
        principal = terms.wallet_principal
        try:
            settled_now = await self._payments.record_success(
                db, reference, terms.user_id, confirmation.amount, terms.plan_label
            )
            if not settled_now:
                await db.rollback()
                logger.info("Reference %s settled concurrently, not crediting again", reference)
                return await self._already_settled(db, reference, principal)

            wallet = await self._wallets.credit(
                db, principal, terms.units, welcome_bonus(principal.kind)
            )
            source = "webhook" if ctx.auth == AuthMethod.SIGNATURE else "verified"
            await self._ledger.append(
                db,
                user_id=terms.user_id,
                group_id=terms.group_id if terms.target == WalletTarget.GROUP else None,
                amount=terms.units,
                kind=TransactionKind.PURCHASE,
                description=(
                    f"Purchased {terms.units} KU for {terms.target.value} wallet ({source})"
                ),
            )
            if terms.from_intent:
                try:
                    await self._checkouts.mark_terminal(db, reference, CheckoutStatus.COMPLETED)
                except AlreadyTerminalError as terminal:
                    logger.info("Checkout %s already %s", reference, terminal.status)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Credited %d KU to %s %s for %s via %s, balance=%d",
            terms.units, principal.kind.value, principal.id, reference,
            ctx.auth.value, wallet.balance,
        )
        await self._notifier.payment_success(
            ctx.email or confirmation.email,
            confirmation.amount,
            terms.units,
            terms.target.value,
        )
        return SettlementResult(
            reference=reference,
            outcome=SettlementOutcome.CREDITED,
            units_credited=terms.units,
            new_balance=wallet.balance,
        )

    async def _already_settled(
        self, db: AsyncSession, reference: str, principal: Principal
    ) -> SettlementResult:
        wallet = await self._wallets.get_wallet(db, principal)
        return SettlementResult(
            reference=reference,
            outcome=SettlementOutcome.ALREADY_SETTLED,
            units_credited=0,
            new_balance=wallet.balance if wallet else 0,
        )
