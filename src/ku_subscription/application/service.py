"""SubscriptionApplicationService: paid plan periods.

Verification follows the KU purchase path: idempotency on the payment
reference, provider verify with bounded retry, amount and payer checks, a
failed row on any rejection, and the success row plus subscription upsert in
one transaction.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ku_common.datetime_utils import utc_now
from src.ku_common.enums import PaymentStatus, ProviderStatus
from src.ku_common.errors import (
    AmountMismatchError,
    IdentityMismatchError,
    PaymentAlreadyProcessedError,
    SubscriptionNotFoundError,
    VerificationFailedError,
)
from src.ku_settlement.domain.repository import PaymentHistoryRepositoryProtocol
from src.ku_settlement.domain.verification import (
    TransactionVerifier,
    check_identity,
    check_reference,
    confirm_with_provider,
)
from src.ku_settlement.infrastructure.payment_history import PaymentHistoryRepository
from src.ku_settlement.infrastructure.paystack_client import PaystackClient
from src.ku_subscription.application.schemas import SubscriptionResponse
from src.ku_subscription.domain.models import SUBSCRIPTION_PERIOD, payment_label, plan_price
from src.ku_subscription.domain.repository import SubscriptionRepositoryProtocol
from src.ku_subscription.infrastructure.persistence import SubscriptionRepository

logger = logging.getLogger(__name__)


class SubscriptionApplicationService:
    def __init__(
        self,
        repo: SubscriptionRepositoryProtocol | None = None,
        payments: PaymentHistoryRepositoryProtocol | None = None,
        verifier: TransactionVerifier | None = None,
        verify_attempts: int | None = None,
        backoff_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._repo: SubscriptionRepositoryProtocol = repo or SubscriptionRepository()
        self._payments: PaymentHistoryRepositoryProtocol = payments or PaymentHistoryRepository()
        self._verifier: TransactionVerifier = verifier or PaystackClient()
        self._verify_attempts = (
            verify_attempts if verify_attempts is not None else settings.PAYSTACK_VERIFY_ATTEMPTS
        )
        self._backoff_seconds = (
            backoff_seconds
            if backoff_seconds is not None
            else settings.PAYSTACK_VERIFY_BACKOFF_SECONDS
        )
        self._sleep = sleep

    async def get_mine(self, db: AsyncSession, user_id: str) -> SubscriptionResponse:
        sub = await self._repo.get(db, user_id)
        if sub is None:
            raise SubscriptionNotFoundError(user_id)
        return SubscriptionResponse.from_subscription(sub, utc_now())

    async def verify(
        self, db: AsyncSession, user_id: str, email: str | None, reference: str, plan: str
    ) -> SubscriptionResponse:
        parsed_plan, expected_amount = plan_price(plan)
        label = payment_label(parsed_plan)

        existing = await self._payments.get_by_reference(db, reference)
        if existing is not None:
            if existing.status == PaymentStatus.SUCCESS and existing.user_id == user_id:
                sub = await self._repo.get(db, user_id)
                if sub is not None:
                    logger.info("Subscription payment %s already settled", reference)
                    return SubscriptionResponse.from_subscription(
                        sub, utc_now(), already_settled=True
                    )
            raise PaymentAlreadyProcessedError(reference)

        await db.rollback()
        confirmation = await confirm_with_provider(
            self._verifier, reference, self._verify_attempts, self._backoff_seconds, self._sleep
        )

        try:
            check_reference(confirmation, reference)
            if confirmation.status != ProviderStatus.SUCCESS:
                raise VerificationFailedError(confirmation.status.value)
            if confirmation.amount != expected_amount:
                raise AmountMismatchError(expected_amount, confirmation.amount)
            check_identity(confirmation, user_id, email)
        except (VerificationFailedError, AmountMismatchError, IdentityMismatchError) as exc:
            logger.error(
                "Subscription verification rejected for %s (plan=%s): %s provider_status=%s amount=%d",
                reference, parsed_plan.value, type(exc).__name__,
                confirmation.status.value, confirmation.amount,
            )
            try:
                await self._payments.record_failure(
                    db, reference, user_id, confirmation.amount, label
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            raise

        now = utc_now()
        try:
            settled_now = await self._payments.record_success(
                db, reference, user_id, confirmation.amount, label
            )
            if not settled_now:
                await db.rollback()
                raise PaymentAlreadyProcessedError(reference)
            sub = await self._repo.upsert_active(
                db,
                user_id,
                parsed_plan,
                now,
                now + SUBSCRIPTION_PERIOD,
                confirmation.customer_code,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Subscription %s active for user %s until %s",
            parsed_plan.value, user_id, sub.current_period_end.isoformat(),
        )
        return SubscriptionResponse.from_subscription(sub, now)
