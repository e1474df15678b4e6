"""CheckoutApplicationService: registers intents before the user pays.

Units and amounts come only from the server-side price table; the intent is
what settlement later checks the provider-confirmed charge against.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ku_checkout.application.schemas import (
    CheckoutIntentResponse,
    CheckoutMetadata,
    CheckoutResponse,
    CreateCheckoutRequest,
    CustomField,
)
from src.ku_checkout.domain.models import CheckoutIntent
from src.ku_checkout.domain.pricing import quote
from src.ku_checkout.domain.reference import build_reference
from src.ku_checkout.domain.repository import CheckoutRepositoryProtocol
from src.ku_checkout.infrastructure.persistence import CheckoutRepository
from src.ku_common.enums import CheckoutStatus, WalletTarget
from src.ku_common.errors import CheckoutNotFoundError, GroupIdRequiredError

logger = logging.getLogger(__name__)


def _widget_metadata(intent: CheckoutIntent) -> CheckoutMetadata:
    label = intent.package_id or f"custom_{intent.units}"
    return CheckoutMetadata(
        user_id=intent.user_id,
        target=intent.target.value,
        group_id=intent.group_id,
        units=intent.units,
        custom_fields=[
            CustomField(display_name="Package", variable_name="package", value=label),
            CustomField(display_name="Target", variable_name="target", value=intent.target.value),
            CustomField(display_name="User ID", variable_name="user_id", value=intent.user_id),
        ],
    )


class CheckoutApplicationService:
    def __init__(self, repo: CheckoutRepositoryProtocol | None = None) -> None:
        self._repo: CheckoutRepositoryProtocol = repo or CheckoutRepository()

    async def create(
        self, db: AsyncSession, user_id: str, email: str, req: CreateCheckoutRequest
    ) -> CheckoutResponse:
        if req.target == WalletTarget.GROUP and not req.group_id:
            raise GroupIdRequiredError()
        priced = quote(req.package_id, req.custom_units)
        intent = CheckoutIntent(
            reference=build_reference(priced.label, req.target, user_id),
            user_id=user_id,
            target=req.target,
            group_id=req.group_id if req.target == WalletTarget.GROUP else None,
            units=priced.units,
            expected_amount=priced.amount,
            package_id=priced.package_id,
            status=CheckoutStatus.PENDING,
        )
        try:
            intent = await self._repo.create(db, intent)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Checkout registered: ref=%s user=%s units=%d amount=%d",
            intent.reference, user_id, intent.units, intent.expected_amount,
        )
        return CheckoutResponse(
            **CheckoutIntentResponse.from_intent(intent).model_dump(),
            email=email,
            amount=intent.expected_amount,
            currency=settings.CURRENCY,
            metadata=_widget_metadata(intent),
        )

    async def get(self, db: AsyncSession, user_id: str, reference: str) -> CheckoutIntentResponse:
        intent = await self._repo.get(db, reference)
        # Another user's intent reads as missing
        if intent is None or intent.user_id != user_id:
            raise CheckoutNotFoundError(reference)
        return CheckoutIntentResponse.from_intent(intent)

    async def list_pending(self, db: AsyncSession, user_id: str) -> list[CheckoutIntentResponse]:
        intents = await self._repo.list_pending(db, user_id)
        return [CheckoutIntentResponse.from_intent(i) for i in intents]

    async def sweep(self, db: AsyncSession, max_age_hours: int | None = None) -> int:
        """Expire intents still pending after the retention window."""
        hours = max_age_hours if max_age_hours is not None else settings.CHECKOUT_RETENTION_HOURS
        try:
            count = await self._repo.sweep_expired(db, hours)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return count
