"""Provider verification with bounded retry, and the identity cross-check.

Shared by KU purchase settlement and subscription verification.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from src.ku_common.enums import RETRYABLE_PROVIDER_STATUSES
from src.ku_common.errors import (
    IdentityMismatchError,
    VerificationFailedError,
    VerificationPendingError,
)
from src.ku_settlement.domain.models import PaymentConfirmation

logger = logging.getLogger(__name__)

REFERENCE_MISMATCH = "reference_mismatch"


class TransactionVerifier(Protocol):
    async def verify(self, reference: str) -> PaymentConfirmation: ...


async def confirm_with_provider(
    verifier: TransactionVerifier,
    reference: str,
    attempts: int,
    backoff_seconds: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> PaymentConfirmation:
    """Ask the provider for the transaction's status until it is terminal.

    Sleeps backoff_seconds * (attempt + 1) between tries. Still pending after
    the last attempt raises VerificationPendingError; the caller must not
    record a failure for it since the webhook may settle it later.
    """
    for attempt in range(attempts):
        confirmation = await verifier.verify(reference)
        if confirmation.status not in RETRYABLE_PROVIDER_STATUSES:
            return confirmation
        logger.info(
            "Provider reports %s for %s (attempt %d/%d)",
            confirmation.status.value, reference, attempt + 1, attempts,
        )
        if attempt < attempts - 1:
            await sleep(backoff_seconds * (attempt + 1))
    raise VerificationPendingError(reference)


def check_reference(confirmation: PaymentConfirmation, reference: str) -> None:
    """The provider must have confirmed the reference being settled, not another one."""
    if confirmation.reference != reference:
        logger.error(
            "Provider confirmed %r while settling %r", confirmation.reference, reference
        )
        raise VerificationFailedError(REFERENCE_MISMATCH)


def check_identity(
    confirmation: PaymentConfirmation, user_id: str, email: str | None = None
) -> None:
    """The payer named in the confirmation must be the principal settling it."""
    metadata_user = confirmation.metadata_value("user_id")
    if metadata_user is not None and metadata_user != user_id:
        raise IdentityMismatchError(
            f"metadata user_id {metadata_user} != principal {user_id}"
        )
    if email and confirmation.email and confirmation.email.lower() != email.lower():
        raise IdentityMismatchError(
            f"payer email {confirmation.email} != principal email {email}"
        )
