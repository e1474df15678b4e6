"""Paystack API client: server-side transaction verification."""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from config.settings import settings
from src.ku_common.enums import ProviderStatus
from src.ku_common.errors import PaymentProviderError
from src.ku_settlement.domain.models import PaymentConfirmation

logger = logging.getLogger(__name__)


class PaystackClient:
    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.secret_key = secret_key or settings.PAYSTACK_SECRET_KEY
        self.base_url = (base_url or settings.PAYSTACK_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.PAYSTACK_TIMEOUT_SECONDS
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def verify(self, reference: str) -> PaymentConfirmation:
        """GET /transaction/verify/{reference}.

        A reference Paystack does not know comes back as status 'unknown'.
        Network errors and 5xx responses raise PaymentProviderError.
        """
        url = f"{self.base_url}/transaction/verify/{quote(reference, safe='')}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.error("Paystack verify failed for %s: %s", reference, exc)
            raise PaymentProviderError(str(exc)) from exc

        if response.status_code >= 500:
            logger.error("Paystack verify returned %d for %s", response.status_code, reference)
            raise PaymentProviderError(f"HTTP {response.status_code}")

        try:
            body: dict[str, Any] = response.json()
        except ValueError as exc:
            raise PaymentProviderError("Invalid JSON from Paystack") from exc

        data = body.get("data")
        if not body.get("status") or not isinstance(data, dict):
            logger.warning(
                "Paystack could not verify %s: %s", reference, body.get("message", "no data")
            )
            return PaymentConfirmation(reference=reference, status=ProviderStatus.UNKNOWN, amount=0)

        confirmation = PaymentConfirmation.from_provider_data(data)
        logger.debug(
            "Paystack verify %s: status=%s amount=%d",
            reference, confirmation.status.value, confirmation.amount,
        )
        return confirmation
