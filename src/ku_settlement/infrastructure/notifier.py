"""Slack incoming-webhook notifications for successful payments.

Best effort: runs after the settlement has committed, and a failed post is
logged only.
"""

import logging

import httpx

from config.settings import settings
from src.ku_common.money import kobo_to_display

logger = logging.getLogger(__name__)


class SlackNotifier:
    def __init__(
        self,
        webhook_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.webhook_url = webhook_url if webhook_url is not None else settings.SLACK_WEBHOOK_URL
        self._transport = transport

    @staticmethod
    def format_payment_success(email: str | None, amount: int, units: int, target: str) -> str:
        return (
            "💰 *Payment received!*\n"
            f"User: {email or 'unknown'}\n"
            f"Amount: {kobo_to_display(amount)}\n"
            f"Units: {units} KU\n"
            f"Target: {target}"
        )

    async def payment_success(
        self, email: str | None, amount: int, units: int, target: str
    ) -> bool:
        if not self.webhook_url:
            logger.debug("SLACK_WEBHOOK_URL not set, skipping payment notification")
            return False
        text = self.format_payment_success(email, amount, units, target)
        try:
            async with httpx.AsyncClient(timeout=5.0, transport=self._transport) as client:
                response = await client.post(self.webhook_url, json={"text": text})
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Slack notification failed: %s", exc)
            return False
        return True
