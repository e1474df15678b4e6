"""ku_settlement REST API.

/settle-purchase is called by the client after the payment widget reports
success and requires JWT authentication. /webhook is called by Paystack and is
authenticated by the x-paystack-signature header instead; it is also served
at /payment-webhook.
"""

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from config.settings import settings
from src.ku_common.database import DbSession
from src.ku_common.errors import InvalidSignatureError
from src.ku_common.response import ApiResponse, success_response
from src.ku_gateway.auth.dependencies import CurrentUser
from src.ku_gateway.middleware.rate_limit import settle_rate_limit
from src.ku_settlement.application.engine import SettlementEngine
from src.ku_settlement.application.schemas import (
    SettlePurchaseRequest,
    SettlePurchaseResponse,
    WebhookAck,
)
from src.ku_settlement.domain.models import SettlementOutcome
from src.ku_settlement.domain.signature import verify_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])

_engine = SettlementEngine()


def get_settlement_engine() -> SettlementEngine:
    return _engine


@router.post("/settle-purchase", dependencies=[Depends(settle_rate_limit)])
async def settle_purchase(
    body: SettlePurchaseRequest,
    current_user: CurrentUser,
    db: DbSession,
    engine: Annotated[SettlementEngine, Depends(get_settlement_engine)],
    request: Request,
) -> ApiResponse:
    result = await engine.settle_client(
        db, str(current_user.id), current_user.email, body.to_claim()
    )
    message = "Payment already settled" if result.already_settled else "Payment settled"
    data = SettlePurchaseResponse.from_result(result).model_dump(by_alias=True)
    return success_response(data, request, message)


@router.post("/webhook")
async def paystack_webhook(
    request: Request,
    db: DbSession,
    engine: Annotated[SettlementEngine, Depends(get_settlement_engine)],
    x_paystack_signature: Annotated[str | None, Header()] = None,
) -> WebhookAck:
    # The signature covers the exact bytes Paystack sent
    raw_body = await request.body()
    if not verify_signature(settings.PAYSTACK_SECRET_KEY, raw_body, x_paystack_signature):
        logger.warning("Rejected Paystack webhook with a bad or missing signature")
        raise InvalidSignatureError()

    try:
        payload = json.loads(raw_body)
    except ValueError:
        logger.error("Signed Paystack webhook with an unparseable body")
        return WebhookAck(outcome=SettlementOutcome.IGNORED.value)
    if not isinstance(payload, dict):
        return WebhookAck(outcome=SettlementOutcome.IGNORED.value)

    result = await engine.settle_webhook(db, payload)
    return WebhookAck(outcome=result.outcome.value)


# Webhook URL as registered on the Paystack dashboard
webhook_alias_router = APIRouter(tags=["payments"])
webhook_alias_router.add_api_route(
    "/payment-webhook", paystack_webhook, methods=["POST"], include_in_schema=False
)
