"""ku_subscription REST API: all endpoints require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.ku_common.database import DbSession
from src.ku_common.response import ApiResponse, success_response
from src.ku_gateway.auth.dependencies import CurrentUser
from src.ku_gateway.middleware.rate_limit import settle_rate_limit
from src.ku_subscription.application.schemas import VerifySubscriptionRequest
from src.ku_subscription.application.service import SubscriptionApplicationService

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])

_service = SubscriptionApplicationService()


def get_subscription_service() -> SubscriptionApplicationService:
    return _service


@router.post("/verify", dependencies=[Depends(settle_rate_limit)])
async def verify_subscription(
    body: VerifySubscriptionRequest,
    current_user: CurrentUser,
    db: DbSession,
    service: Annotated[SubscriptionApplicationService, Depends(get_subscription_service)],
    request: Request,
) -> ApiResponse:
    data = await service.verify(
        db, str(current_user.id), current_user.email, body.reference, body.plan
    )
    return success_response(data.model_dump(mode="json"), request, "Subscription active")


@router.get("/me")
async def get_my_subscription(
    current_user: CurrentUser,
    db: DbSession,
    service: Annotated[SubscriptionApplicationService, Depends(get_subscription_service)],
    request: Request,
) -> ApiResponse:
    data = await service.get_mine(db, str(current_user.id))
    return success_response(data.model_dump(mode="json"), request)
