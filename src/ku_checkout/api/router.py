"""ku_checkout REST API: all endpoints require JWT authentication."""

from fastapi import APIRouter, Depends, Request

from src.ku_checkout.application.schemas import CreateCheckoutRequest, PendingCheckoutList
from src.ku_checkout.application.service import CheckoutApplicationService
from src.ku_common.database import DbSession
from src.ku_common.response import ApiResponse, success_response
from src.ku_gateway.auth.dependencies import CurrentUser
from src.ku_gateway.middleware.rate_limit import checkout_rate_limit

router = APIRouter(prefix="/checkouts", tags=["checkouts"])

_service = CheckoutApplicationService()


@router.post("", status_code=201, dependencies=[Depends(checkout_rate_limit)])
async def create_checkout(
    body: CreateCheckoutRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.create(db, str(current_user.id), current_user.email, body)
    return success_response(data.model_dump(mode="json"), request, "Checkout created")


# Must be registered before /{reference}
@router.get("/pending")
async def list_pending_checkouts(
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    items = await _service.list_pending(db, str(current_user.id))
    return success_response(PendingCheckoutList(items=items).model_dump(mode="json"), request)


@router.get("/{reference}")
async def get_checkout(
    reference: str,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.get(db, str(current_user.id), reference)
    return success_response(data.model_dump(mode="json"), request)
