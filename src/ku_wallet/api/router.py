"""ku_wallet REST API: all endpoints require JWT authentication.

Group membership is not checked here: the groups service in front of this API
decides who may read or spend a group wallet.
"""

from fastapi import APIRouter, Request

from src.ku_common.database import DbSession
from src.ku_common.enums import ConsumptionReason
from src.ku_common.response import ApiResponse, success_response
from src.ku_gateway.auth.dependencies import CurrentUser
from src.ku_wallet.application.schemas import ConsumeRequest
from src.ku_wallet.application.service import WalletApplicationService
from src.ku_wallet.domain.models import Principal

router = APIRouter(prefix="/wallet", tags=["wallet"])

_service = WalletApplicationService()


@router.get("/balance")
async def get_balance(
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.get_wallet(db, Principal.user(str(current_user.id)))
    return success_response(data.model_dump(), request)


@router.get("/groups/{group_id}/balance")
async def get_group_balance(
    group_id: str,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    """Group wallet balance. Caller membership is authorized upstream."""
    data = await _service.get_wallet(db, Principal.group(group_id))
    return success_response(data.model_dump(), request)


@router.post("/consume")
async def consume(
    body: ConsumeRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    """Debit the caller's wallet, or the group wallet named by groupId.

    Group membership is authorized upstream.
    """
    data = await _service.consume(db, str(current_user.id), body.reason, body.group_id)
    return success_response(data.model_dump(), request)


@router.post("/library-slots")
async def buy_library_slot(
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.consume(db, str(current_user.id), ConsumptionReason.LIBRARY_SLOT)
    return success_response(data.model_dump(), request)
