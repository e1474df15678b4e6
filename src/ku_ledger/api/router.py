"""ku_ledger REST API: read-only transaction history.

Group membership is not checked here: the groups service in front of this API
decides who may read a group's history.
"""

from datetime import datetime

from fastapi import APIRouter, Query, Request

from src.ku_common.database import DbSession
from src.ku_common.response import ApiResponse, success_response
from src.ku_gateway.auth.dependencies import CurrentUser
from src.ku_ledger.application.service import LedgerApplicationService
from src.ku_wallet.domain.models import Principal

router = APIRouter(prefix="/ledger", tags=["ledger"])

_service = LedgerApplicationService()


@router.get("/transactions")
async def list_transactions(
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
    since: datetime | None = Query(None, description="Only records at or after this time"),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(50, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_transactions(
        db, Principal.user(str(current_user.id)), since, cursor, limit
    )
    return success_response(data.model_dump(), request)


@router.get("/groups/{group_id}/transactions")
async def list_group_transactions(
    group_id: str,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
    since: datetime | None = Query(None),
    cursor: str | None = Query(None),
    limit: int = Query(50, ge=1, le=100),
) -> ApiResponse:
    """Group transaction history. Caller membership is authorized upstream."""
    data = await _service.list_transactions(db, Principal.group(group_id), since, cursor, limit)
    return success_response(data.model_dump(), request)
