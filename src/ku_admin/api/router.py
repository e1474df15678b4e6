"""Admin REST API: every endpoint requires an ADMIN_USER_IDS caller."""

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.ku_admin.application.service import AdminService
from src.ku_common.database import DbSession
from src.ku_common.enums import PrincipalKind, TransactionKind
from src.ku_common.response import ApiResponse, success_response
from src.ku_gateway.auth.dependencies import AdminUser
from src.ku_wallet.domain.models import Principal

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()

_GRANTABLE_KINDS = (TransactionKind.REFERRAL_BONUS, TransactionKind.REFUND)


class GrantRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    principal_kind: PrincipalKind = Field(..., alias="principalKind")
    principal_id: str = Field(..., alias="principalId", min_length=1, max_length=64)
    units: int = Field(..., ge=1, le=100_000)
    kind: TransactionKind
    description: str | None = Field(None, max_length=255)

    @field_validator("kind")
    @classmethod
    def _grantable(cls, v: TransactionKind) -> TransactionKind:
        if v not in _GRANTABLE_KINDS:
            raise ValueError("kind must be referral_bonus or refund")
        return v


class SweepRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    max_age_hours: int | None = Field(None, alias="maxAgeHours", ge=1, le=24 * 30)


@router.post("/wallets/grant")
async def grant_units(
    body: GrantRequest,
    admin: AdminUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    result = await _service.grant(
        db,
        Principal(body.principal_kind, body.principal_id),
        body.units,
        body.kind,
        body.description,
        str(admin.id),
    )
    return success_response(result, request, "Units granted")


@router.post("/checkouts/sweep")
async def sweep_checkouts(
    body: SweepRequest,
    admin: AdminUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    result = await _service.sweep_checkouts(db, body.max_age_hours)
    return success_response(result, request)


@router.get("/reconcile/{principal_kind}/{principal_id}")
async def reconcile(
    principal_kind: PrincipalKind,
    principal_id: str,
    admin: AdminUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    result = await _service.reconcile(db, Principal(principal_kind, principal_id))
    return success_response(result, request)
