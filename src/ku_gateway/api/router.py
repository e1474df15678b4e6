"""Auth API router: register, login (username or email), refresh, me."""

from fastapi import APIRouter, Request, status

from config.settings import settings
from src.ku_common.database import DbSession
from src.ku_common.response import ApiResponse, success_response
from src.ku_gateway.auth.dependencies import CurrentUser, is_admin
from src.ku_gateway.user.db_models import UserModel
from src.ku_gateway.user.schemas import (
    AccessToken,
    LoginRequest,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenPair,
    UserInfo,
)
from src.ku_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()

_ACCESS_TTL_SECONDS = settings.JWT_EXPIRE_MINUTES * 60


def _user_info(user: UserModel) -> UserInfo:
    return UserInfo(user_id=str(user.id), username=user.username, email=user.email)


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Create an account")
async def register(request: Request, body: RegisterRequest, db: DbSession) -> ApiResponse:
    async with db.begin():
        user = await _service.register(body.username, body.email, body.password, db)

    data = RegisterResponse(
        **_user_info(user).model_dump(), created_at=user.created_at.isoformat()
    )
    return success_response(data.model_dump(), request, "User registered successfully")


@router.post("/login", summary="Exchange credentials for a token pair")
async def login(request: Request, body: LoginRequest, db: DbSession) -> ApiResponse:
    user, access, refresh = await _service.login(body.username, body.password, db)
    data = TokenPair(
        access_token=access,
        refresh_token=refresh,
        expires_in=_ACCESS_TTL_SECONDS,
        user=_user_info(user),
    )
    return success_response(data.model_dump(), request, "Login successful")


@router.post("/refresh", summary="Exchange a refresh token for an access token")
async def refresh_token(request: Request, body: RefreshRequest) -> ApiResponse:
    access = await _service.refresh(body.refresh_token)
    data = AccessToken(access_token=access, expires_in=_ACCESS_TTL_SECONDS)
    return success_response(data.model_dump(), request, "Token refreshed")


@router.get("/me", summary="The authenticated user")
async def me(request: Request, current_user: CurrentUser) -> ApiResponse:
    data = MeResponse(**_user_info(current_user).model_dump(), is_admin=is_admin(current_user))
    return success_response(data.model_dump(), request)
