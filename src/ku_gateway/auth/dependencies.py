"""Authentication dependencies for protected routes.

    @router.get("/wallet/balance")
    async def get_balance(current_user: CurrentUser, db: DbSession): ...

The access token's `sub` is the user id. The loaded user row also carries
the email that settlement compares with the payer Paystack reports.
"""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from config.settings import settings
from src.ku_common.database import DbSession
from src.ku_common.errors import AccountDisabledError, AdminRequiredError, InvalidCredentialsError
from src.ku_gateway.auth.jwt_handler import decode_token
from src.ku_gateway.user.db_models import UserModel

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    db: DbSession,
    token: str = Depends(oauth2_scheme),
) -> UserModel:
    """Resolve the bearer token to an active user (401 / 403 otherwise)."""
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _unauthorized() from None

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthorized() from None

    user = await db.get(UserModel, user_id)
    if user is None:
        raise _unauthorized()
    if not user.is_active:
        raise AccountDisabledError()
    return user


CurrentUser = Annotated[UserModel, Depends(get_current_user)]


def is_admin(user: UserModel) -> bool:
    return str(user.id) in settings.ADMIN_USER_IDS


async def require_admin(current_user: CurrentUser) -> UserModel:
    """Operator endpoints: the caller must be listed in ADMIN_USER_IDS."""
    if not is_admin(current_user):
        raise AdminRequiredError()
    return current_user


AdminUser = Annotated[UserModel, Depends(require_admin)]
