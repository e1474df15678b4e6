"""User service: register, login, refresh.

Registration creates no wallet. A wallet row appears with the first credit,
which is also when the welcome bonus is added.
"""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.ku_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    UsernameExistsError,
)
from src.ku_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.ku_gateway.auth.password import hash_password, verify_password
from src.ku_gateway.user.db_models import UserModel


class UserService:
    async def register(
        self,
        username: str,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> UserModel:
        """Insert a user row. The router owns the transaction (`db.begin()`)."""
        email = email.lower()

        # The UNIQUE constraints still guard a race between these reads and the insert
        taken = await db.execute(select(UserModel).where(UserModel.username == username))
        if taken.scalar_one_or_none() is not None:
            raise UsernameExistsError()
        taken = await db.execute(select(UserModel).where(UserModel.email == email))
        if taken.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            username=username,
            email=email,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user

    async def login(
        self,
        identifier: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Return (user, access_token, refresh_token) for a username or email login.

        An unknown account and a wrong password fail identically.
        """
        result = await db.execute(
            select(UserModel).where(
                or_(UserModel.username == identifier, UserModel.email == identifier.lower())
            )
        )
        user = result.scalar_one_or_none()
        password_ok = verify_password(password, user.password_hash if user else None)
        if user is None or not password_ok:
            raise InvalidCredentialsError()
        if not user.is_active:
            raise AccountDisabledError()

        subject = str(user.id)
        return user, create_access_token(subject), create_refresh_token(subject)

    async def refresh(self, refresh_token: str) -> str:
        """Exchange a valid refresh token for a new access token."""
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(str(payload["sub"]))
