"""HS256 access and refresh tokens signed with JWT_SECRET (python-jose).

Access tokens authenticate wallet, checkout and client-side settlement
calls. The Paystack webhook carries no token; its HMAC signature is checked
instead. Tokens cannot be revoked before they expire.
"""

from datetime import UTC, datetime, timedelta
from typing import Literal

from jose import JWTError, jwt

from config.settings import settings
from src.ku_common.errors import AppError, InvalidCredentialsError, InvalidRefreshTokenError

TokenType = Literal["access", "refresh"]

_LIFETIMES: dict[str, timedelta] = {
    "access": timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    "refresh": timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
}

# A bad access token is a failed login; a bad refresh token asks for a new login
_REJECTIONS: dict[str, type[AppError]] = {
    "access": InvalidCredentialsError,
    "refresh": InvalidRefreshTokenError,
}


def _issue(user_id: str, token_type: TokenType) -> str:
    issued_at = datetime.now(UTC)
    claims = {
        "sub": user_id,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + _LIFETIMES[token_type],
    }
    return str(jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM))


def create_access_token(user_id: str) -> str:
    return _issue(user_id, "access")


def create_refresh_token(user_id: str) -> str:
    """Long-lived; reused until expiry rather than rotated."""
    return _issue(user_id, "refresh")


def decode_token(token: str, expected_type: TokenType) -> dict[str, str]:
    """Verify signature, expiry and the `type` claim.

    Only the configured algorithm is accepted, and an access token is never
    valid where a refresh token is expected (or the reverse).
    """
    rejection = _REJECTIONS[expected_type]
    try:
        claims: dict[str, str] = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise rejection() from None
    if claims.get("type") != expected_type:
        raise rejection()
    return claims
