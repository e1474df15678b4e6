"""Pydantic request/response schemas for ku_gateway.

Emails are lower-cased on the way in: the stored address is what settlement
compares with the payer email Paystack reports.
"""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

_USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64, pattern=_USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        """At least one uppercase letter, one lowercase letter and one digit."""
        for pattern, what in (
            (r"[A-Z]", "uppercase letter"),
            (r"[a-z]", "lowercase letter"),
            (r"\d", "digit"),
        ):
            if not re.search(pattern, v):
                raise ValueError(f"Password must contain at least one {what}")
        return v


class LoginRequest(BaseModel):
    # Either the username or the registered email
    username: str = Field(..., min_length=1, max_length=255)
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    user_id: str
    username: str
    email: str


class RegisterResponse(UserInfo):
    created_at: str


class MeResponse(UserInfo):
    is_admin: bool


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserInfo


class AccessToken(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
