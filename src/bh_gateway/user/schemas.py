"""Pydantic request/response schemas for bh_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"
# username (max 50) + 6-character suffix
REFERRAL_CODE_MAX_LENGTH = 56


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    referral_code: str | None = None

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        """Enforce: at least one uppercase, one lowercase, one digit."""
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one digit")
        return v

    @field_validator("referral_code")
    @classmethod
    def blank_code_is_none(cls, v: str | None) -> str | None:
        # A code no account can own is ignored like any unknown code
        if v is None or not v.strip() or len(v.strip()) > REFERRAL_CODE_MAX_LENGTH:
            return None
        return v.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    """Minimal user info embedded in responses."""

    user_id: str
    username: str
    email: str
    coins: int
    is_admin: bool


class RegisterResponse(BaseModel):
    user_id: str
    username: str
    email: str
    coins: int
    referral_code: str
    referred: bool
    created_at: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800  # 30 minutes in seconds
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int = 1800


class AvailabilityResponse(BaseModel):
    available: bool
