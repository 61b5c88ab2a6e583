"""
Account Pydantic Schemas

Request/response schemas for registration, login, email verification and
profiles.

Schemas:
- AccountCreate: Register with a verified email and a password
- AccountUpdate: Change nickname / profile image
- AccountResponse: Own profile
- AccountPublic: Minimal profile embedded in reviews, comments, notifications
- AccountPage: Paginated list of accounts (followers/followings)
- TokenResponse / RefreshTokenRequest: JWT auth
- EmailSendRequest / EmailVerifyRequest: Email verification flow
"""

import re
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _check_nickname(v: str) -> str:
    v = v.strip()
    if not re.match(r"^[\w.-]+$", v):
        raise ValueError(
            "Nickname may only contain letters, numbers, underscores, dots and hyphens"
        )
    return v


class AccountCreate(BaseModel):
    """
    Schema for password registration.

    The email must have been verified through /auth/email/verify first.
    """

    email: EmailStr = Field(..., examples=["jane@example.com"])
    nickname: str = Field(..., min_length=2, max_length=50, examples=["jane"])
    password: str = Field(
        ...,
        min_length=8,
        max_length=72,
        description="Password (min 8 chars, must include a letter and a number)",
        examples=["SecurePass123"],
    )
    profile_img: str | None = Field(default=None)

    @field_validator("nickname")
    @classmethod
    def nickname_must_be_valid(cls, v: str) -> str:
        return _check_nickname(v)

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str) -> str:
        """
        Validate password strength.

        Requirements:
        - At least 8 characters (enforced by min_length)
        - At least 1 letter
        - At least 1 number
        """
        if not re.search(r"[A-Za-z]", v):
            raise ValueError("Password must contain at least one letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one number")
        return v


class AccountUpdate(BaseModel):
    """Schema for updating the own profile. Omitted fields are left unchanged."""

    nickname: str | None = Field(default=None, min_length=2, max_length=50)
    profile_img: str | None = Field(default=None)

    @field_validator("nickname")
    @classmethod
    def nickname_must_be_valid(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _check_nickname(v)


class AccountPublic(BaseModel):
    """Public profile data, safe to embed anywhere."""

    id: uuid.UUID
    nickname: str
    profile_img: str | None = None

    model_config = ConfigDict(from_attributes=True)


class AccountResponse(AccountPublic):
    email: EmailStr
    auth_provider: str
    created_at: datetime


class AccountPage(BaseModel):
    total_page: int
    accounts: list[AccountPublic]


# =============================================================================
# Auth
# =============================================================================


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class RefreshTokenRequest(BaseModel):
    refresh_token: str | None = None


class EmailSendRequest(BaseModel):
    email: EmailStr


class EmailVerifyRequest(BaseModel):
    email: EmailStr
    code: str = Field(..., pattern=r"^\d{6}$", examples=["482913"])
