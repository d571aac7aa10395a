"""User, request and token schemas.

Request bodies arrive with camelCase keys ("refreshToken", "newPassword"),
so every model here uses a camelCase alias generator and also accepts the
snake_case field names.
"""

import re
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# bcrypt only hashes the first 72 bytes and rejects longer input
PASSWORD_MAX_BYTES = 72


def check_password_bytes(v: str) -> str:
    """Reject passwords whose UTF-8 encoding is longer than bcrypt accepts."""
    if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return v


NewPassword = Annotated[
    str,
    Field(min_length=6, max_length=128),
    AfterValidator(check_password_bytes),
]


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# User Records
# ============================================================================


class UserProfile(CamelModel):
    """Optional public profile of a user."""

    nickname: str | None = None
    avatar: str | None = None


class UserStats(CamelModel):
    """Quiz statistics; only last_login_at is written by the auth handlers."""

    total_questions: int = 0
    correct_count: int = 0
    wrong_count: int = 0
    streak: int = 0
    last_login_at: str | None = None
    last_answer_at: str | None = None


class User(CamelModel):
    """A user record as loaded from the store.

    password_hash is only populated when the store is asked for it and is
    excluded from every dump.
    """

    id: str
    username: str
    email: str
    name: str | None = None
    role: str = "user"
    profile: UserProfile | None = None
    stats: UserStats | None = None
    last_login_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    password_hash: str | None = Field(default=None, exclude=True, repr=False)


class UserResponse(CamelModel):
    """Projection of a user that is safe to send to clients."""

    id: str
    username: str
    email: str
    role: str
    profile: UserProfile | None = None
    stats: UserStats | None = None


# ============================================================================
# Request Bodies
# ============================================================================


class RegisterRequest(CamelModel):
    """Body of POST /register."""

    username: str = Field(..., min_length=2, max_length=64)
    email: str = Field(..., max_length=255)
    password: NewPassword

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username may only contain letters, digits, hyphens and underscores")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email address")
        return v


class LoginRequest(CamelModel):
    """Body of POST /login. username may hold either a username or an email."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("username")
    @classmethod
    def strip_identifier(cls, v: str) -> str:
        return v.strip()


class RefreshTokenRequest(CamelModel):
    """Body of POST /refresh-token.

    The token is optional at the schema level so the handler can answer a
    missing token with its own 400 message.
    """

    refresh_token: str | None = None


class ChangePasswordRequest(CamelModel):
    """Body of POST /change-password."""

    current_password: str = Field(..., min_length=1)
    new_password: NewPassword


class ResetPasswordRequestBody(CamelModel):
    """Body of POST /reset-password-request."""

    email: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ResetPasswordBody(CamelModel):
    """Body of POST /reset-password."""

    token: str = Field(..., min_length=1)
    new_password: NewPassword


class ProfileUpdate(CamelModel):
    """Body of PATCH /profile. Only the fields sent are updated."""

    nickname: str | None = Field(default=None, max_length=64)
    avatar: str | None = Field(default=None, max_length=2048)


# ============================================================================
# Tokens
# ============================================================================


class TokenPayload(BaseModel):
    """Decoded JWT claims."""

    sub: str
    iat: int
    exp: int
