"""Authentication Pydantic schemas for API validation."""

from .user import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordBody,
    ResetPasswordRequestBody,
    TokenPayload,
    User,
    UserProfile,
    UserResponse,
    UserStats,
)

__all__ = [
    "User",
    "UserProfile",
    "UserStats",
    "UserResponse",
    "RegisterRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "ChangePasswordRequest",
    "ResetPasswordRequestBody",
    "ResetPasswordBody",
    "ProfileUpdate",
    "TokenPayload",
]
