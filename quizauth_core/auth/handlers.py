"""Authentication request handlers.

Each handler is a plain function of its validated input, the user store and
the token codec. On success it returns a HandlerResult describing the JSON
body, status code and headers; on failure it raises a QuizAuthError subclass
which the application error handlers render as the error envelope.

Handlers never commit. The caller owns the transaction (see auth/api.py).
"""

import logging
import sqlite3
from dataclasses import dataclass, field

import jwt

from ..db.user import UserOperations
from ..exceptions import (
    AuthenticationError,
    ConflictError,
    ResourceNotFound,
    ValidationError,
)
from ..utils import isodatetime
from .schemas import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordBody,
    ResetPasswordRequestBody,
)
from .service import format_user_response
from .token import TokenCodec

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@dataclass
class HandlerResult:
    """Successful handler outcome, turned into a JSON response by the API layer."""

    body: dict
    status_code: int = 200
    headers: dict = field(default_factory=dict)


def _user_payload(user) -> dict:
    return format_user_response(user).model_dump(by_alias=True)


def _decode_subject(codec: TokenCodec, token: str) -> str:
    """Verify a token and return its subject, mapping codec errors to 401."""
    try:
        return codec.verify(token).sub
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token presented")
        raise AuthenticationError("Token has expired", {"code": "token_expired"})
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token presented: {e}")
        raise AuthenticationError("Invalid token", {"code": "invalid_token"})


# ============================================================================
# Registration and Login
# ============================================================================


def register(
    data: RegisterRequest,
    users: UserOperations,
    codec: TokenCodec,
    role: str = "user"
) -> HandlerResult:
    """
    Create a user and issue a token.

    The display name defaults to the username.

    Returns:
        201 with {token, user}

    Raises:
        ConflictError: If the username or email is already taken
    """
    if users.find_by_username_or_email(data.username, data.email) is not None:
        logger.warning(f"Registration rejected, username or email taken: {data.username}")
        raise ConflictError("Username or email already exists")

    try:
        user = users.create(
            username=data.username,
            email=data.email,
            password=data.password,
            name=data.username,
            role=role
        )
    except sqlite3.IntegrityError:
        # Lost a race with a concurrent registration
        logger.warning(f"Registration conflict on insert: {data.username}")
        raise ConflictError("Username or email already exists")

    logger.info(f"User registered: {user.username}")

    return HandlerResult(
        body={
            "success": True,
            "data": {
                "token": codec.sign(user.id),
                "user": _user_payload(user),
            },
        },
        status_code=201,
    )


def login(data: LoginRequest, users: UserOperations, codec: TokenCodec) -> HandlerResult:
    """
    Authenticate by username or email and issue a token.

    Backfills the display name from the username when unset and records the
    login time.

    Raises:
        AuthenticationError: If the user does not exist or the password is wrong
    """
    user = users.find_by_username_or_email(data.username, with_password=True)
    if user is None:
        logger.warning(f"Failed login attempt, unknown user: {data.username}")
        raise AuthenticationError("User not found", {"username": data.username})

    if not users.password_matches(user, data.password):
        logger.warning(f"Failed login attempt, wrong password: {data.username}")
        raise AuthenticationError("Incorrect password", {"username": data.username})

    fields = {"last_login_at": isodatetime.now()}
    if not user.name:
        fields["name"] = user.username
    users.update(user.id, fields)

    user = users.get_by_id(user.id)
    logger.info(f"Successful login: {user.username}")

    return HandlerResult(
        body={
            "success": True,
            "data": {
                "token": codec.sign(user.id),
                "user": _user_payload(user),
            },
        },
    )


def refresh_token(
    data: RefreshTokenRequest,
    users: UserOperations,
    codec: TokenCodec
) -> HandlerResult:
    """
    Exchange a valid token for a fresh one.

    Raises:
        ValidationError: If no refresh token was sent
        AuthenticationError: If the token is invalid or expired, or its user
            no longer exists
    """
    if not data.refresh_token:
        raise ValidationError("Refresh token not provided", {"field": "refreshToken"})

    user_id = _decode_subject(codec, data.refresh_token)
    user = users.get_by_id(user_id)
    if user is None:
        raise AuthenticationError("User not found", {"user_id": user_id})

    return HandlerResult(body={"success": True, "data": {"token": codec.sign(user.id)}})


# ============================================================================
# Passwords
# ============================================================================


def change_password(
    data: ChangePasswordRequest,
    user_id: str,
    users: UserOperations
) -> HandlerResult:
    """
    Change the authenticated user's password after checking the current one.

    Raises:
        AuthenticationError: If the user is gone or the current password is wrong
    """
    user = users.get_by_id(user_id, with_password=True)
    if user is None:
        raise AuthenticationError("User not found", {"user_id": user_id})

    if not users.password_matches(user, data.current_password):
        logger.warning(f"Password change rejected, wrong current password: {user.username}")
        raise AuthenticationError("Current password is incorrect")

    users.set_password(user.id, data.new_password)
    logger.info(f"Password changed: {user.username}")

    return HandlerResult(body={"success": True, "message": "Password changed successfully"})


def reset_password_request(
    data: ResetPasswordRequestBody,
    users: UserOperations
) -> HandlerResult:
    """
    Acknowledge a password reset request for a known email.

    No email is sent; the request is only logged.

    Raises:
        ResourceNotFound: If no user has this email
    """
    user = users.find_by_email(data.email)
    if user is None:
        raise ResourceNotFound("User not found", {"email": data.email})

    logger.info(f"Password reset requested for user {user.id}")

    return HandlerResult(
        body={"success": True, "message": "Password reset link has been sent to your email"}
    )


def reset_password(
    data: ResetPasswordBody,
    users: UserOperations,
    codec: TokenCodec
) -> HandlerResult:
    """
    Set a new password for the user named by a reset token.

    Raises:
        AuthenticationError: If the token is invalid or expired
        ValidationError: If the token's user no longer exists
    """
    user_id = _decode_subject(codec, data.token)
    user = users.get_by_id(user_id)
    if user is None:
        raise ValidationError("Invalid reset token", {"user_id": user_id})

    users.set_password(user.id, data.new_password)
    logger.info(f"Password reset: {user.username}")

    return HandlerResult(body={"success": True, "message": "Password reset successfully"})


# ============================================================================
# Profile
# ============================================================================


def get_current_user(user_id: str, users: UserOperations) -> HandlerResult:
    """
    Return the authenticated user.

    Raises:
        ResourceNotFound: If the user no longer exists
    """
    user = users.get_by_id(user_id)
    if user is None:
        raise ResourceNotFound("User not found", {"user_id": user_id})

    return HandlerResult(body={"success": True, "data": {"user": _user_payload(user)}})


def update_profile(data: ProfileUpdate, user_id: str, users: UserOperations) -> HandlerResult:
    """
    Update nickname and/or avatar; fields not sent are left unchanged.

    Raises:
        ResourceNotFound: If the user no longer exists
    """
    user = users.update_profile(user_id, data.model_dump(exclude_unset=True))
    if user is None:
        raise ResourceNotFound("User not found", {"user_id": user_id})

    return HandlerResult(body={"success": True, "data": {"user": _user_payload(user)}})


# ============================================================================
# Availability Checks
# ============================================================================


def check_username(username, users: UserOperations) -> HandlerResult:
    """
    Report whether a username is free. The response must not be cached.

    Raises:
        ValidationError: If username is missing or not a string
    """
    if not username or not isinstance(username, str):
        raise ValidationError("Invalid username parameter", {"field": "username"})

    taken = users.find_by_username(username) is not None
    logger.debug(f"Username check: {username} taken={taken}")

    return HandlerResult(
        body={"success": True, "available": not taken},
        headers=dict(NO_CACHE_HEADERS),
    )


def check_email(email, users: UserOperations) -> HandlerResult:
    """
    Report whether an email is free. The response must not be cached.

    Raises:
        ValidationError: If email is missing or not a string
    """
    if not email or not isinstance(email, str):
        raise ValidationError("Invalid email parameter", {"field": "email"})

    taken = users.find_by_email(email) is not None
    logger.debug(f"Email check: {email} taken={taken}")

    return HandlerResult(
        body={"success": True, "available": not taken},
        headers=dict(NO_CACHE_HEADERS),
    )
