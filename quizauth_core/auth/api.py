"""Authentication API endpoints for QuizAuth Core.

Routes (mounted under settings.api_prefix, "/api/auth" by default):
- POST  /register                - Create account, returns token and user
- POST  /login                   - Authenticate by username or email
- POST  /refresh-token           - Exchange a valid token for a new one
- POST  /change-password         - Change password (auth required)
- POST  /reset-password-request  - Request a password reset
- POST  /reset-password          - Set a new password with a reset token
- GET   /me                      - Current user (auth required)
- PATCH /profile                 - Update nickname/avatar (auth required)
- GET   /check-username          - Username availability
- GET   /check-email             - Email availability

Every view opens an atomic Core, calls the matching handler and renders its
HandlerResult. Errors raised by handlers roll the transaction back and are
rendered by the error handlers in main.py.
"""

from flask import Blueprint, g, jsonify, request

from ..api.validation import validate_request
from ..config import settings
from ..db import get_core
from . import handlers, token
from .decorators import auth_required
from .schemas import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordBody,
    ResetPasswordRequestBody,
)

# Create blueprint
auth_bp = Blueprint("auth", __name__)


def _respond(result: handlers.HandlerResult):
    """Render a HandlerResult as a Flask response."""
    response = jsonify(result.body)
    response.status_code = result.status_code
    response.headers.update(result.headers)
    return response


# ============================================================================
# Registration and Tokens
# ============================================================================


@auth_bp.post("/register")
@validate_request
def register(data: RegisterRequest):
    """
    Create an account.

    Example request:
    ```json
    {"username": "alice", "email": "alice@example.com", "password": "secret123"}
    ```

    Example response (201):
    ```json
    {
        "success": true,
        "data": {
            "token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
            "user": {"id": "...", "username": "alice", "email": "alice@example.com",
                     "role": "user", "profile": null, "stats": {...}}
        }
    }
    ```
    """
    with get_core(atomic=True) as core:
        result = handlers.register(data, core.user, token.get_codec(), role=settings.default_role)
    return _respond(result)


@auth_bp.post("/login")
@validate_request
def login(data: LoginRequest):
    """Authenticate with a username or email and a password."""
    with get_core(atomic=True) as core:
        result = handlers.login(data, core.user, token.get_codec())
    return _respond(result)


@auth_bp.post("/refresh-token")
@validate_request
def refresh_token(data: RefreshTokenRequest):
    """Exchange {"refreshToken": ...} for a new token."""
    with get_core(atomic=True) as core:
        result = handlers.refresh_token(data, core.user, token.get_codec())
    return _respond(result)


# ============================================================================
# Passwords
# ============================================================================


@auth_bp.post("/change-password")
@auth_required
@validate_request
def change_password(data: ChangePasswordRequest):
    """Change password given {"currentPassword", "newPassword"}."""
    with get_core(atomic=True) as core:
        result = handlers.change_password(data, g.user_id, core.user)
    return _respond(result)


@auth_bp.post("/reset-password-request")
@validate_request
def reset_password_request(data: ResetPasswordRequestBody):
    with get_core(atomic=True) as core:
        result = handlers.reset_password_request(data, core.user)
    return _respond(result)


@auth_bp.post("/reset-password")
@validate_request
def reset_password(data: ResetPasswordBody):
    """Set a new password given {"token", "newPassword"}."""
    with get_core(atomic=True) as core:
        result = handlers.reset_password(data, core.user, token.get_codec())
    return _respond(result)


# ============================================================================
# Profile
# ============================================================================


@auth_bp.get("/me")
@auth_required
def me():
    with get_core(atomic=True) as core:
        result = handlers.get_current_user(g.user_id, core.user)
    return _respond(result)


@auth_bp.patch("/profile")
@auth_required
@validate_request
def update_profile(data: ProfileUpdate):
    """Update {"nickname", "avatar"}; omitted fields keep their value."""
    with get_core(atomic=True) as core:
        result = handlers.update_profile(data, g.user_id, core.user)
    return _respond(result)


# ============================================================================
# Availability Checks
# ============================================================================


@auth_bp.get("/check-username")
def check_username():
    with get_core(atomic=True) as core:
        result = handlers.check_username(request.args.get("username"), core.user)
    return _respond(result)


@auth_bp.get("/check-email")
def check_email():
    with get_core(atomic=True) as core:
        result = handlers.check_email(request.args.get("email"), core.user)
    return _respond(result)
