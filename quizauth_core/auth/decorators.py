"""Authentication decorator for protected endpoints.

@auth_required accepts a JWT via "Authorization: Bearer <token>" and stores
the token subject in flask.g.user_id. The user itself is loaded by the
handler, so a token for a deleted user still passes this check.
"""

import logging
from functools import wraps

import jwt
from flask import g, request

from ..exceptions import AuthenticationError
from . import token

logger = logging.getLogger(__name__)


def _authenticate_request():
    """
    Validate the bearer token of the current request.

    Raises:
        AuthenticationError: If the header is missing or malformed, or the
            token is invalid or expired
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        logger.warning("Unauthenticated request to protected endpoint")
        raise AuthenticationError("Authentication required", {"code": "missing_auth"})

    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError(
            "Invalid authorization header format",
            {"expected": "Authorization: Bearer <token>"}
        )

    try:
        payload = token.get_codec().verify(parts[1])
    except jwt.ExpiredSignatureError:
        logger.warning("JWT token expired")
        raise AuthenticationError("Token has expired", {"code": "token_expired"})
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid JWT token: {e}")
        raise AuthenticationError("Invalid token", {"code": "invalid_token"})

    g.user_id = payload.sub
    logger.debug(f"JWT authentication successful for user {g.user_id}")


def auth_required(f):
    """
    Decorator to require a valid bearer token for endpoint access.

    Example:
    ```python
    @auth_bp.get("/me")
    @auth_required
    def me():
        user_id = g.user_id
        ...
    ```
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return wrapper
