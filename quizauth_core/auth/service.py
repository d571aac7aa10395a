"""Password hashing and user response formatting.

Passwords are hashed with bcrypt using the configured work factor.
format_user_response() is the only way user data leaves the service, and it
never copies the password hash.
"""

import bcrypt

from ..config import settings
from .schemas import User, UserResponse, UserStats


# ============================================================================
# Password Hashing
# ============================================================================


def hash_password(password: str) -> str:
    """Hash a password with bcrypt (auto-salted)."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_work_factor)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison of a password against a bcrypt hash.

    Malformed hashes count as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# ============================================================================
# Response Formatting
# ============================================================================


def format_user_response(user: User) -> UserResponse:
    """Project a user record onto the fields clients may see.

    profile is passed through as-is and may be None. stats is copied field
    by field; a user without stats yields stats=None.
    """
    stats = None
    if user.stats is not None:
        stats = UserStats(
            total_questions=user.stats.total_questions,
            correct_count=user.stats.correct_count,
            wrong_count=user.stats.wrong_count,
            streak=user.stats.streak,
            last_login_at=user.stats.last_login_at,
            last_answer_at=user.stats.last_answer_at,
        )

    return UserResponse(
        id=str(user.id),
        username=user.username,
        email=user.email,
        role=user.role,
        profile=user.profile,
        stats=stats,
    )
