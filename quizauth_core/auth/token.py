"""JWT token service.

Tokens carry the user id as the "sub" claim plus "iat" and "exp", and are
signed with HS256. The signing secret and lifetime come from a TokenCodec
instance, normally built from settings with TokenCodec.from_settings().
"""

import logging
import re

import jwt

from ..config import Settings, settings
from ..utils import isodatetime
from .schemas import TokenPayload

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

DEFAULT_EXPIRES_IN = 7 * 24 * 60 * 60

_EXPIRES_IN_PATTERN = re.compile(r"(\d+)(d|h|m|s)", re.ASCII)

_UNIT_SECONDS = {
    "d": 24 * 60 * 60,
    "h": 60 * 60,
    "m": 60,
    "s": 1,
}


def parse_expires_in(value: int | float | str | None) -> int:
    """
    Convert a configured token lifetime to seconds.

    Accepts a number of seconds or a string such as "7d", "24h", "60m" or
    "30s". Malformed strings and missing values fall back to 7 days without
    raising.

    Examples:
        >>> parse_expires_in("24h")
        86400
        >>> parse_expires_in(120)
        120
        >>> parse_expires_in("garbage")
        604800
    """
    if isinstance(value, bool):
        return DEFAULT_EXPIRES_IN
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        match = _EXPIRES_IN_PATTERN.fullmatch(value)
        if match:
            return int(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        logger.debug(f"Unrecognised token lifetime {value!r}, using default")
    return DEFAULT_EXPIRES_IN


class TokenCodec:
    """Signs and verifies access tokens.

    Holds the signing configuration so handlers receive it explicitly
    instead of reading process-wide settings.
    """

    def __init__(self, secret_key: str, expires_in: int = DEFAULT_EXPIRES_IN):
        """Initialize the codec.

        Args:
            secret_key: HMAC secret used to sign and verify tokens
            expires_in: Token lifetime in seconds
        """
        self._secret_key = secret_key
        self.expires_in = expires_in

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "TokenCodec":
        """Build a codec from application settings."""
        config = config or settings
        return cls(config.jwt_secret_key, parse_expires_in(config.jwt_expires_in))

    def sign(self, user_id: str) -> str:
        """
        Generate a signed token for a user.

        Args:
            user_id: User UUID placed in the "sub" claim

        Returns:
            Encoded JWT string
        """
        issued_at = isodatetime.now_unix()
        payload = {
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
        }
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    def verify(self, token: str) -> TokenPayload:
        """
        Validate a token and return its claims.

        Raises:
            jwt.ExpiredSignatureError: If the token has expired
            jwt.InvalidTokenError: If the token is malformed or the signature
                does not match
        """
        payload = jwt.decode(
            token,
            self._secret_key,
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
        return TokenPayload(
            sub=payload["sub"],
            iat=payload.get("iat", 0),
            exp=payload["exp"],
        )


def get_codec() -> TokenCodec:
    """Token codec configured from the current settings."""
    return TokenCodec.from_settings(settings)
