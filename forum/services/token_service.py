"""Stateless bearer tokens (HS256 JWT)."""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable

import jwt
import structlog

from forum.config import get_settings
from forum.models.user import User

logger = structlog.get_logger(__name__)

# Constants
JWT_ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["sub", "iat", "exp"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and validates signed, time-bound tokens carrying a user id.

    Tokens are never stored: the signature and the embedded ``exp`` are the
    only source of truth for a token's validity window.
    """

    def __init__(
        self,
        secret: str,
        ttl: timedelta,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.ttl = ttl
        self._clock = clock

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return int(self.ttl.total_seconds())

    def issue(self, user: User) -> str:
        """Create a signed token for a user.

        Args:
            user: Identity the token is issued for

        Returns:
            Encoded JWT string
        """
        now = self._clock()
        payload = {
            "sub": user.id,
            "iat": now,
            "exp": now + self.ttl,
        }
        token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)
        logger.debug("token_issued", user_id=user.id, expires_in=self.expires_in)
        return token

    def decode(self, token: str) -> str:
        """Verify a token and return the user id it carries.

        Args:
            token: Encoded JWT string

        Returns:
            The ``sub`` claim

        Raises:
            jwt.InvalidTokenError: If the signature, expiry or claims are invalid
        """
        payload = jwt.decode(
            token,
            self._secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": REQUIRED_CLAIMS},
        )
        subject = payload["sub"]
        if not isinstance(subject, str) or not subject:
            raise jwt.InvalidTokenError("Token subject must be a non-empty string")
        return subject


@lru_cache
def get_token_service() -> TokenService:
    """Get the process-wide token service built from settings."""
    settings = get_settings()
    return TokenService(
        secret=settings.jwt_secret,
        ttl=timedelta(hours=settings.token_ttl_hours),
    )
