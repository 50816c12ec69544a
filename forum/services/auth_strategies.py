"""Authentication strategies resolving credential material to an AuthResult.

Two strategies exist: email + password (login) and bearer token (every other
authenticated route). Neither raises for an authentication failure; both
return ``Rejected`` with a reason the authorization gate maps to a response.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

import jwt
import structlog

from forum.exceptions import CorruptPasswordHashError, CorruptRecordError, StoreUnavailable
from forum.models.user import User
from forum.services.token_service import TokenService
from forum.services.user_service import UserService

logger = structlog.get_logger(__name__)


class RejectionReason(str, Enum):
    """Why authentication failed."""

    MISSING_TOKEN = "missing_token"
    NOT_FOUND = "not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"
    UNKNOWN_IDENTITY = "unknown_identity"
    INTERNAL_ERROR = "internal_error"


REJECTION_MESSAGES = {
    RejectionReason.MISSING_TOKEN: "authentication required",
    # Distinct from INVALID_CREDENTIALS, which reveals whether an email is
    # registered. Kept as-is until product decides otherwise.
    RejectionReason.NOT_FOUND: "User not found",
    RejectionReason.INVALID_CREDENTIALS: "Invalid credentials",
    RejectionReason.INVALID_TOKEN: "invalid token",
    RejectionReason.UNKNOWN_IDENTITY: "unknown identity",
    RejectionReason.INTERNAL_ERROR: "Server error",
}


@dataclass(frozen=True)
class Authenticated:
    user: User


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason

    @property
    def message(self) -> str:
        return REJECTION_MESSAGES[self.reason]


AuthResult = Union[Authenticated, Rejected]


@dataclass(frozen=True)
class PasswordCredentials:
    email: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class BearerCredentials:
    token: str = field(repr=False)


Credentials = Union[PasswordCredentials, BearerCredentials]


class AuthStrategy(ABC):
    """Resolves one kind of credential material to an AuthResult."""

    @abstractmethod
    async def authenticate(self, credentials: Credentials) -> AuthResult:
        """Verify the credentials. Must not raise for authentication failures."""


class CredentialsStrategy(AuthStrategy):
    """Email + password verification against the user store."""

    def __init__(self, users: UserService):
        self.users = users

    async def authenticate(self, credentials: PasswordCredentials) -> AuthResult:
        try:
            record = await self.users.find_by_email(credentials.email)
            if record is None:
                logger.info("auth_rejected", strategy="credentials", reason="not_found")
                return Rejected(RejectionReason.NOT_FOUND)

            matches = record.check_password(credentials.password)
        except (StoreUnavailable, CorruptRecordError, CorruptPasswordHashError) as e:
            logger.error("auth_internal_error", strategy="credentials", error=type(e).__name__)
            return Rejected(RejectionReason.INTERNAL_ERROR)

        if not matches:
            logger.info(
                "auth_rejected",
                strategy="credentials",
                reason="invalid_credentials",
                user_id=record.user.id,
            )
            return Rejected(RejectionReason.INVALID_CREDENTIALS)

        return Authenticated(record.user)


class TokenStrategy(AuthStrategy):
    """Bearer token verification followed by an identity lookup."""

    def __init__(self, users: UserService, tokens: TokenService):
        self.users = users
        self.tokens = tokens

    async def authenticate(self, credentials: BearerCredentials) -> AuthResult:
        if not credentials.token:
            return Rejected(RejectionReason.MISSING_TOKEN)

        try:
            user_id = self.tokens.decode(credentials.token)
        except jwt.InvalidTokenError as e:
            logger.info("auth_rejected", strategy="token", reason="invalid_token", error=type(e).__name__)
            return Rejected(RejectionReason.INVALID_TOKEN)

        try:
            user = await self.users.find_by_id(user_id)
        except (StoreUnavailable, CorruptRecordError) as e:
            logger.error(
                "auth_internal_error", strategy="token", user_id=user_id, error=type(e).__name__
            )
            return Rejected(RejectionReason.INTERNAL_ERROR)

        if user is None:
            logger.info("auth_rejected", strategy="token", reason="unknown_identity", user_id=user_id)
            return Rejected(RejectionReason.UNKNOWN_IDENTITY)

        return Authenticated(user)


class Authenticator:
    """Picks the strategy matching the credential material on a request."""

    def __init__(self, users: UserService, tokens: TokenService):
        self.credentials_strategy = CredentialsStrategy(users)
        self.token_strategy = TokenStrategy(users, tokens)

    async def resolve(self, credentials: Credentials) -> AuthResult:
        """Authenticate whichever credentials were presented.

        Args:
            credentials: Email/password pair or bearer token

        Returns:
            Authenticated or Rejected
        """
        if isinstance(credentials, PasswordCredentials):
            return await self.credentials_strategy.authenticate(credentials)
        if isinstance(credentials, BearerCredentials):
            return await self.token_strategy.authenticate(credentials)
        raise TypeError(f"Unsupported credentials: {type(credentials).__name__}")
