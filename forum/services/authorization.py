"""Authorization gate: AuthResult -> authorized user or a typed error."""

from typing import Iterable, Optional

import structlog

from forum.exceptions import (
    ForumError,
    Forbidden,
    InvalidCredentials,
    InvalidToken,
    StoreUnavailable,
    UnknownIdentity,
)
from forum.models.user import Role, User
from forum.services.auth_strategies import Authenticated, AuthResult, Rejected, RejectionReason

logger = structlog.get_logger(__name__)

ADMIN_ROLES = frozenset({Role.ADMIN})
MODERATOR_ROLES = frozenset({Role.MODERATOR, Role.ADMIN})

_REJECTION_ERRORS: dict[RejectionReason, type[ForumError]] = {
    RejectionReason.MISSING_TOKEN: InvalidToken,
    RejectionReason.NOT_FOUND: InvalidCredentials,
    RejectionReason.INVALID_CREDENTIALS: InvalidCredentials,
    RejectionReason.INVALID_TOKEN: InvalidToken,
    RejectionReason.UNKNOWN_IDENTITY: UnknownIdentity,
    RejectionReason.INTERNAL_ERROR: StoreUnavailable,
}


class AuthorizationGate:
    """Decides whether an authentication outcome may reach a route.

    Rejected results become 401 errors (500 for store failures). An
    authenticated user that is inactive, or whose role is not allowed,
    becomes ``Forbidden``. The active flag is read from the user loaded for
    this request, never from the token.
    """

    def authorize(self, result: AuthResult, roles: Optional[Iterable[Role]] = None) -> User:
        """Return the authorized user or raise.

        Args:
            result: Outcome of an authentication strategy
            roles: Allowed roles; None means any authenticated user

        Returns:
            The authorized User

        Raises:
            InvalidCredentials, InvalidToken, UnknownIdentity: 401 rejections
            StoreUnavailable: The store failed while authenticating
            Forbidden: Inactive account or role not allowed
        """
        if isinstance(result, Rejected):
            error_cls = _REJECTION_ERRORS[result.reason]
            raise error_cls(result.message)

        if not isinstance(result, Authenticated):
            raise TypeError(f"Unsupported auth result: {type(result).__name__}")

        user = result.user

        if not user.is_active:
            logger.warning("access_denied", user_id=user.id, reason="inactive")
            raise Forbidden("account is inactive")

        if roles is not None:
            allowed = frozenset(roles)
            if user.role not in allowed:
                logger.warning(
                    "access_denied",
                    user_id=user.id,
                    reason="role",
                    role=user.role.value,
                    required=sorted(r.value for r in allowed),
                )
                raise Forbidden("forbidden")

        return user
