"""FastAPI dependencies for authentication and authorization."""

from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from forum.models.user import Role, User
from forum.services.auth_strategies import AuthResult, Authenticator, BearerCredentials
from forum.services.authorization import ADMIN_ROLES, MODERATOR_ROLES, AuthorizationGate
from forum.services.token_service import get_token_service
from forum.services.user_service import UserService

# auto_error=False so a missing header goes through the gate and gets the
# same 401 {"message": ...} body as a bad token
bearer_scheme = HTTPBearer(auto_error=False)


async def get_auth_result(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthResult:
    """Run the token strategy on the request's bearer token.

    The user is re-read from the store on every request, so role changes
    and bans apply immediately.
    """
    token = credentials.credentials if credentials is not None else ""
    authenticator = Authenticator(UserService(), get_token_service())
    return await authenticator.resolve(BearerCredentials(token=token))


async def get_current_user(
    result: AuthResult = Depends(get_auth_result),
) -> User:
    """Require an authenticated, active user.

    Args:
        result: Outcome of the token strategy

    Returns:
        Authenticated, active User

    Raises:
        InvalidToken / UnknownIdentity (401): Missing, bad or orphaned token
        Forbidden (403): The account is inactive
        StoreUnavailable (500): The user store failed
    """
    return AuthorizationGate().authorize(result)


def require_role(*roles: Role) -> Callable:
    """Build a dependency that only lets the given roles through.

    Args:
        roles: Allowed roles

    Returns:
        FastAPI dependency yielding the authorized User
    """
    allowed = frozenset(roles)

    async def dependency(result: AuthResult = Depends(get_auth_result)) -> User:
        return AuthorizationGate().authorize(result, roles=allowed)

    return dependency


require_admin = require_role(*ADMIN_ROLES)
require_moderator = require_role(*MODERATOR_ROLES)
