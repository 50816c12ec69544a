"""Error taxonomy shared by the auth core and the HTTP layer.

Every error carries the HTTP status it maps to and the message rendered in
the ``{"message": ...}`` response body.
"""

from typing import Optional


class ForumError(Exception):
    """Base class for errors rendered as JSON ``{"message": ...}``."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentials(ForumError):
    """Wrong email/password pair (or unknown email)."""

    status_code = 401
    default_message = "Invalid credentials"


class InvalidToken(ForumError):
    """Missing, malformed, expired or badly signed bearer token."""

    status_code = 401
    default_message = "invalid token"


class UnknownIdentity(ForumError):
    """Token references an identity that no longer exists."""

    status_code = 401
    default_message = "unknown identity"


class Forbidden(ForumError):
    """Identity is valid but lacks the role, or the account is inactive."""

    status_code = 403
    default_message = "forbidden"


class StoreUnavailable(ForumError):
    """The document store failed for infrastructure reasons."""

    status_code = 500
    default_message = "Server error"


class NotFound(ForumError):
    status_code = 404
    default_message = "Not found"


class Conflict(ForumError):
    """A uniqueness rule was violated on write."""

    status_code = 409
    default_message = "Already exists"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class CorruptPasswordHashError(ForumError):
    """A stored password hash could not be parsed."""

    status_code = 500
    default_message = "Server error"


class CorruptRecordError(ForumError):
    """A stored document is missing fields or holds values outside the model."""

    status_code = 500
    default_message = "Server error"
