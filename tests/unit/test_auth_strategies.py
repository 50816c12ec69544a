"""Unit tests for the credentials and token authentication strategies."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from forum.exceptions import CorruptPasswordHashError, CorruptRecordError, StoreUnavailable
from forum.services.auth_strategies import (
    Authenticated,
    Authenticator,
    BearerCredentials,
    CredentialsStrategy,
    PasswordCredentials,
    Rejected,
    RejectionReason,
    TokenStrategy,
)
from forum.services.password_service import PasswordVerifier
from forum.services.token_service import TokenService
from forum.services.user_service import UserRecord
from tests.helpers import SECRET1_HASH, make_user

SECRET = "strategy-test-secret"
TTL = timedelta(hours=1)


@pytest.fixture
def users():
    """A UserService double with async lookups."""
    service = MagicMock()
    service.find_by_email = AsyncMock(return_value=None)
    service.find_by_id = AsyncMock(return_value=None)
    return service


@pytest.fixture
def tokens():
    return TokenService(secret=SECRET, ttl=TTL)


def _record(user, password_hash=SECRET1_HASH) -> UserRecord:
    return UserRecord(user, password_hash, PasswordVerifier())


# ---------------------------------------------------------------------------
# CredentialsStrategy
# ---------------------------------------------------------------------------

class TestCredentialsStrategy:
    """Email + password resolution."""

    async def test_matching_password_authenticates(self, users):
        user = make_user(email="a@x.com")
        users.find_by_email.return_value = _record(user)

        result = await CredentialsStrategy(users).authenticate(
            PasswordCredentials(email="a@x.com", password="secret1")
        )

        assert isinstance(result, Authenticated)
        assert result.user.id == user.id
        users.find_by_email.assert_awaited_once_with("a@x.com")

    async def test_wrong_password_rejected_invalid_credentials(self, users):
        users.find_by_email.return_value = _record(make_user(email="a@x.com"))

        result = await CredentialsStrategy(users).authenticate(
            PasswordCredentials(email="a@x.com", password="wrong")
        )

        assert result == Rejected(RejectionReason.INVALID_CREDENTIALS)
        assert result.message == "Invalid credentials"

    async def test_unknown_email_rejected_not_found(self, users):
        """Current behaviour reveals that the email is not registered."""
        result = await CredentialsStrategy(users).authenticate(
            PasswordCredentials(email="ghost@x.com", password="secret1")
        )

        assert result == Rejected(RejectionReason.NOT_FOUND)
        assert result.message == "User not found"

    async def test_store_failure_is_internal_error(self, users):
        users.find_by_email.side_effect = StoreUnavailable()

        result = await CredentialsStrategy(users).authenticate(
            PasswordCredentials(email="a@x.com", password="secret1")
        )

        assert result == Rejected(RejectionReason.INTERNAL_ERROR)

    async def test_corrupt_hash_is_internal_error(self, users):
        users.find_by_email.return_value = _record(make_user(), password_hash="garbage")

        result = await CredentialsStrategy(users).authenticate(
            PasswordCredentials(email="a@x.com", password="secret1")
        )

        assert result == Rejected(RejectionReason.INTERNAL_ERROR)

    async def test_corrupt_record_is_internal_error(self, users):
        users.find_by_email.side_effect = CorruptRecordError()

        result = await CredentialsStrategy(users).authenticate(
            PasswordCredentials(email="a@x.com", password="secret1")
        )

        assert result == Rejected(RejectionReason.INTERNAL_ERROR)

    async def test_missing_hash_is_internal_error(self, users):
        users.find_by_email.return_value = _record(make_user(), password_hash=None)

        result = await CredentialsStrategy(users).authenticate(
            PasswordCredentials(email="a@x.com", password="secret1")
        )

        assert result == Rejected(RejectionReason.INTERNAL_ERROR)

    async def test_inactive_user_still_authenticates(self, users):
        """Active status is the gate's concern, not the strategy's."""
        users.find_by_email.return_value = _record(make_user(is_active=False))

        result = await CredentialsStrategy(users).authenticate(
            PasswordCredentials(email="a@x.com", password="secret1")
        )

        assert isinstance(result, Authenticated)

    def test_password_hidden_from_repr(self):
        assert "secret1" not in repr(PasswordCredentials(email="a@x.com", password="secret1"))


# ---------------------------------------------------------------------------
# TokenStrategy
# ---------------------------------------------------------------------------

class TestTokenStrategy:
    """Bearer token resolution."""

    async def test_valid_token_authenticates(self, users, tokens):
        user = make_user()
        users.find_by_id.return_value = user

        result = await TokenStrategy(users, tokens).authenticate(
            BearerCredentials(token=tokens.issue(user))
        )

        assert result == Authenticated(user)
        users.find_by_id.assert_awaited_once_with(user.id)

    async def test_empty_token_is_missing(self, users, tokens):
        result = await TokenStrategy(users, tokens).authenticate(BearerCredentials(token=""))

        assert result == Rejected(RejectionReason.MISSING_TOKEN)
        users.find_by_id.assert_not_awaited()

    async def test_tampered_token_rejected(self, users, tokens):
        token = tokens.issue(make_user())
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}." + ("A" if signature[0] != "A" else "B") + signature[1:]

        result = await TokenStrategy(users, tokens).authenticate(BearerCredentials(token=tampered))

        assert result == Rejected(RejectionReason.INVALID_TOKEN)
        assert result.message == "invalid token"
        users.find_by_id.assert_not_awaited()

    async def test_expired_token_rejected(self, users):
        user = make_user()
        issued_at = datetime.now(timezone.utc) - TTL - timedelta(seconds=5)
        token = TokenService(SECRET, TTL, clock=lambda: issued_at).issue(user)
        users.find_by_id.return_value = user

        result = await TokenStrategy(users, TokenService(SECRET, TTL)).authenticate(
            BearerCredentials(token=token)
        )

        assert result == Rejected(RejectionReason.INVALID_TOKEN)

    async def test_malformed_token_rejected(self, users, tokens):
        result = await TokenStrategy(users, tokens).authenticate(
            BearerCredentials(token="definitely-not-a-jwt")
        )
        assert result == Rejected(RejectionReason.INVALID_TOKEN)

    async def test_deleted_identity_rejected(self, users, tokens):
        users.find_by_id.return_value = None

        result = await TokenStrategy(users, tokens).authenticate(
            BearerCredentials(token=tokens.issue(make_user()))
        )

        assert result == Rejected(RejectionReason.UNKNOWN_IDENTITY)
        assert result.message == "unknown identity"

    async def test_store_failure_is_internal_error_not_unknown(self, users, tokens):
        users.find_by_id.side_effect = StoreUnavailable()

        result = await TokenStrategy(users, tokens).authenticate(
            BearerCredentials(token=tokens.issue(make_user()))
        )

        assert result == Rejected(RejectionReason.INTERNAL_ERROR)

    async def test_corrupt_record_is_internal_error(self, users, tokens):
        users.find_by_id.side_effect = CorruptRecordError()

        result = await TokenStrategy(users, tokens).authenticate(
            BearerCredentials(token=tokens.issue(make_user()))
        )

        assert result == Rejected(RejectionReason.INTERNAL_ERROR)


# ---------------------------------------------------------------------------
# Authenticator
# ---------------------------------------------------------------------------

class TestAuthenticator:
    """Strategy selection by credential material."""

    async def test_password_credentials_use_credentials_strategy(self, users, tokens):
        users.find_by_email.return_value = _record(make_user())

        result = await Authenticator(users, tokens).resolve(
            PasswordCredentials(email="a@x.com", password="secret1")
        )

        assert isinstance(result, Authenticated)
        users.find_by_id.assert_not_awaited()

    async def test_bearer_credentials_use_token_strategy(self, users, tokens):
        user = make_user()
        users.find_by_id.return_value = user

        result = await Authenticator(users, tokens).resolve(
            BearerCredentials(token=tokens.issue(user))
        )

        assert result == Authenticated(user)
        users.find_by_email.assert_not_awaited()

    async def test_unknown_material_raises_type_error(self, users, tokens):
        with pytest.raises(TypeError):
            await Authenticator(users, tokens).resolve("api-key-123")


class TestUserRecord:
    """The store's login record keeps the hash private."""

    def test_repr_hides_hash(self):
        record = _record(make_user())
        assert SECRET1_HASH not in repr(record)

    def test_check_password(self):
        record = _record(make_user())
        assert record.check_password("secret1") is True
        assert record.check_password("wrong") is False

    def test_corrupt_hash_raises(self):
        record = _record(make_user(), password_hash="garbage")
        with pytest.raises(CorruptPasswordHashError):
            record.check_password("secret1")
