"""Password hashing and verification with bcrypt."""

import bcrypt

from forum.exceptions import CorruptPasswordHashError

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
MAX_PASSWORD_BYTES = 72


class PasswordVerifier:
    """Salted one-way password hashing."""

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string

        Raises:
            ValueError: If the password is longer than 72 bytes
        """
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError("Password must be at most 72 bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")

    def verify(self, candidate: str, stored_hash: str) -> bool:
        """Verify a candidate password against a stored bcrypt hash.

        A mismatch is a plain ``False``; only an unparseable hash raises.

        Args:
            candidate: Plain-text password to check
            stored_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches, False otherwise

        Raises:
            CorruptPasswordHashError: If the stored hash is missing or not a bcrypt hash
        """
        if not isinstance(stored_hash, str) or not stored_hash:
            raise CorruptPasswordHashError("Stored password hash is missing")

        encoded = candidate.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, stored_hash.encode("utf-8"))
        except ValueError as e:
            raise CorruptPasswordHashError("Stored password hash is invalid") from e
