"""Identity ports: bearer tokens and password hashing."""

from typing import Protocol


class TokenIssuer(Protocol):
    """Issues and validates bearer tokens."""

    def issue(self, user_id: str) -> str:
        """Issue a signed token for a user."""
        ...

    def verify(self, token: str) -> str:
        """Validate a token and return the user id.

        Raises:
            Unauthorized: If the token is malformed, forged or expired.
        """
        ...


class PasswordHasher(Protocol):
    """One-way password hashing."""

    def hash(self, password: str) -> str:
        """Hash a plaintext password."""
        ...

    def verify(self, password_hash: str, password: str) -> bool:
        """Check a plaintext password against a stored hash."""
        ...
