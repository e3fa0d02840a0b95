"""Registration, login and bearer token resolution."""

import logging
import re

from memoryscape.domain.models.base import utc_now
from memoryscape.domain.models.errors import Conflict, Unauthorized, ValidationFailed
from memoryscape.domain.models.user import User, UserProfile
from memoryscape.domain.ports.identity import PasswordHasher, TokenIssuer
from memoryscape.domain.ports.user_repository import UserRepository

logger = logging.getLogger(__name__)

_PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
MIN_PASSWORD_LENGTH = 6


def validate_password(password: str) -> None:
    """Reject passwords that are too short or miss a lowercase, uppercase or digit."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed("Password must be at least 6 characters long")
    if not _PASSWORD_PATTERN.match(password):
        raise ValidationFailed(
            "Password must contain at least one lowercase letter, one uppercase letter, and one number"
        )


class AuthService:
    """Account registration and credential checks."""

    def __init__(
        self, users: UserRepository, hasher: PasswordHasher, tokens: TokenIssuer
    ) -> None:
        self._users = users
        self._hasher = hasher
        self._tokens = tokens

    async def register(self, name: str, email: str, password: str) -> tuple[User, str]:
        """Create an account and return it with a fresh token.

        Raises:
            ValidationFailed: If the password is too weak.
            Conflict: If the email is already registered.
        """
        validate_password(password)
        email = email.strip().lower()
        if await self._users.get_by_email(email) is not None:
            raise Conflict("User already exists with this email")

        user = User(name=name.strip(), email=email, password_hash=self._hasher.hash(password))
        await self._users.save(user)
        logger.info(f"Registered user {user.id}")
        return user, self._tokens.issue(user.id)

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """Check credentials and return the user with a fresh token."""
        user = await self._users.get_by_email(email.strip().lower())
        if user is None or not self._hasher.verify(user.password_hash, password):
            raise Unauthorized("Invalid credentials")
        user.last_active = utc_now()
        await self._users.save(user)
        return user, self._tokens.issue(user.id)

    async def authenticate(self, token: str) -> User:
        """Resolve a bearer token to an existing user."""
        user_id = self._tokens.verify(token)
        user = await self._users.get(user_id)
        if user is None:
            raise Unauthorized("User not found")
        return user

    async def authenticate_profile(self, token: str) -> UserProfile:
        """Resolve a bearer token to the public profile used by the realtime layer."""
        user = await self.authenticate(token)
        return user.profile()
