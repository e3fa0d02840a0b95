"""User repository port."""

from typing import Protocol

from memoryscape.domain.models.user import User


class UserRepository(Protocol):
    """Port for persisting and querying users."""

    async def get(self, user_id: str) -> User | None:
        """Get a user by id."""
        ...

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by normalized email."""
        ...

    async def save(self, user: User) -> None:
        """Insert or replace a user."""
        ...
