"""User repository.

Provides data access methods for User entities with case-insensitive email lookup.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from promptledger.models.user import User


class UserRepository:
    """Repository for User entities."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_email(self, email: str) -> User | None:
        """Retrieve user by email address (case-insensitive).

        Args:
            email: Email address in any case

        Returns:
            User if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def add(self, user: User) -> User:
        """Persist new user to database.

        Email is normalized to lowercase before insert.

        Args:
            user: User entity to persist

        Returns:
            Persisted user with generated ID
        """
        user.email = user.email.strip().lower()
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_or_create(self, email: str, name: str = "") -> User:
        """Return the user with this email, creating it when absent.

        Args:
            email: Email address (case-insensitive)
            name: Display name used only when a new user is created

        Returns:
            Existing or newly created user
        """
        existing = await self.get_by_email(email)
        if existing:
            return existing
        return await self.add(User(email=email, name=name))
