"""AccessToken repository.

Resolves bearer token digests to their owning users.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from promptledger.models.access_token import AccessToken
from promptledger.models.user import User


class AccessTokenRepository:
    """Repository for AccessToken entities."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def add(self, token: AccessToken) -> AccessToken:
        """Persist new access token to database."""
        self.session.add(token)
        await self.session.flush()
        return token

    async def get_user_by_token_hash(self, token_hash: str) -> User | None:
        """Retrieve the user owning the token with this SHA-256 digest.

        Args:
            token_hash: Hex SHA-256 digest of the plain bearer token

        Returns:
            Owning User if the token exists, None otherwise
        """
        result = await self.session.execute(
            select(User)
            .join(AccessToken, AccessToken.user_id == User.id)  # type: ignore[arg-type]
            .where(AccessToken.token_hash == token_hash)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()
