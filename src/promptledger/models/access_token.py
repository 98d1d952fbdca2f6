"""AccessToken entity - hashed bearer tokens for API authentication."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class AccessToken(SQLModel, table=True):
    """AccessToken stores the SHA-256 digest of a bearer token issued to a user.

    The plain token is shown once when issued and never persisted.
    """

    __tablename__ = "access_tokens"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    name: str = Field(default="default", max_length=255)
    token_hash: str = Field(max_length=64, unique=True, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
