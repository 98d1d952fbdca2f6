"""User entity - authenticated caller who owns generation records."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """User owns generation records and the access tokens that identify them."""

    __tablename__ = "users"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)  # stored lowercase
    name: str = Field(default="", max_length=255)
    created_at: datetime = Field(default_factory=datetime.utcnow)
