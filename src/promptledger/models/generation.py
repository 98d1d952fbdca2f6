"""GenerationRecord entity - one row per successful image-to-prompt generation."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


class GenerationRecord(SQLModel, table=True):
    """GenerationRecord links an uploaded image to the prompt generated for it.

    Rows are append-only: created once after a successful vision call, never
    updated or deleted by the application.
    """

    __tablename__ = "image_generations"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    image_path: str = Field(max_length=512, unique=True)
    generated_prompt: str = Field(sa_column=Column(Text, nullable=False))
    original_filename: str = Field(max_length=255)
    file_size: int
    mime_type: str = Field(max_length=100)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
