"""SQLModel database entities.

All models are imported here to ensure they're registered with SQLModel metadata
for Alembic autogenerate support.
"""

from promptledger.models.access_token import AccessToken
from promptledger.models.generation import GenerationRecord
from promptledger.models.user import User

__all__ = [
    "User",
    "AccessToken",
    "GenerationRecord",
]
