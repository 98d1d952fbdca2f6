"""Repository layer.

Provides data access abstractions for all domain entities.
No base classes - each repository is self-contained.
"""

from promptledger.repositories.access_token import AccessTokenRepository
from promptledger.repositories.generation import GenerationRepository
from promptledger.repositories.user import UserRepository

__all__ = [
    "UserRepository",
    "AccessTokenRepository",
    "GenerationRepository",
]
