"""Bearer token issuing and hashing.

Only the SHA-256 digest of a token is stored. The plain token is returned
once, when issued.
"""

import hashlib
import secrets

TOKEN_BYTES = 32


def hash_token(plain_token: str) -> str:
    """Return the hex SHA-256 digest stored for ``plain_token``."""
    return hashlib.sha256(plain_token.encode("utf-8")).hexdigest()


def generate_token() -> tuple[str, str]:
    """Generate a new bearer token.

    Returns:
        Tuple of (plain token for the user, digest for the database)
    """
    plain_token = secrets.token_urlsafe(TOKEN_BYTES)
    return plain_token, hash_token(plain_token)


def parse_bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header value.

    Returns None when the header is absent, uses another scheme, or is empty.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None
