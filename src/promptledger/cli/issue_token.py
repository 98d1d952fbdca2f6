"""CLI command for issuing API bearer tokens.

Usage:
    python -m promptledger.cli.issue_token --email EMAIL [OPTIONS]

Examples:
    # Issue a token, creating the user if needed
    python -m promptledger.cli.issue_token --email ada@example.com --name "Ada"

    # Label the token
    python -m promptledger.cli.issue_token --email ada@example.com --token-name laptop

The plain token is printed once and cannot be recovered later.
"""

import asyncio
import sys
from argparse import ArgumentParser, Namespace

import structlog
from sqlalchemy.exc import SQLAlchemyError

from promptledger.core import timezone  # noqa: F401
from promptledger.core.config import Settings, configure_logging
from promptledger.core.database import setup_db_session
from promptledger.models.access_token import AccessToken
from promptledger.services.access_tokens import generate_token
from promptledger.uow import create_uow_factory

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> Namespace:
    """Parse command-line arguments."""
    parser = ArgumentParser(
        description="Issue an API bearer token for a user",
        epilog="Creates the user when no user with this email exists",
    )

    parser.add_argument("--email", required=True, help="User email address (case-insensitive)")
    parser.add_argument("--name", default="", help="Display name for a newly created user")
    parser.add_argument(
        "--token-name",
        default="default",
        help="Label stored with the token (default: default)",
    )

    return parser.parse_args(argv)


async def issue_token(settings: Settings, email: str, name: str, token_name: str) -> str:
    """Create the user if needed and store a new token for them.

    Returns:
        Plain bearer token
    """
    session_factory = setup_db_session(settings.database_url, pool_size=1)
    uow_factory = create_uow_factory(session_factory)

    plain_token, token_hash = generate_token()

    try:
        async with await uow_factory() as uow:
            user = await uow.users.get_or_create(email, name=name)
            await uow.access_tokens.add(
                AccessToken(user_id=user.id, name=token_name, token_hash=token_hash)
            )
            user_id = user.id
    finally:
        await session_factory.kw["bind"].dispose()

    logger.info("token.issued", user_id=str(user_id), email=email, token_name=token_name)
    return plain_token


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 = success, 1 = failure)
    """
    args = parse_args(argv)

    settings = Settings()  # type: ignore[call-arg]
    configure_logging(settings)

    try:
        plain_token = asyncio.run(issue_token(settings, args.email, args.name, args.token_name))
    except SQLAlchemyError as e:
        logger.error("token.issue_failed", error=str(e), error_type=type(e).__name__)
        print(f"Failed to issue token: {e}", file=sys.stderr)
        return 1

    print(plain_token)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
