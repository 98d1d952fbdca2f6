"""CLI entry point for promptledger.cli module.

Enables execution via: python -m promptledger.cli
"""

from promptledger.cli.issue_token import main

if __name__ == "__main__":
    raise SystemExit(main())
