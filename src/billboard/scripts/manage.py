"""Operational helpers for local development.

Usage:
    python -m billboard.scripts.manage init-db
    python -m billboard.scripts.manage token <user-id> [--name NAME]
"""

from __future__ import annotations

import argparse
import sys

from billboard.core.security import create_access_token
from billboard.db.session import create_tables, engine


def init_db() -> None:
    """Create all tables on the configured database."""
    create_tables()
    print(f"Database initialized at {engine.url.render_as_string(hide_password=True)}")


def issue_token(user_id: str, name: str | None) -> str:
    """Mint a bearer token shaped like the identity provider's."""
    return create_access_token(user_id, display_name=name)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Billboard maintenance commands")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables")

    token = sub.add_parser("token", help="Issue a development bearer token")
    token.add_argument("user_id")
    token.add_argument("--name", default=None, help="Display name claim")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "init-db":
        init_db()
    elif args.command == "token":
        print(issue_token(args.user_id, args.name))
    return 0


if __name__ == "__main__":
    sys.exit(main())
