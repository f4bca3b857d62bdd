"""
Librarian command line.

    librarian migrate                      create tables and constraints
    librarian issue-token --user-id 1      print a signed bearer token
    librarian serve --port 8080            run the API with uvicorn
"""

import argparse
import sys
from datetime import timedelta

from loguru import logger

from librarian.config import get_settings
from librarian.exceptions import LibrarianError
from librarian.security import create_access_token
from librarian.storage.records import User
from librarian.storage.repository import SQLRepository


def migrate(args) -> int:
    """Create the schema in the configured database."""
    settings = get_settings()
    repo = SQLRepository(args.database_url or settings.database_url)
    try:
        repo.create_schema()
    finally:
        repo.dispose()
    print("Database schema migrated successfully!")
    return 0


def issue_token(args) -> int:
    """Sign a token for an existing user."""
    settings = get_settings()
    repo = SQLRepository(args.database_url or settings.database_url)
    try:
        user = repo.get(User, args.user_id)
    finally:
        repo.dispose()

    if user is None:
        print(f"User {args.user_id} does not exist", file=sys.stderr)
        return 1
    if user.status != "active":
        logger.warning(f"Issuing a token for {user.status} user {user.id}; it will be refused")

    minutes = args.expires_minutes or settings.access_token_expire_minutes
    token = create_access_token(
        user.id,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_delta=timedelta(minutes=minutes),
    )
    print(token)
    return 0


def serve(args) -> int:
    """Run the API server."""
    from librarian.api.main import main as run_server
    run_server(host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="librarian", description="Library lending backend")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_migrate = subparsers.add_parser("migrate", help="Create database tables and constraints")
    p_migrate.add_argument("--database-url", help="Override DATABASE_URL")
    p_migrate.set_defaults(func=migrate)

    p_token = subparsers.add_parser("issue-token", help="Print a bearer token for a user")
    p_token.add_argument("--user-id", type=int, required=True)
    p_token.add_argument("--expires-minutes", type=int, help="Override ACCESS_TOKEN_EXPIRE_MINUTES")
    p_token.add_argument("--database-url", help="Override DATABASE_URL")
    p_token.set_defaults(func=issue_token)

    p_serve = subparsers.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default="0.0.0.0")
    p_serve.add_argument("--port", type=int, default=8080)
    p_serve.set_defaults(func=serve)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except LibrarianError as e:
        logger.error(f"{e.message}: {e.detail}" if e.detail else e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
