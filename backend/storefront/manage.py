"""Administrative commands for local development.

Usage: python -m storefront.manage <command> [options]

Commands:
- migrate: create the database tables
- createsuperuser: create a staff user
- issuetoken: print a bearer token for an existing user
- runserver: serve the API with uvicorn
"""
import argparse
import sys
from typing import List, Optional

from sqlmodel import Session

from .config import settings
from .database import engine, create_db_and_tables
from . import repositories, services


def migrate() -> int:
    """Create all tables that do not exist yet."""
    print("Using database:", settings.DATABASE_URL)
    create_db_and_tables()
    print("Tables created.")
    return 0


def createsuperuser(username: str, password: str, email: Optional[str] = None) -> int:
    create_db_and_tables()
    with Session(engine) as session:
        try:
            user = services.AuthService(session).register(username, password, email=email, is_staff=True)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    print(f"Superuser created: {user.username} (id {user.id})")
    return 0


def issuetoken(username: str) -> int:
    with Session(engine) as session:
        user = repositories.UserRepository(session).get_by_username(username)
        if not user:
            print(f"Error: no such user: {username}", file=sys.stderr)
            return 1
        print(services.AuthService(session).issue_token(user))
    return 0


def runserver(host: str = "127.0.0.1", port: int = 8000, reload: bool = False) -> int:
    import uvicorn
    uvicorn.run("storefront.main:app", host=host, port=port, reload=reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storefront.manage")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("migrate", help="Create database tables")

    su = sub.add_parser("createsuperuser", help="Create a staff user")
    su.add_argument("--username", required=True)
    su.add_argument("--password", required=True)
    su.add_argument("--email")

    tok = sub.add_parser("issuetoken", help="Print a bearer token for a user")
    tok.add_argument("--username", required=True)

    rs = sub.add_parser("runserver", help="Run the development server")
    rs.add_argument("--host", default="127.0.0.1")
    rs.add_argument("--port", type=int, default=8000)
    rs.add_argument("--reload", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "migrate":
        return migrate()
    if args.command == "createsuperuser":
        return createsuperuser(args.username, args.password, args.email)
    if args.command == "issuetoken":
        return issuetoken(args.username)
    return runserver(args.host, args.port, args.reload)


if __name__ == '__main__':
    sys.exit(main())
