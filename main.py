#!/usr/bin/env python3
"""
NeonThreads -- storefront API management commands.

Usage:
  python main.py init-db
  python main.py create-user alice --level 0
  python main.py create-user bob --level 1 --password-stdin < pw.txt
  python main.py set-level bob 2
  python main.py serve --host 0.0.0.0 --port 8000

Environment variables (see core/config.py for the full list):
  JWT_SECRET     Required. At least 32 characters. Signs every session token.
  DATABASE_URL   Optional. SQLAlchemy URL; defaults to neonthreads.db beside the code.
"""

import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore
from auth.tokens import hash_password
from catalog.store import ProductStore
from core.config import ConfigurationError, Settings, get_settings

_MIN_PASSWORD_LENGTH = 8


def _read_password(from_stdin: bool) -> str:
    """Read a new password from stdin or prompt for it twice on the terminal."""
    if from_stdin:
        return sys.stdin.readline().rstrip("\n")
    first = getpass.getpass("  Password: ")
    second = getpass.getpass("  Repeat password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return ""
    return first


def cmd_init_db(settings: Settings, args: argparse.Namespace) -> int:
    """Create the users and products tables if they do not exist."""
    UserStore(settings.database_url).close()
    ProductStore(settings.database_url).close()
    print(f"  Database ready at {settings.database_url}")
    return 0


def cmd_create_user(settings: Settings, args: argparse.Namespace) -> int:
    password = _read_password(args.password_stdin)
    if len(password) < _MIN_PASSWORD_LENGTH:
        print(f"  [!] Password must be at least {_MIN_PASSWORD_LENGTH} characters.")
        return 1

    store = UserStore(settings.database_url)
    try:
        user_id = store.create_user(
            User(username=args.username, level=args.level, hashed_password=hash_password(password))
        )
    except IntegrityError:
        print(f"  [!] User '{args.username}' already exists.")
        return 1
    finally:
        store.close()
    print(f"  Created user '{args.username}' (id={user_id}, level={args.level}).")
    return 0


def cmd_set_level(settings: Settings, args: argparse.Namespace) -> int:
    store = UserStore(settings.database_url)
    try:
        user = store.get_by_username(args.username)
        if user is None:
            print(f"  [!] No user named '{args.username}'.")
            return 1
        store.update_user(user.id, level=args.level)
    finally:
        store.close()
    print(f"  '{args.username}' is now level {args.level} (was {user.level}).")
    return 0


def cmd_serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="neonthreads",
        description="Manage the NeonThreads storefront API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Privilege levels (lower = more access):
  0  staff   -- manage users and products
  1  editor  -- manage products
  2  customer (default)
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p = sub.add_parser("init-db", help="Create database tables")
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser("create-user", help="Create a user account")
    p.add_argument("username", help="Login name (unique)")
    p.add_argument("--level", type=int, default=2, help="Privilege level, 0 is highest (default: 2)")
    p.add_argument(
        "--password-stdin",
        action="store_true",
        help="Read the password from the first line of stdin instead of prompting",
    )
    p.set_defaults(func=cmd_create_user)

    p = sub.add_parser("set-level", help="Change a user's privilege level")
    p.add_argument("username")
    p.add_argument("level", type=int)
    p.set_defaults(func=cmd_set_level)

    p = sub.add_parser("serve", help="Run the API with uvicorn")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    if getattr(args, "level", 0) < 0:
        print("  [!] Level must be zero or positive.")
        return 1

    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(f"  [!] Configuration error: {exc}")
        return 2
    return args.func(settings, args)


if __name__ == "__main__":
    sys.exit(main())
