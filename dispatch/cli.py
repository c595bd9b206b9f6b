"""CLI for Patrol Dispatch: create tables, manage users."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys


async def cmd_init_db(args):
    """Create all tables (idempotent)."""
    from dispatch.db.engine import create_all, engine

    await create_all()
    await engine.dispose()
    print("Database tables created.")


async def cmd_create_user(args):
    """Create a login user with the given role."""
    from dispatch.db import crud
    from dispatch.db.engine import async_session_factory, create_all, engine
    from dispatch.models.auth_models import ROLES
    from dispatch.services.auth import hash_password

    if args.role not in ROLES:
        print(f"Role must be one of: {', '.join(ROLES)}")
        sys.exit(1)

    password = args.password
    if not password:
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match")
            sys.exit(1)

    if len(password) < 8:
        print("Password must be at least 8 characters")
        sys.exit(1)

    await create_all()
    async with async_session_factory() as db:
        if await crud.get_user_by_email(db, args.email):
            print(f"User {args.email} already exists")
            sys.exit(1)
        user = await crud.create_user(
            db,
            email=args.email,
            password_hash=hash_password(password),
            role=args.role,
            display_name=args.display_name,
        )
    await engine.dispose()

    print(f"User created: {user.email} (id={user.id}, role={user.role})")


def main():
    parser = argparse.ArgumentParser(description="Patrol Dispatch CLI")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create database tables")

    cu = subparsers.add_parser("create-user", help="Create a login user")
    cu.add_argument("--email", required=True, help="User email")
    cu.add_argument("--role", default="operator", help="admin | operator | agent | client_viewer")
    cu.add_argument("--password", default="", help="Password (prompted if not given)")
    cu.add_argument("--display-name", default="", help="Display name")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "init-db":
        asyncio.run(cmd_init_db(args))
    elif args.command == "create-user":
        asyncio.run(cmd_create_user(args))


if __name__ == "__main__":
    main()
