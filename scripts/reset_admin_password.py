#!/usr/bin/env python3
"""
Reset a staff user's password.

Revokes every open session of the user so old bearer tokens stop working.
Creates the account as an admin when ``--create`` is given and the username
does not exist yet.

Reads database settings from the environment (``DATABASE_URL`` or
``POSTGRES_*``), loading a local ``.env`` first.

Usage:
  python scripts/reset_admin_password.py USERNAME [--password PASSWORD] [--create]
"""
from __future__ import annotations

import argparse
import getpass
import logging
import sys
from contextlib import suppress

from dotenv import load_dotenv

load_dotenv()

from tourcrm.db import database, schemas  # noqa: E402
from tourcrm.db.repositories import sessions as session_repo  # noqa: E402
from tourcrm.db.repositories import users as user_repo  # noqa: E402


logger = logging.getLogger("tourcrm.scripts.reset_admin_password")

MIN_PASSWORD_LENGTH = 6


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reset a staff user's password")
    parser.add_argument("username", help="Login name of the user")
    parser.add_argument(
        "--password",
        help="New password (prompted for when omitted)",
    )
    parser.add_argument(
        "--create",
        action="store_true",
        help="Create an admin with this username if it does not exist",
    )
    return parser.parse_args(argv)


def _read_password() -> str:
    first = getpass.getpass("New password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        raise ValueError("Passwords do not match")
    return first


def reset_password(username: str, password: str, create: bool = False) -> int:
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.", file=sys.stderr)
        return 1

    session = database.SessionLocal()
    try:
        db_user = user_repo.get_user_by_username(session, username)
        if db_user is None:
            if not create:
                print(f"User '{username}' not found. Pass --create to add an admin.", file=sys.stderr)
                return 1
            db_user = user_repo.create_user(
                session,
                schemas.UserCreate(username=username, name=username, role="admin", password=password),
            )
            print(f"Created admin '{db_user.username}'.")
            logger.info("Created admin %s from CLI", db_user.id)
            return 0

        user_repo.set_password(session, db_user, password)
        revoked = session_repo.revoke_all_for_user(session, user_id=db_user.id)
        print(f"Password for '{db_user.username}' updated; {revoked} session(s) revoked.")
        logger.info("Password reset for user %s, revoked %s sessions", db_user.id, revoked)
        return 0
    finally:
        with suppress(Exception):
            session.close()


def main(argv: list[str] | None = None) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    try:
        password = args.password if args.password is not None else _read_password()
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return reset_password(args.username, password, create=args.create)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
