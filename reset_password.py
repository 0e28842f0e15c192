#!/usr/bin/env python3
"""
Reset a user's password in the Book Search SQLite database.

This script DOES NOT read or reveal any existing passwords.  It stores
the hash of the new password for the user with the given e‑mail.  The
hash is computed once, by ``UserService.update_user``.

Usage:
    python reset_password.py --db ./book_search_api/book_search.db --email alice@example.com --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import asyncio
import getpass
import os
import sys

from book_search_api.app.core.config import settings
from book_search_api.app.core.errors import ServiceError
from book_search_api.app.services.user_service import UserService


async def reset(email: str, password: str) -> int:
    user = await UserService.get_user_by_email(email)
    if not user:
        print(f"[!] No user found with email: {email}", file=sys.stderr)
        return 2
    try:
        await UserService.update_user(user.id, {"password": password})
    except ServiceError as exc:
        print(f"[!] {exc.message}", file=sys.stderr)
        return 1
    print(f"[+] Password updated for user: {email}")
    return 0


def main():
    ap = argparse.ArgumentParser(description="Reset a Book Search user password (SQLite).")
    ap.add_argument("--db", required=True, help="Path to SQLite DB file (e.g., ./book_search_api/book_search.db)")
    ap.add_argument("--email", required=True, help="User email to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args()

    if not os.path.exists(args.db):
        print(f"[!] DB not found: {args.db}", file=sys.stderr)
        sys.exit(1)

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if not new_password:
        print("[!] Empty password is not allowed.", file=sys.stderr)
        sys.exit(1)

    settings.database_url = os.path.abspath(args.db)
    sys.exit(asyncio.run(reset(args.email, new_password)))


if __name__ == "__main__":
    main()
