"""Print a session token for an existing user.

Usage:
    JWT_SECRET_KEY=... python create_token.py alice@example.com
"""
import asyncio
import sys

from book_search_api.app.core.db import init_db
from book_search_api.app.core.security import load_signing_key
from book_search_api.app.services.mutation_service import sign_token
from book_search_api.app.services.user_service import UserService


async def main(email: str) -> int:
    load_signing_key()
    init_db()
    user = await UserService.get_user_by_email(email)
    if not user:
        print(f"[!] No user found with email: {email}", file=sys.stderr)
        return 2
    print(sign_token(user))
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__, file=sys.stderr)
        sys.exit(1)
    sys.exit(asyncio.run(main(sys.argv[1])))
