"""
Write operations of the API.

``register`` and ``login`` mint a fresh session token for the user.
``saveBook`` and ``removeBook`` act on the ``userId`` supplied by the
caller, not on the identity of the session token; any caller can
change any user's list.  This matches the published operation
contract and is kept as is.
"""

import logging
from typing import Optional

from ..core.errors import AuthenticationError
from ..core.security import create_access_token
from ..schemas.auth import Auth
from ..schemas.book import BookInput
from ..schemas.user import UserRead
from .user_service import UserService


logger = logging.getLogger(__name__)


def sign_token(user: UserRead) -> str:
    return create_access_token({"username": user.username, "email": user.email, "id": user.id})


class MutationService:

    @classmethod
    async def register(cls, username: Optional[str], email: str, password: str) -> Auth:
        user = await UserService.create_user(username, email, password)
        return Auth(token=sign_token(user), user=user)

    @classmethod
    async def login(cls, email: str, password: str) -> Auth:
        """Authenticate by e‑mail and password.

        Unknown e‑mail and wrong password both raise
        ``AuthenticationError``.
        """
        user = await UserService.get_user_by_email(email)
        if not user:
            logger.info("Login failed: no user for %s", email)
            raise AuthenticationError("No user found with this email address")
        if not UserService.verify_password(user, password):
            logger.info("Login failed: wrong password for %s", email)
            raise AuthenticationError("Incorrect Password")
        logger.info("User %s logged in", user.id)
        public = UserRead.model_validate(user.model_dump())
        return Auth(token=sign_token(public), user=public)

    @classmethod
    async def save_book(cls, user_id: str, book: BookInput) -> Optional[UserRead]:
        return await UserService.add_saved_book(user_id, book)

    @classmethod
    async def remove_book(cls, user_id: str, book_id: str) -> Optional[UserRead]:
        return await UserService.remove_saved_book(user_id, book_id)
