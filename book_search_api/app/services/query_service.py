"""
Read operations of the API.

``listUsers`` and ``getUser`` are public.  ``getMe`` and
``listSavedBooks`` act on the identity resolved from the request's
session token and raise ``AuthenticationError`` for anonymous
requests.
"""

from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from ..core.errors import AuthenticationError
from ..schemas.book import BookInput, BookRead
from ..schemas.user import UserRead
from .catalog_service import CatalogService
from .user_service import UserService


def _identity_id(identity: Optional[Dict[str, Any]]) -> str:
    if not identity or not identity.get("id"):
        raise AuthenticationError("Not Authenticated")
    return identity["id"]


class QueryService:
    catalog: Optional[CatalogService] = None

    @classmethod
    async def list_users(cls) -> List[UserRead]:
        return await UserService.list_users()

    @classmethod
    async def get_user(cls, user_id: str) -> Optional[UserRead]:
        return await UserService.get_user_by_id(user_id)

    @classmethod
    async def get_me(cls, identity: Optional[Dict[str, Any]]) -> Optional[UserRead]:
        """Return the authenticated user, ``None`` if it no longer exists."""
        return await UserService.get_user_by_id(_identity_id(identity))

    @classmethod
    async def list_saved_books(cls, identity: Optional[Dict[str, Any]]) -> Optional[List[BookRead]]:
        user = await UserService.get_user_by_id(_identity_id(identity))
        return user.saved_books if user else None

    @classmethod
    async def search_books(cls, query: str) -> List[BookInput]:
        if cls.catalog is None:
            cls.catalog = CatalogService()
        return await run_in_threadpool(cls.catalog.search, query)
