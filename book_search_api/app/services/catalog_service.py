"""
Client for the upstream book catalog (Google Books).

``CatalogService.search`` turns a free‑text query into a list of
``BookInput`` objects ready to be passed to ``saveBook``.  Only the
fields the application stores are kept: the volume id, title,
authors, description, thumbnail and info link.  Thumbnails are
requested at full size by rewriting ``zoom=1`` to ``zoom=0``.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..core.config import settings
from ..schemas.book import BookInput


logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when the catalog cannot be reached or answers with an error."""


def full_size_thumbnail(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    return url.replace("zoom=1", "zoom=0")


def book_from_volume(volume: Dict[str, Any]) -> Optional[BookInput]:
    """Map one catalog volume to a ``BookInput``; ``None`` if it has no id or title."""
    info = volume.get("volumeInfo") or {}
    if not volume.get("id") or not info.get("title"):
        return None
    return BookInput(
        book_id=volume["id"],
        title=info["title"],
        authors=info.get("authors") or [],
        description=info.get("description") or "",
        image=full_size_thumbnail((info.get("imageLinks") or {}).get("thumbnail")),
        link=info.get("infoLink"),
    )


class CatalogService:
    """Search the book catalog over HTTP."""

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url or settings.google_books_url
        self.timeout = timeout or settings.google_books_timeout
        self.session = session or requests.Session()

    def search(self, query: str) -> List[BookInput]:
        """Return the books matching ``query``; an empty query returns ``[]``."""
        query = (query or "").strip()
        if not query:
            return []
        logger.debug("Searching catalog for %r", query)
        try:
            response = self.session.get(self.base_url, params={"q": query}, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            logger.error("Catalog search failed: %s", exc)
            raise CatalogError(f"Catalog search failed: {exc}") from exc
        except ValueError as exc:
            logger.error("Catalog returned invalid JSON: %s", exc)
            raise CatalogError("Catalog returned an invalid response") from exc

        books = []
        for volume in payload.get("items") or []:
            book = book_from_volume(volume)
            if book is not None:
                books.append(book)
        return books
