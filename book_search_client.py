"""Book Search API client.

This module defines a thin client wrapper around the operation endpoint
of the Book Search API (``POST /api/v1/operations``).  Each public
method maps one user action to one operation:

* :meth:`list_users` – all registered users.
* :meth:`get_user` – a single user by identifier.
* :meth:`get_me` – the user behind the current session token.
* :meth:`list_saved_books` – the current user's saved books.
* :meth:`register` – create an account and keep the returned token.
* :meth:`login` – authenticate and keep the returned token.
* :meth:`save_book` – add a book to a user's saved list.
* :meth:`remove_book` – remove a book from a user's saved list.
* :meth:`search_books` – search the external book catalog.

Every method returns a tuple ``(data, error)``: ``data`` is the
operation result on success and ``error`` is ``None``; on failure
``data`` is ``None`` and ``error`` is a dictionary with the keys
``status_code``, ``code`` and ``message``.  The client never retries.

The client uses the ``requests`` library internally.  Any object with
a compatible ``request`` method may be passed as ``session``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

OPERATIONS_PATH = "/api/v1/operations"

Result = Tuple[Optional[Any], Optional[Dict[str, Any]]]


class BookSearchClient:
    """Client for interacting with the Book Search API."""

    def __init__(
        self,
        *,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL for the API, e.g. ``http://localhost:3001``.
            token: Optional session token.  If set, an ``Authorization``
                header with the value ``Bearer <token>`` is sent with
                every request.  ``login`` and ``register`` replace it.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(self, operation: str, variables: Optional[Dict[str, Any]] = None) -> Result:
        """Run one operation on the API.

        Args:
            operation: Operation name, e.g. ``login``.
            variables: Arguments of the operation.
        Returns:
            A tuple ``(data, error)``.
        """
        url = f"{self.base_url}{OPERATIONS_PATH}"
        headers: Dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        body = {"operation": operation, "variables": variables or {}}
        try:
            logger.debug("Sending %s to %s", operation, url)
            response = self.session.request(
                method="POST",
                url=url,
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "code": None, "message": str(exc)}

        if response.status_code >= 400:
            code = None
            try:
                err_json = response.json()
                message = err_json.get("detail") or str(err_json)
                code = err_json.get("code")
            except ValueError:
                message = response.text
            logger.error("%s failed (%s): %s", operation, response.status_code, message)
            return None, {"status_code": response.status_code, "code": code, "message": message}
        if not response.content:
            return None, None
        return response.json().get("data"), None

    def _authenticate(self, operation: str, variables: Dict[str, Any]) -> Result:
        data, error = self._request(operation, variables)
        if data and data.get("token"):
            self.token = data["token"]
        return data, error

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_users(self) -> Result:
        return self._request("listUsers")

    def get_user(self, user_id: str) -> Result:
        """Retrieve a single user; ``data`` is ``None`` if it does not exist."""
        return self._request("getUser", {"_id": user_id})

    def get_me(self) -> Result:
        return self._request("getMe")

    def list_saved_books(self) -> Result:
        return self._request("listSavedBooks")

    def search_books(self, query: str) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Search the catalog.  An empty query returns no books without a request."""
        if not query:
            return [], None
        data, error = self._request("searchBooks", {"query": query})
        return data or [], error

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def register(self, email: str, password: str, username: Optional[str] = None) -> Result:
        """Create an account.  On success the returned token is kept for later calls."""
        return self._authenticate("register", {"username": username, "email": email, "password": password})

    def login(self, email: str, password: str) -> Result:
        """Log in.  On success the returned token is kept for later calls."""
        return self._authenticate("login", {"email": email, "password": password})

    def logout(self) -> None:
        self.token = None

    def save_book(self, user_id: str, book: Dict[str, Any]) -> Result:
        """Save a book for ``user_id``.

        Args:
            user_id: Identifier of the user whose list is changed.
            book: Book fields (``bookId``, ``title``, ``authors``,
                ``description``, ``image``, ``link``).
        """
        return self._request("saveBook", {"userId": user_id, "input": book})

    def remove_book(self, user_id: str, book_id: str) -> Result:
        return self._request("removeBook", {"userId": user_id, "bookId": book_id})
