"""
Business logic for users and their saved books.

``UserService`` is the credential store of the application.  It owns
user registration (with uniqueness and e‑mail checks), password
hashing and verification, and the saved‑book list of each user.

Adding and removing saved books are single SQL statements.  The
``UNIQUE(user_id, book_id)`` constraint together with ``INSERT OR
IGNORE`` makes saving idempotent without a read‑then‑write step, so
concurrent saves of the same book cannot produce duplicates.
"""

import json
import logging
import re
import sqlite3
import uuid
from typing import Any, Dict, List, Optional

from ..core.db import get_connection
from ..core.errors import NotFoundError, ValidationError
from ..core.security import hash_password, verify_password
from ..schemas.book import BookInput, BookRead
from ..schemas.user import UserInDB, UserRead


logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r".+@.+\..+")

UPDATABLE_FIELDS = ("username", "email", "password")


def _book_from_row(row: sqlite3.Row) -> BookRead:
    return BookRead(
        book_id=row["book_id"],
        title=row["title"],
        authors=json.loads(row["authors"] or "[]"),
        description=row["description"],
        image=row["image"],
        link=row["link"],
    )


def _saved_books(cursor: sqlite3.Cursor, user_id: str) -> List[BookRead]:
    rows = cursor.execute(
        "SELECT book_id, title, authors, description, image, link FROM saved_books "
        "WHERE user_id = ? ORDER BY id",
        (user_id,),
    ).fetchall()
    return [_book_from_row(row) for row in rows]


def _load_user(cursor: sqlite3.Cursor, user_id: str) -> Optional[UserRead]:
    row = cursor.execute(
        "SELECT id, username, email FROM users WHERE id = ?", (user_id,)
    ).fetchone()
    if not row:
        return None
    return UserRead(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        saved_books=_saved_books(cursor, row["id"]),
    )


def _violated_field(exc: sqlite3.IntegrityError) -> Optional[str]:
    # sqlite reports e.g. "UNIQUE constraint failed: users.email"
    message = str(exc)
    if "users." in message:
        return message.rsplit("users.", 1)[1].split(",")[0].strip()
    return None


def _validate_email(email: str) -> None:
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Must use a valid email address", "email")


class UserService:
    """Credential store backed by the SQLite database in ``core.db``."""

    @classmethod
    async def create_user(cls, username: Optional[str], email: Optional[str], password: Optional[str]) -> UserRead:
        """Register a new user with an empty saved‑book list.

        Raises ``ValidationError`` naming the field when a value is
        missing, the e‑mail is malformed, or the username or e‑mail is
        already taken.  Nothing is written in those cases.
        """
        for field, value in (("username", username), ("email", email), ("password", password)):
            if not value:
                raise ValidationError(f"Path `{field}` is required.", field)
        _validate_email(email)

        user_id = uuid.uuid4().hex
        hashed = hash_password(password)
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO users (id, username, email, password) VALUES (?, ?, ?, ?)",
                (user_id, username, email, hashed),
            )
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            field = _violated_field(exc)
            logger.info("Registration rejected, %s already taken", field)
            raise ValidationError(f"{field or 'value'} already exists", field) from exc
        finally:
            conn.close()
        logger.info("Registered user %s (%s)", username, user_id)
        return UserRead(id=user_id, username=username, email=email, saved_books=[])

    @classmethod
    async def list_users(cls) -> List[UserRead]:
        """Return every user with their saved books, oldest first."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            rows = cursor.execute(
                "SELECT id, username, email FROM users ORDER BY created_at, rowid"
            ).fetchall()
            books: Dict[str, List[BookRead]] = {}
            for book_row in cursor.execute(
                "SELECT user_id, book_id, title, authors, description, image, link "
                "FROM saved_books ORDER BY id"
            ):
                books.setdefault(book_row["user_id"], []).append(_book_from_row(book_row))
            return [
                UserRead(
                    id=row["id"],
                    username=row["username"],
                    email=row["email"],
                    saved_books=books.get(row["id"], []),
                )
                for row in rows
            ]
        finally:
            conn.close()

    @classmethod
    async def get_user_by_id(cls, user_id: str) -> Optional[UserRead]:
        """Retrieve a user by ID."""
        conn = get_connection()
        try:
            return _load_user(conn.cursor(), user_id)
        finally:
            conn.close()

    @classmethod
    async def get_user_by_email(cls, email: str) -> Optional[UserInDB]:
        """Retrieve a user and its password hash by e‑mail."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                "SELECT id, username, email, password FROM users WHERE email = ?",
                (email,),
            ).fetchone()
            if not row:
                return None
            return UserInDB(
                id=row["id"],
                username=row["username"],
                email=row["email"],
                password=row["password"],
                saved_books=_saved_books(cursor, row["id"]),
            )
        finally:
            conn.close()

    @staticmethod
    def verify_password(user: UserInDB, candidate: str) -> bool:
        """Check ``candidate`` against the user's stored hash in constant time."""
        return verify_password(candidate, user.password)

    @classmethod
    async def add_saved_book(cls, user_id: str, book: BookInput) -> Optional[UserRead]:
        """Add ``book`` to the user's saved list unless its ``bookId`` is already there.

        Returns the user after the insert, or ``None`` if no user has
        ``user_id``.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT OR IGNORE INTO saved_books "
                "(user_id, book_id, title, authors, description, image, link) "
                "SELECT ?, ?, ?, ?, ?, ?, ? WHERE EXISTS (SELECT 1 FROM users WHERE id = ?)",
                (
                    user_id,
                    book.book_id,
                    book.title,
                    json.dumps(book.authors),
                    book.description,
                    book.image,
                    book.link,
                    user_id,
                ),
            )
            inserted = cursor.rowcount == 1
            conn.commit()
            user = _load_user(cursor, user_id)
        finally:
            conn.close()
        if user is None:
            logger.info("Cannot save book %s: user %s not found", book.book_id, user_id)
        elif inserted:
            logger.info("User %s saved book %s", user_id, book.book_id)
        else:
            logger.debug("Book %s already saved by user %s", book.book_id, user_id)
        return user

    @classmethod
    async def remove_saved_book(cls, user_id: str, book_id: str) -> Optional[UserRead]:
        """Remove the saved book with ``book_id``; a missing book is not an error.

        Returns the user after the removal, or ``None`` if no user has
        ``user_id``.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM saved_books WHERE user_id = ? AND book_id = ?",
                (user_id, book_id),
            )
            removed = cursor.rowcount
            conn.commit()
            user = _load_user(cursor, user_id)
        finally:
            conn.close()
        if removed:
            logger.info("User %s removed book %s", user_id, book_id)
        return user

    @classmethod
    async def update_user(cls, user_id: str, updates: Dict[str, Any]) -> UserRead:
        """Update a user's username, e‑mail or password.

        A ``password`` entry is hashed once for this update; updates
        without it leave the stored hash untouched.  Raises
        ``NotFoundError`` if the user does not exist and
        ``ValidationError`` for unknown fields, empty values, a
        malformed e‑mail or a uniqueness violation.
        """
        for key, value in updates.items():
            if key not in UPDATABLE_FIELDS:
                raise ValidationError(f"Field `{key}` cannot be updated", key)
            if not value:
                raise ValidationError(f"Path `{key}` is required.", key)
        if "email" in updates:
            _validate_email(updates["email"])

        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                raise NotFoundError(f"User {user_id} not found", "id")
            if updates:
                fields = []
                values = []
                for key, value in updates.items():
                    if key == "password":
                        value = hash_password(value)
                    fields.append(f"{key} = ?")
                    values.append(value)
                values.append(user_id)
                sql = f"UPDATE users SET {', '.join(fields)}, updated_at = CURRENT_TIMESTAMP WHERE id = ?"
                try:
                    cursor.execute(sql, tuple(values))
                    conn.commit()
                except sqlite3.IntegrityError as exc:
                    conn.rollback()
                    field = _violated_field(exc)
                    raise ValidationError(f"{field or 'value'} already exists", field) from exc
                logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(updates)))
            return _load_user(cursor, user_id)
        finally:
            conn.close()
