import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from book_search_api.app.core.db import get_connection
from book_search_api.app.core.errors import ErrorKind, ServiceError
from book_search_api.app.schemas.book import BookInput
from book_search_api.app.services.user_service import UserService


def run(coro):
    return asyncio.run(coro)


def stored_hash(user_id):
    conn = get_connection()
    try:
        return conn.execute("SELECT password FROM users WHERE id = ?", (user_id,)).fetchone()["password"]
    finally:
        conn.close()


@pytest.fixture
def alice():
    return run(UserService.create_user("alice", "alice@x.com", "secret123"))


@pytest.fixture
def book():
    return BookInput(book_id="b1", title="T", description="D")


def test_create_user(alice):
    assert alice.id
    assert alice.username == "alice"
    assert alice.email == "alice@x.com"
    assert alice.saved_books == []
    assert alice.book_count == 0


def test_password_is_hashed_before_persistence(alice):
    password = stored_hash(alice.id)
    assert password != "secret123"
    assert "$" in password


@pytest.mark.parametrize(
    "username, email, field",
    [
        ("alice", "other@x.com", "username"),
        ("bob", "alice@x.com", "email"),
    ],
)
def test_duplicate_username_or_email_rejected(alice, username, email, field):
    with pytest.raises(ServiceError) as exc_info:
        run(UserService.create_user(username, email, "pw"))
    assert exc_info.value.kind is ErrorKind.VALIDATION
    assert exc_info.value.field == field
    assert len(run(UserService.list_users())) == 1


@pytest.mark.parametrize("email", ["not-an-email", "a@b", "@x.com"])
def test_invalid_email_rejected(email):
    with pytest.raises(ServiceError) as exc_info:
        run(UserService.create_user("carol", email, "pw"))
    assert exc_info.value.kind is ErrorKind.VALIDATION
    assert exc_info.value.field == "email"
    assert run(UserService.list_users()) == []


@pytest.mark.parametrize(
    "username, email, password, field",
    [
        (None, "a@x.com", "pw", "username"),
        ("a", "", "pw", "email"),
        ("a", "a@x.com", "", "password"),
    ],
)
def test_missing_fields_rejected(username, email, password, field):
    with pytest.raises(ServiceError) as exc_info:
        run(UserService.create_user(username, email, password))
    assert exc_info.value.field == field


def test_find_by_id_and_email(alice):
    assert run(UserService.get_user_by_id(alice.id)).username == "alice"
    assert run(UserService.get_user_by_id("missing")) is None
    found = run(UserService.get_user_by_email("alice@x.com"))
    assert found.id == alice.id
    assert run(UserService.get_user_by_email("nobody@x.com")) is None


def test_verify_password(alice):
    user = run(UserService.get_user_by_email("alice@x.com"))
    assert UserService.verify_password(user, "secret123")
    assert not UserService.verify_password(user, "secret124")


def test_password_hash_not_serialised(alice):
    user = run(UserService.get_user_by_email("alice@x.com"))
    assert "password" not in user.model_dump()
    assert "password" not in user.model_dump(by_alias=True)


def test_add_saved_book_is_idempotent(alice, book):
    user = run(UserService.add_saved_book(alice.id, book))
    assert [b.book_id for b in user.saved_books] == ["b1"]
    assert user.book_count == 1

    again = BookInput(book_id="b1", title="Other title", description="")
    user = run(UserService.add_saved_book(alice.id, again))
    assert len(user.saved_books) == 1
    assert user.saved_books[0].title == "T"
    assert user.book_count == 1


def test_saved_books_keep_insertion_order(alice):
    for book_id in ("c", "a", "b"):
        run(UserService.add_saved_book(alice.id, BookInput(book_id=book_id, title=book_id, description="")))
    user = run(UserService.get_user_by_id(alice.id))
    assert [b.book_id for b in user.saved_books] == ["c", "a", "b"]


def test_saved_book_fields_round_trip(alice):
    book = BookInput(
        book_id="b2",
        title="Title",
        authors=["A", "B"],
        description="",
        image="http://img/x?zoom=0",
        link="http://link/x",
    )
    user = run(UserService.add_saved_book(alice.id, book))
    saved = user.saved_books[0]
    assert saved.authors == ["A", "B"]
    assert saved.description == ""
    assert saved.image == "http://img/x?zoom=0"
    assert saved.link == "http://link/x"


def test_add_saved_book_unknown_user(book):
    assert run(UserService.add_saved_book("missing", book)) is None


def test_remove_saved_book(alice, book):
    run(UserService.add_saved_book(alice.id, book))
    user = run(UserService.remove_saved_book(alice.id, "b1"))
    assert user.saved_books == []
    assert user.book_count == 0


def test_remove_missing_book_is_noop(alice, book):
    run(UserService.add_saved_book(alice.id, book))
    user = run(UserService.remove_saved_book(alice.id, "not-there"))
    assert [b.book_id for b in user.saved_books] == ["b1"]


def test_remove_saved_book_unknown_user():
    assert run(UserService.remove_saved_book("missing", "b1")) is None


def test_saved_lists_are_per_user(alice, book):
    bob = run(UserService.create_user("bob", "bob@x.com", "pw"))
    run(UserService.add_saved_book(alice.id, book))
    run(UserService.add_saved_book(bob.id, book))
    run(UserService.remove_saved_book(bob.id, "b1"))
    assert run(UserService.get_user_by_id(alice.id)).book_count == 1
    assert run(UserService.get_user_by_id(bob.id)).book_count == 0


def test_concurrent_saves_do_not_duplicate(alice, book):
    def save(_):
        return run(UserService.add_saved_book(alice.id, book))

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(save, range(16)))
    user = run(UserService.get_user_by_id(alice.id))
    assert [b.book_id for b in user.saved_books] == ["b1"]


def test_list_users_includes_saved_books(alice, book):
    run(UserService.create_user("bob", "bob@x.com", "pw"))
    run(UserService.add_saved_book(alice.id, book))
    users = run(UserService.list_users())
    assert [u.username for u in users] == ["alice", "bob"]
    assert users[0].book_count == 1
    assert users[1].book_count == 0


def test_update_password_rehashes_once(alice):
    before = stored_hash(alice.id)
    run(UserService.update_user(alice.id, {"password": "new-secret"}))
    after = stored_hash(alice.id)
    assert after != before

    user = run(UserService.get_user_by_email("alice@x.com"))
    assert UserService.verify_password(user, "new-secret")
    assert not UserService.verify_password(user, "secret123")


def test_update_without_password_keeps_hash(alice):
    before = stored_hash(alice.id)
    updated = run(UserService.update_user(alice.id, {"username": "alice2"}))
    assert updated.username == "alice2"
    assert stored_hash(alice.id) == before
    user = run(UserService.get_user_by_email("alice@x.com"))
    assert UserService.verify_password(user, "secret123")


def test_update_user_errors(alice):
    run(UserService.create_user("bob", "bob@x.com", "pw"))
    with pytest.raises(ServiceError) as exc_info:
        run(UserService.update_user("missing", {"username": "x"}))
    assert exc_info.value.kind is ErrorKind.NOT_FOUND

    with pytest.raises(ServiceError) as exc_info:
        run(UserService.update_user(alice.id, {"email": "bob@x.com"}))
    assert exc_info.value.kind is ErrorKind.VALIDATION
    assert exc_info.value.field == "email"

    with pytest.raises(ServiceError) as exc_info:
        run(UserService.update_user(alice.id, {"id": "other"}))
    assert exc_info.value.field == "id"
