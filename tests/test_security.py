import pytest
from starlette.requests import Request

from book_search_api.app.core import security
from book_search_api.app.core.config import settings
from book_search_api.app.core.security import (
    InvalidTokenError,
    create_access_token,
    decode_access_token,
    extract_token,
    hash_password,
    resolve_identity,
    verify_password,
)

CLAIMS = {"username": "alice", "email": "alice@x.com", "id": "abc123"}
TWO_HOURS = 2 * 60 * 60


def make_request(headers=None, query=b""):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v1/operations",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "query_string": query,
    }
    return Request(scope)


def test_token_round_trip():
    token = create_access_token(CLAIMS)
    assert decode_access_token(token) == CLAIMS


def test_token_valid_until_two_hours(monkeypatch):
    issued = 1_700_000_000
    monkeypatch.setattr(security, "_now", lambda: issued)
    token = create_access_token(CLAIMS)

    monkeypatch.setattr(security, "_now", lambda: issued + TWO_HOURS - 1)
    assert decode_access_token(token)["id"] == "abc123"

    monkeypatch.setattr(security, "_now", lambda: issued + TWO_HOURS)
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)

    monkeypatch.setattr(security, "_now", lambda: issued + TWO_HOURS + 1)
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_token_max_age_enforced_even_with_long_expiry(monkeypatch):
    issued = 1_700_000_000
    monkeypatch.setattr(security, "_now", lambda: issued)
    token = create_access_token(CLAIMS, expires_delta=10 * TWO_HOURS)

    monkeypatch.setattr(security, "_now", lambda: issued + TWO_HOURS + 1)
    with pytest.raises(InvalidTokenError, match="maximum age"):
        decode_access_token(token)


def test_tampered_token_rejected():
    token = create_access_token(CLAIMS)
    header, payload, signature = token.split(".")
    forged = create_access_token({**CLAIMS, "id": "someone-else"}).split(".")[1]
    with pytest.raises(InvalidTokenError, match="signature"):
        decode_access_token(f"{header}.{forged}.{signature}")


def test_token_signed_with_other_key_rejected(monkeypatch):
    token = create_access_token(CLAIMS)
    monkeypatch.setattr(security, "_signing_key", "another-key")
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


@pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c", "!!.??.**"])
def test_malformed_token_rejected(token):
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_resolve_identity_treats_bad_token_as_anonymous():
    assert resolve_identity(None) is None
    assert resolve_identity("not-a-token") is None
    assert resolve_identity(create_access_token(CLAIMS)) == CLAIMS


def test_extract_token_sources():
    assert extract_token(make_request()) is None
    assert extract_token(make_request(), {"token": "from-body"}) == "from-body"
    assert extract_token(make_request(query=b"token=from-query")) == "from-query"
    assert extract_token(make_request(headers={"Authorization": "Bearer from-header"})) == "from-header"


def test_extract_token_header_takes_precedence():
    request = make_request(headers={"Authorization": "Bearer from-header"}, query=b"token=from-query")
    assert extract_token(request, {"token": "from-body"}) == "from-header"


def test_extract_token_header_without_scheme():
    assert extract_token(make_request(headers={"Authorization": "rawtoken"})) == "rawtoken"


def test_load_signing_key_requires_configuration(monkeypatch):
    monkeypatch.setattr(settings, "secret_key", "")
    monkeypatch.setattr(security, "_signing_key", None)
    with pytest.raises(RuntimeError, match="JWT_SECRET_KEY"):
        security.load_signing_key()


def test_create_app_fails_without_signing_key(monkeypatch):
    from book_search_api.app.main import create_app

    monkeypatch.setattr(settings, "secret_key", "")
    monkeypatch.setattr(security, "_signing_key", None)
    with pytest.raises(RuntimeError):
        create_app()


def test_password_hash_is_salted_and_verifiable():
    first = hash_password("secret123")
    second = hash_password("secret123")
    assert first != second
    assert "secret123" not in first
    assert verify_password("secret123", first)
    assert verify_password("secret123", second)
    assert not verify_password("wrong", first)


def test_verify_password_rejects_malformed_hash():
    assert not verify_password("secret123", "no-dollar-sign")
    assert not verify_password("secret123", "zz$zz")
