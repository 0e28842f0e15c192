import os

# The signing key must exist before the application modules are imported.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
import requests
from fastapi.testclient import TestClient

from book_search_api.app.core.config import settings
from book_search_api.app.core.db import init_db


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    # Each test gets its own database file
    db_file = str(tmp_path / "test_book_search.db")
    monkeypatch.setattr(settings, "database_url", db_file)
    init_db()
    yield db_file


@pytest.fixture
def app():
    from book_search_api.app.main import create_app
    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self._payload


class FakeCatalogSession:
    """Stands in for ``requests.Session`` in catalog tests."""

    def __init__(self, payload=None, status_code=200, exc=None):
        self.payload = payload if payload is not None else {"items": []}
        self.status_code = status_code
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return FakeResponse(self.payload, self.status_code)


@pytest.fixture
def volumes_payload():
    return {
        "kind": "books#volumes",
        "totalItems": 3,
        "items": [
            {
                "id": "zyTCAlFPjgYC",
                "volumeInfo": {
                    "title": "The Google Story",
                    "authors": ["David A. Vise", "Mark Malseed"],
                    "description": "The story of Google.",
                    "imageLinks": {
                        "thumbnail": "http://books.google.com/books/content?id=zyTCAlFPjgYC&printsec=frontcover&img=1&zoom=1"
                    },
                    "infoLink": "http://books.google.com/books?id=zyTCAlFPjgYC",
                },
            },
            {
                "id": "noauthors1",
                "volumeInfo": {"title": "Anonymous Work"},
            },
            {
                "id": "notitle01",
                "volumeInfo": {"authors": ["Nobody"]},
            },
        ],
    }
