import json
from email.parser import BytesParser
from email.policy import HTTP

import httpx
import pytest

from catalog import BookCatalog
from http_client import BookApiClient
from ui_helpers import OUTPUT_MODE_ENV

BASE_URL = "http://books.test/api"


def parse_multipart(request: httpx.Request) -> dict:
    """Decode a multipart/form-data request body into a plain dict."""
    head = f"Content-Type: {request.headers['content-type']}\r\n\r\n".encode()
    message = BytesParser(policy=HTTP).parsebytes(head + request.content)
    return {
        part.get_param("name", header="content-disposition"): part.get_payload(decode=True).decode("utf-8")
        for part in message.iter_parts()
    }


class FakeBookApi:
    """In-memory stand-in for the remote book API."""

    def __init__(self, books=None):
        self.books = {b["book_id"]: dict(b) for b in (books or [])}
        self.requests = []
        # Set to an httpx.Response to make the next request return it instead
        self.next_response = None

    def _ok(self, **extra):
        return httpx.Response(200, json={"status": "SUCCESS", **extra})

    def _error(self, message):
        return httpx.Response(200, json={"status": "ERROR", "message": message})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.next_response is not None:
            response, self.next_response = self.next_response, None
            return response

        path = request.url.path.rsplit("/", 1)[-1]
        if path == "get_all_books" and request.method == "GET":
            return self._ok(result=[dict(b) for b in self.books.values()])
        if path == "insert_book":
            form = parse_multipart(request)
            if form["book_id"] in self.books:
                return self._error("Book ID already exists")
            self.books[form["book_id"]] = form
            return self._ok()
        if path == "update_book":
            form = parse_multipart(request)
            if form["book_id"] not in self.books:
                return self._error("Book not found")
            self.books[form["book_id"]] = form
            return self._ok()
        if path == "delete_book":
            book_id = json.loads(request.content)["book_id"]
            if self.books.pop(book_id, None) is None:
                return self._error("Book not found")
            return self._ok()
        return httpx.Response(404, headers={"content-type": "text/html"},
                              text="<!DOCTYPE html><html><body><h1>404</h1><p>Page not found</p></body></html>")


def make_book(book_id, name="A Book", description="Some pages", published="2020-01-01", price="9.99"):
    return {
        "book_id": book_id,
        "book_name": name,
        "book_description": description,
        "book_published": published,
        "book_price": price,
    }


@pytest.fixture
def fake_api():
    return FakeBookApi([make_book("B-100", name="First"), make_book("B-200", name="Second")])


@pytest.fixture
def api_client(fake_api):
    client = BookApiClient(base_url=BASE_URL, transport=httpx.MockTransport(fake_api))
    yield client
    client.close()


@pytest.fixture
def catalog(api_client):
    return BookCatalog(api_client)


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)
