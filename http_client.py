import logging
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Optional, Dict, Any, List

import httpx

from config import settings

logger = logging.getLogger(__name__)

SUCCESS = "SUCCESS"


class BookApiError(Exception):
    """Base class for failures talking to the book API"""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ApiTransportError(BookApiError):
    """The request never produced a response (DNS, connect, timeout...)"""
    pass


class ApiHTTPError(BookApiError):
    """The server answered with a non-2xx status"""

    def __init__(self, message: str, status_code: int, from_html: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.from_html = from_html


class ApiDecodeError(BookApiError):
    """A 2xx response whose body is not a status envelope"""
    pass


@dataclass
class StatusEnvelope:
    status: str
    message: Optional[str] = None
    result: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS


class _FirstParagraphParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self._depth = 0
        self._chunks: List[str] = []
        self.found = False
        self.done = False

    def handle_starttag(self, tag, attrs):
        if self.done:
            return
        if tag == "p":
            # An unclosed <p> is implicitly ended by the next one
            if self._depth:
                self.done = True
                return
            self._depth += 1
            self.found = True

    def handle_endtag(self, tag):
        if tag == "p" and self._depth:
            self._depth -= 1
            if not self._depth:
                self.done = True

    def handle_data(self, data):
        if self._depth and not self.done:
            self._chunks.append(data)

    @property
    def text(self) -> str:
        return "".join(self._chunks)


def first_paragraph_text(html: str) -> Optional[str]:
    """Text content of the first <p> element, or None when there is none."""
    parser = _FirstParagraphParser()
    parser.feed(html)
    parser.close()
    return parser.text if parser.found else None


def _is_html(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type")
    if content_type:
        return content_type.split(";")[0].strip().lower() in ("text/html", "application/xhtml+xml")
    return response.text.lstrip().lower().startswith("<!doctype html")


def decode_response(response: httpx.Response) -> StatusEnvelope:
    """Turn any API response into a StatusEnvelope or raise a BookApiError."""
    if not response.is_success:
        text = response.text
        if _is_html(response):
            paragraph = first_paragraph_text(text)
            if paragraph is not None:
                raise ApiHTTPError(paragraph, response.status_code, from_html=True)
        raise ApiHTTPError(
            f"HTTP error! status: {response.status_code}, message: {text}", response.status_code
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise ApiDecodeError(f"Unexpected response body: {response.text[:200]}") from exc

    if not isinstance(data, dict) or "status" not in data:
        raise ApiDecodeError(f"Unexpected response body: {response.text[:200]}")

    result = data.get("result") or []
    if not isinstance(result, list):
        raise ApiDecodeError("Unexpected 'result' in response: expected a list")

    return StatusEnvelope(status=str(data["status"]), message=data.get("message"), result=result)


def _multipart(payload: Dict[str, str]) -> List[tuple]:
    # (None, bytes) parts force multipart/form-data without a filename
    return [(name, (None, (value or "").encode("utf-8"))) for name, value in payload.items()]


class BookApiClient:
    """HTTP client for the remote book API."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        timeout = httpx.Timeout(
            timeout=timeout if timeout is not None else settings.api_timeout,
            connect=settings.api_connect_timeout,
        )
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            follow_redirects=True,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def _send(self, method: str, path: str, **kwargs) -> StatusEnvelope:
        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise ApiTransportError(str(exc) or exc.__class__.__name__) from exc
        return decode_response(response)

    def insert_book(self, payload: Dict[str, str]) -> StatusEnvelope:
        return self._send("POST", "/insert_book", files=_multipart(payload))

    def get_all_books(self) -> StatusEnvelope:
        return self._send("GET", "/get_all_books")

    def update_book(self, payload: Dict[str, str]) -> StatusEnvelope:
        return self._send("POST", "/update_book", files=_multipart(payload))

    def delete_book(self, book_id: str) -> StatusEnvelope:
        return self._send("POST", "/delete_book", json={"book_id": book_id})

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
