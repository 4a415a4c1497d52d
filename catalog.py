import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Set, Tuple

from book import BookForm, BookRecord, EDITABLE_FIELDS
from http_client import BookApiClient, BookApiError, ApiHTTPError, ApiTransportError, StatusEnvelope
from validators import FormValidator

logger = logging.getLogger(__name__)

DUPLICATE_SERVER_MESSAGE = "Book ID already exists"
DUPLICATE_MESSAGE = "Book ID already exists. Please choose a different ID."
NOT_FOUND_MESSAGE = "No book found with the given ID"


class Outcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    BUSY = "busy"


@dataclass
class OperationResult:
    outcome: Outcome
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


class BookCatalog:
    """Holds the form, the fetched records and the error slot of the book manager view.

    ``books`` is what the user sees. It is either the full list from the last
    fetch or a search-narrowed view over it; both hold the same record
    objects, so edits made through the view land on the full list too.
    Positions passed to the edit/save/delete methods index ``books``.
    """

    def __init__(self, client: BookApiClient) -> None:
        self.client = client
        self.form = BookForm()
        self.error: Optional[str] = None
        self.search_text = ""
        self._source: List[BookRecord] = []
        self._view: List[BookRecord] = []
        self._in_flight: Set[Tuple[str, str]] = set()

    # ------------------------- Views ------------------------- #
    @property
    def books(self) -> List[BookRecord]:
        return list(self._view)

    @property
    def all_books(self) -> List[BookRecord]:
        return list(self._source)

    @property
    def is_filtered(self) -> bool:
        return self._view != self._source

    def index_of(self, book_id: str) -> Optional[int]:
        for index, record in enumerate(self._view):
            if record.book_id == book_id:
                return index
        return None

    # ------------------------- Creation form ------------------------- #
    def submit_form(self) -> OperationResult:
        """Send the creation form to the server and refresh the list on success."""
        if self._is_busy("insert", ""):
            return OperationResult(Outcome.BUSY)
        self.error = None
        problem = FormValidator.first_problem(self.form)
        if problem:
            return OperationResult(Outcome.INVALID, problem)

        with self._guard("insert", "") as busy:
            if busy:
                return OperationResult(Outcome.BUSY)
            try:
                envelope = self.client.insert_book(self.form.to_payload())
            except BookApiError as exc:
                return self._failed(exc)

        if envelope.ok:
            logger.info("Inserted book %s", self.form.book_id)
            self.form.clear()
            self.refresh()
            return OperationResult(Outcome.SUCCESS)
        if envelope.message == DUPLICATE_SERVER_MESSAGE:
            self.error = DUPLICATE_MESSAGE
            return OperationResult(Outcome.DUPLICATE, self.error)
        return self._rejected(envelope)

    # ------------------------- List fetch ------------------------- #
    def refresh(self) -> OperationResult:
        """Replace the local list with the server's full record set."""
        try:
            envelope = self.client.get_all_books()
        except BookApiError as exc:
            self._replace([])
            return self._failed(exc)

        if not envelope.ok:
            self._replace([])
            return self._rejected(envelope)

        self._replace([BookRecord.from_dict(item) for item in envelope.result if isinstance(item, dict)])
        logger.debug("Fetched %d books", len(self._source))
        return OperationResult(Outcome.SUCCESS)

    # ------------------------- Inline edit ------------------------- #
    def toggle_edit(self, index: int) -> BookRecord:
        record = self._record_at(index)
        record.is_editing = not record.is_editing
        return record

    def edit_field(self, index: int, field: str, value: str) -> BookRecord:
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field '{field}' cannot be edited. Choose one of: {', '.join(EDITABLE_FIELDS)}")
        record = self._record_at(index)
        setattr(record, field, value)
        return record

    def save_edit(self, index: int) -> OperationResult:
        """Resend the full record; local edits are kept as they are on success."""
        record = self._record_at(index)
        with self._guard("save", record.book_id) as busy:
            if busy:
                return OperationResult(Outcome.BUSY)
            try:
                envelope = self.client.update_book(record.to_payload())
            except BookApiError as exc:
                return self._failed(exc)

        if not envelope.ok:
            return self._rejected(envelope)
        record.is_editing = False
        logger.info("Updated book %s", record.book_id)
        return OperationResult(Outcome.SUCCESS)

    # ------------------------- Delete ------------------------- #
    def delete(self, index: int) -> OperationResult:
        record = self._record_at(index)
        with self._guard("delete", record.book_id) as busy:
            if busy:
                return OperationResult(Outcome.BUSY)
            try:
                envelope = self.client.delete_book(record.book_id)
            except BookApiError as exc:
                return self._failed(exc)

        if not envelope.ok:
            return self._rejected(envelope)
        self._view = [b for b in self._view if b is not record]
        self._source = [b for b in self._source if b is not record]
        logger.info("Deleted book %s", record.book_id)
        return OperationResult(Outcome.SUCCESS)

    # ------------------------- Search ------------------------- #
    def search(self, text: str) -> OperationResult:
        """Narrow the displayed list to exact identifier matches over the full list.

        Without a match the displayed list stays as it was. An empty search
        text restores the full list.
        """
        if not text:
            self.clear_search()
            return OperationResult(Outcome.SUCCESS)

        matches = [record for record in self._source if record.book_id == text]
        if not matches:
            self.error = NOT_FOUND_MESSAGE
            return OperationResult(Outcome.NOT_FOUND, self.error)
        self.search_text = text
        self._view = matches
        return OperationResult(Outcome.SUCCESS)

    def clear_search(self) -> None:
        self.search_text = ""
        self._view = list(self._source)

    # ------------------------- Helpers ------------------------- #
    def _replace(self, records: List[BookRecord]) -> None:
        self._source = records
        self._view = list(records)
        self.search_text = ""

    def _record_at(self, index: int) -> BookRecord:
        if not 0 <= index < len(self._view):
            raise IndexError(f"No book at position {index}")
        return self._view[index]

    def _is_busy(self, action: str, key: str) -> bool:
        if (action, key) in self._in_flight:
            logger.warning("Ignoring %s for '%s': request already in flight", action, key)
            return True
        return False

    @contextmanager
    def _guard(self, action: str, key: str):
        marker = (action, key)
        if self._is_busy(action, key):
            yield True
            return
        self._in_flight.add(marker)
        try:
            yield False
        finally:
            self._in_flight.discard(marker)

    def _failed(self, exc: BookApiError) -> OperationResult:
        logger.error("Fetch error: %s", exc.message)
        if isinstance(exc, ApiHTTPError) and exc.from_html:
            self.error = exc.message
        else:
            self.error = f"An error occurred: {exc.message}"
        outcome = Outcome.NETWORK_ERROR if isinstance(exc, ApiTransportError) else Outcome.SERVER_ERROR
        return OperationResult(outcome, self.error)

    def _rejected(self, envelope: StatusEnvelope) -> OperationResult:
        logger.error("Request rejected: status=%s message=%s", envelope.status, envelope.message)
        self.error = envelope.message
        return OperationResult(Outcome.SERVER_ERROR, self.error)
