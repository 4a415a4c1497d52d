import os
import json
import math
from typing import List, Optional, Tuple

from rich.console import Console
from rich.columns import Columns
from rich.markup import escape
from rich.panel import Panel

from book import BookRecord
from config import settings

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "BOOK_CLI_OUTPUT"
EMPTY_MESSAGE = "No books found."

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


class Carousel:
    """Terminal stand-in for the card slider: a window of cards moved one step at a time."""

    def __init__(self, slides_to_show: Optional[int] = None, slides_to_scroll: Optional[int] = None,
                 infinite: Optional[bool] = None, dots: Optional[bool] = None) -> None:
        self.slides_to_show = max(1, slides_to_show or settings.carousel_slides_to_show)
        self.slides_to_scroll = max(1, slides_to_scroll or settings.carousel_slides_to_scroll)
        self.infinite = settings.carousel_infinite if infinite is None else infinite
        self.dots = settings.carousel_dots if dots is None else dots
        self.current = 0

    def reset(self) -> None:
        self.current = 0

    def _clamp(self, total: int) -> None:
        if total <= self.slides_to_show:
            self.current = 0
        elif self.infinite:
            self.current %= total
        else:
            self.current = min(self.current, total - self.slides_to_show)

    def next(self, total: int) -> None:
        if total <= self.slides_to_show:
            self.current = 0
            return
        if self.infinite:
            self.current = (self.current + self.slides_to_scroll) % total
        else:
            self.current = min(self.current + self.slides_to_scroll, total - self.slides_to_show)

    def prev(self, total: int) -> None:
        if total <= self.slides_to_show:
            self.current = 0
            return
        if self.infinite:
            self.current = (self.current - self.slides_to_scroll) % total
        else:
            self.current = max(self.current - self.slides_to_scroll, 0)

    def window(self, records: List[BookRecord]) -> List[Tuple[int, BookRecord]]:
        """(position, record) pairs currently visible."""
        total = len(records)
        self._clamp(total)
        if total <= self.slides_to_show:
            return list(enumerate(records))
        positions = [self.current + offset for offset in range(self.slides_to_show)]
        if self.infinite:
            positions = [p % total for p in positions]
        return [(p, records[p]) for p in positions]

    def dot_count(self, total: int) -> int:
        if total <= self.slides_to_show:
            return 1 if total else 0
        if self.infinite:
            return math.ceil(total / self.slides_to_scroll)
        return math.ceil((total - self.slides_to_show) / self.slides_to_scroll) + 1

    def render_dots(self, total: int) -> str:
        count = self.dot_count(total)
        if not self.dots or count <= 1:
            return ""
        active = min(self.current // self.slides_to_scroll, count - 1)
        return " ".join("●" if i == active else "○" for i in range(count))


CARD_FIELDS = [
    ("Book ID", "book_id"),
    ("Book Name", "book_name"),
    ("Description", "book_description"),
    ("Published Date", "book_published"),
    ("Price", "book_price"),
]


def render_card(position: int, record: BookRecord) -> Panel:
    body = "\n".join(
        f"[bold]{label}:[/] {escape(getattr(record, name))}" for label, name in CARD_FIELDS
    )
    title = f"#{position}" + (" ✏️  editing" if record.is_editing else "")
    return Panel(body, title=title, border_style="yellow" if record.is_editing else "cyan", width=36)


def print_error(error: Optional[str]) -> None:
    if error:
        if get_output_mode() == "rich":
            _console.print(f"[bold red]{escape(error)}[/]")
        else:
            print(error)


def print_books(books: List[BookRecord]) -> None:
    """Print records according to the output mode.
    - plain: 'ID - Name - Published - Price' lines, or 'No books found.'
    - json: JSON array of record objects
    - rich: every record as a card
    """
    mode = get_output_mode()

    if not books:
        print(EMPTY_MESSAGE)
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        _console.print(Columns([render_card(position, record) for position, record in enumerate(books)]))
    else:
        for b in books:
            print(f"{b.book_id} - {b.book_name} - {b.book_published} - {b.book_price}")


def print_carousel(books: List[BookRecord], carousel: Carousel) -> None:
    """Print the carousel's current window of cards and its position dots."""
    if not books:
        _console.print(f"[yellow]{EMPTY_MESSAGE}[/]")
        return
    cards = [render_card(position, record) for position, record in carousel.window(books)]
    _console.print(Columns(cards))
    dots = carousel.render_dots(len(books))
    if dots:
        _console.print(dots, justify="center")
